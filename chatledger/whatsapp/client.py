from typing import Any

import httpx
from loguru import logger


class WhatsAppClient:
    """Posts messages to the WhatsApp Cloud API. Delivery failures are logged, never raised."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://graph.facebook.com",
        api_version: str = "21.0",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self.transport = transport

    def messages_url(self, phone_number_id: str) -> str:
        return f"{self.base_url}/v{self.api_version}/{phone_number_id}/messages"

    async def send(self, phone_number_id: str, message: dict[str, Any]) -> bool:
        url = self.messages_url(phone_number_id)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=message,
                    headers={"Authorization": f"Bearer {self.access_token}"},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "WhatsApp rejected message to {}: {} {}",
                message.get("to"),
                e.response.status_code,
                e.response.text,
            )
            return False
        except httpx.HTTPError as e:
            logger.error("Error sending WhatsApp message to {}: {}", message.get("to"), e)
            return False

        logger.info("WhatsApp message sent to {}", message.get("to"))
        return True
