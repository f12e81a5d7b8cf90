from dataclasses import dataclass

from loguru import logger

from chatledger.db.repository import UserRepository
from chatledger.formatters.base import Formatter
from chatledger.formatters.registry import format_for_platform
from chatledger.llm.dispatcher import Dispatcher
from chatledger.llm.prompts import FALLBACK_REPLY
from chatledger.models.schemas import Platform, ReplyEnvelope
from chatledger.models.whatsapp import WebhookPayload
from chatledger.whatsapp.client import WhatsAppClient


@dataclass(slots=True)
class InboundText:
    sender: str
    text: str
    phone_number_id: str


def extract_text_message(payload: WebhookPayload) -> InboundText | None:
    """Pull the one text message out of a webhook event, or ``None`` if there is nothing to answer."""
    if not payload.entry or not payload.entry[0].changes:
        logger.debug("Webhook event without changes")
        return None

    value = payload.entry[0].changes[0].value
    message = value.messages[0] if value.messages else None
    contact = value.contacts[0] if value.contacts else None
    if message is None or contact is None or not message.sender:
        logger.debug("No message or sender found")
        return None
    if message.sender == value.metadata.display_phone_number:
        logger.debug("Ignoring message sent by ourselves")
        return None
    if message.type != "text" or message.text is None or not message.text.body.strip():
        logger.debug("Ignoring non-text message of type {}", message.type)
        return None

    return InboundText(
        sender=contact.wa_id,
        text=message.text.body,
        phone_number_id=value.metadata.phone_number_id,
    )


class WhatsAppService:
    def __init__(
        self,
        client: WhatsAppClient,
        users: UserRepository,
        dispatcher: Dispatcher,
        verify_token: str,
        formatters: dict[Platform, Formatter] | None = None,
    ):
        self.client = client
        self.users = users
        self.dispatcher = dispatcher
        self.verify_token = verify_token
        self.formatters = formatters

    def verify_webhook(self, mode: str | None, token: str | None, challenge: str | None) -> str | None:
        if mode == "subscribe" and self.verify_token and token == self.verify_token:
            return challenge or ""
        return None

    async def handle(self, inbound: InboundText) -> bool:
        try:
            user = self.users.find_or_create(inbound.sender)
            envelope = await self.dispatcher.process_message(inbound.text, user.id, Platform.WHATSAPP)
        except Exception as e:
            logger.exception("Error processing WhatsApp message from {}: {}", inbound.sender, e)
            envelope = ReplyEnvelope.text(FALLBACK_REPLY)

        message = format_for_platform(
            envelope, Platform.WHATSAPP, inbound.sender, self.formatters
        )
        # a failed delivery does not undo ledger changes already made
        return await self.client.send(inbound.phone_number_id, message)
