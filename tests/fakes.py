"""Deterministic fakes for dispatcher and API tests."""

from datetime import date

from chatledger.llm.client import Completion
from chatledger.models.schemas import OperationRequest

# Wednesday; with Sunday-first weeks this week is 2025-11-16..2025-11-22
TODAY = date(2025, 11, 19)
OWNER = 1


class ScriptedLLM:
    """Returns queued completions in order and records every call."""

    def __init__(self, *completions):
        self.completions = list(completions)
        self.calls: list[dict] = []

    async def complete(self, messages, tools=None, json_mode=False):
        self.calls.append({"messages": [dict(m) for m in messages], "tools": tools, "json_mode": json_mode})
        if not self.completions:
            raise AssertionError("Unexpected LLM call")
        next_item = self.completions.pop(0)
        if isinstance(next_item, Exception):
            raise next_item
        return next_item


def tool_call(call_id: str, name: str, **arguments) -> OperationRequest:
    return OperationRequest(call_id=call_id, name=name, arguments=arguments)


def tool_completion(*requests: OperationRequest) -> Completion:
    return Completion(
        text=None,
        requests=list(requests),
        message={
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": r.call_id,
                    "type": "function",
                    "function": {"name": r.name, "arguments": "{}"},
                }
                for r in requests
            ],
        },
    )


def text_completion(text: str | None) -> Completion:
    return Completion(text=text, message={"role": "assistant", "content": text})


class RecordingSender:
    """Stands in for ``WhatsAppClient`` and keeps every message it was asked to send."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent: list[tuple[str, dict]] = []

    async def send(self, phone_number_id: str, message: dict) -> bool:
        self.sent.append((phone_number_id, message))
        return self.succeed


def webhook_payload(body: str | None = "Spent 12 on lunch", sender: str = "15550001111", msg_type: str = "text") -> dict:
    message = {"from": sender, "id": "wamid.1", "timestamp": "1731999999", "type": msg_type}
    if body is not None:
        message["text"] = {"body": body}
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WABA_ID",
                "changes": [
                    {
                        "field": "messages",
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {"display_phone_number": "15559990000", "phone_number_id": "PHONE_ID"},
                            "contacts": [{"wa_id": sender, "profile": {"name": "Ana"}}],
                            "messages": [message],
                        },
                    }
                ],
            }
        ],
    }
