import asyncio
import json

import pytest

from chatledger.formatters.registry import build_formatters
from chatledger.llm.dispatcher import Dispatcher
from chatledger.llm.prompts import FALLBACK_REPLY
from chatledger.models.whatsapp import WebhookPayload
from chatledger.whatsapp.service import InboundText, WhatsAppService, extract_text_message
from tests.fakes import (
    TODAY,
    RecordingSender,
    ScriptedLLM,
    text_completion,
    tool_call,
    tool_completion,
    webhook_payload,
)


def _service(llm, executor, users, sender=None) -> WhatsAppService:
    dispatcher = Dispatcher(llm, executor, clock=lambda: TODAY)
    return WhatsAppService(
        sender or RecordingSender(),
        users,
        dispatcher,
        verify_token="secret",
        formatters=build_formatters("en_US"),
    )


def test_extract_text_message() -> None:
    inbound = extract_text_message(WebhookPayload.model_validate(webhook_payload("hi there")))

    assert inbound == InboundText(sender="15550001111", text="hi there", phone_number_id="PHONE_ID")


@pytest.mark.parametrize(
    "payload",
    [
        {"object": "whatsapp_business_account", "entry": []},
        {"entry": [{"id": "x", "changes": []}]},
        webhook_payload(sender="15559990000"),
        webhook_payload(body=None, msg_type="image"),
        webhook_payload(body="   "),
    ],
)
def test_extract_ignores_events_without_a_user_text(payload) -> None:
    assert extract_text_message(WebhookPayload.model_validate(payload)) is None


def test_status_update_has_nothing_to_answer() -> None:
    payload = webhook_payload()
    value = payload["entry"][0]["changes"][0]["value"]
    del value["messages"]
    del value["contacts"]
    value["statuses"] = [{"id": "wamid.1", "status": "delivered"}]

    assert extract_text_message(WebhookPayload.model_validate(payload)) is None


@pytest.mark.parametrize(
    "mode, token, expected",
    [
        ("subscribe", "secret", "12345"),
        ("subscribe", "wrong", None),
        ("unsubscribe", "secret", None),
        (None, None, None),
    ],
)
def test_verify_webhook(executor, users, mode, token, expected) -> None:
    service = _service(ScriptedLLM(), executor, users)

    assert service.verify_webhook(mode, token, "12345") == expected


def test_empty_verify_token_never_verifies(executor, users) -> None:
    service = _service(ScriptedLLM(), executor, users)
    service.verify_token = ""

    assert service.verify_webhook("subscribe", "", "12345") is None


def test_handle_runs_the_conversation_and_sends_reply(executor, users, repo) -> None:
    sender = RecordingSender()
    llm = ScriptedLLM(
        tool_completion(tool_call("call_1", "add_expense", amount=12, description="lunch")),
        text_completion(json.dumps({"format": "text", "content": "Added $12.00 for lunch"})),
    )
    service = _service(llm, executor, users, sender)
    inbound = InboundText(sender="15550001111", text="Spent 12 on lunch", phone_number_id="PHONE_ID")

    delivered = asyncio.run(service.handle(inbound))

    owner = users.find_or_create("15550001111")
    assert delivered
    assert [r.amount for r in repo.find_by_owner(owner.id)] == [12]
    assert sender.sent == [
        (
            "PHONE_ID",
            {"messaging_product": "whatsapp", "to": "15550001111", "text": {"body": "Added $12.00 for lunch"}},
        )
    ]


def test_handle_sends_fallback_when_the_model_fails(executor, users) -> None:
    sender = RecordingSender()
    service = _service(ScriptedLLM(RuntimeError("boom")), executor, users, sender)

    asyncio.run(service.handle(InboundText(sender="1", text="hi", phone_number_id="P")))

    assert sender.sent[0][1]["text"]["body"] == FALLBACK_REPLY


def test_failed_delivery_keeps_the_ledger_change(executor, users, repo) -> None:
    sender = RecordingSender(succeed=False)
    llm = ScriptedLLM(
        tool_completion(tool_call("call_1", "add_expense", amount=3)),
        text_completion('{"format": "text", "content": "Added"}'),
    )
    service = _service(llm, executor, users, sender)

    delivered = asyncio.run(service.handle(InboundText(sender="1", text="3", phone_number_id="P")))

    assert not delivered
    assert len(repo.find_by_owner(users.find_or_create("1").id)) == 1
