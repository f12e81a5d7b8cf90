"""Tests for reply envelope decoding and the template policy."""

import json

import pytest

from chatledger.errors import MalformedModelOutputError
from chatledger.llm.envelope import (
    decode_envelope,
    enforce_template_policy,
    looks_like_serialized_object,
    parse_envelope,
    strip_code_fences,
)
from chatledger.llm.prompts import EMPTY_CONTENT_REPLY
from chatledger.models.schemas import MessageFormat, ReplyEnvelope

APPROVED = ["hello_world"]


def test_decode_full_envelope() -> None:
    raw = json.dumps(
        {
            "format": "text",
            "content": "Here's your report",
            "imageUrl": "https://quickchart.io/chart?c=x",
            "caption": "This month",
        }
    )

    envelope = decode_envelope(raw)

    assert envelope.format == MessageFormat.TEXT
    assert envelope.image_url == "https://quickchart.io/chart?c=x"
    assert envelope.caption == "This month"


def test_decode_strips_code_fences() -> None:
    raw = '```json\n{"format": "text", "content": "hi"}\n```'

    assert decode_envelope(raw).content == "hi"


def test_strip_code_fences_leaves_plain_text() -> None:
    assert strip_code_fences("  hello  ") == "hello"


def test_unknown_format_becomes_text() -> None:
    envelope = decode_envelope('{"format": "markdown", "content": "hi"}')

    assert envelope.format == MessageFormat.TEXT


def test_missing_content_gets_placeholder() -> None:
    envelope = decode_envelope('{"format": "text", "content": "   "}')

    assert envelope.content == EMPTY_CONTENT_REPLY


def test_blank_optional_fields_become_none() -> None:
    envelope = decode_envelope('{"content": "hi", "imageUrl": "", "templateName": 5}')

    assert envelope.image_url is None
    assert envelope.template_name is None


def test_nested_template_params_are_dropped() -> None:
    raw = json.dumps(
        {
            "format": "template",
            "templateName": "hello_world",
            "content": "hi",
            "templateParams": {"name": "Ana", "total": 12.5, "items": [1, 2], "meta": {"a": 1}},
        }
    )

    envelope = decode_envelope(raw)

    assert envelope.template_params == {"name": "Ana", "total": 12.5}


@pytest.mark.parametrize("raw", [None, "", "   ", "not json", "[1, 2]", '"just a string"'])
def test_decode_rejects_non_objects(raw) -> None:
    with pytest.raises(MalformedModelOutputError):
        decode_envelope(raw)


def test_parse_falls_back_to_raw_text() -> None:
    envelope = parse_envelope("You spent $12 today.")

    assert envelope == ReplyEnvelope.text("You spent $12 today.")


def test_parse_empty_output_uses_placeholder() -> None:
    assert parse_envelope(None).content == EMPTY_CONTENT_REPLY


def test_parse_keeps_serialized_content_as_is() -> None:
    inner = '{"format": "text", "content": "nested"}'

    envelope = parse_envelope(json.dumps({"format": "text", "content": inner}))

    assert envelope.content == inner
    assert looks_like_serialized_object(envelope.content)


@pytest.mark.parametrize(
    "content, expected",
    [('{"a": 1}', True), ("[1, 2]", True), ("{not json}", False), ("Total: {none}", False), ("hi", False)],
)
def test_looks_like_serialized_object(content, expected) -> None:
    assert looks_like_serialized_object(content) is expected


def test_approved_template_is_kept() -> None:
    envelope = ReplyEnvelope(format="template", content="hi", template_name="hello_world")

    assert enforce_template_policy(envelope, APPROVED) is envelope


@pytest.mark.parametrize("name", [None, "made_up_template"])
def test_unapproved_template_degrades_to_text(name) -> None:
    envelope = ReplyEnvelope(
        format="template", content="hi", template_name=name, template_params={"a": "b"}
    )

    result = enforce_template_policy(envelope, APPROVED)

    assert result.format == MessageFormat.TEXT
    assert result.template_name is None
    assert result.template_params is None
    assert result.content == "hi"


def test_parse_applies_template_policy() -> None:
    raw = '{"format": "template", "templateName": "invented", "content": "hi"}'

    assert parse_envelope(raw, APPROVED).format == MessageFormat.TEXT
    assert parse_envelope(raw, ["invented"]).template_name == "invented"


def test_snake_case_keys_are_accepted() -> None:
    envelope = decode_envelope(
        json.dumps(
            {
                "format": "template",
                "content": "hi",
                "template_name": "hello_world",
                "template_params": {"name": "Ana"},
                "image_url": "https://example.com/c.png",
            }
        )
    )

    assert envelope.template_name == "hello_world"
    assert envelope.template_params == {"name": "Ana"}
    assert envelope.image_url == "https://example.com/c.png"


def test_camel_case_wins_over_snake_case() -> None:
    envelope = decode_envelope(
        '{"content": "hi", "imageUrl": "https://example.com/a.png", "image_url": "https://example.com/b.png"}'
    )

    assert envelope.image_url == "https://example.com/a.png"
