"""Turns the reply round's raw output into a ``ReplyEnvelope``.

``decode_envelope`` is strict and raises ``MalformedModelOutputError``.
``parse_envelope`` is the only place that recovers from that: undecodable
output becomes a text envelope carrying the raw text.
"""

import json
import re
from typing import Any, Iterable

from loguru import logger
from pydantic import ValidationError

from chatledger.errors import MalformedModelOutputError
from chatledger.llm.prompts import EMPTY_CONTENT_REPLY
from chatledger.models.schemas import MessageFormat, ReplyEnvelope

_SCALARS = (str, int, float, bool)
_SERIALIZED_OBJECT_RE = re.compile(r"^\s*[\[{].*[\]}]\s*$", re.DOTALL)
# camelCase wins when the model sends both spellings
_SNAKE_TO_CAMEL = {
    "template_name": "templateName",
    "template_params": "templateParams",
    "image_url": "imageUrl",
}


def strip_code_fences(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        lines = [line for line in raw.split("\n") if not line.startswith("```")]
        raw = "\n".join(lines)
    return raw.strip()


def looks_like_serialized_object(content: str) -> bool:
    if not _SERIALIZED_OBJECT_RE.match(content):
        return False
    try:
        return isinstance(json.loads(content), (dict, list))
    except json.JSONDecodeError:
        return False


def decode_envelope(raw: str | None) -> ReplyEnvelope:
    if not raw or not raw.strip():
        raise MalformedModelOutputError("Empty reply from the model")

    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise MalformedModelOutputError(f"Reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedModelOutputError("Reply JSON is not an object")

    data = dict(data)
    for snake, camel in _SNAKE_TO_CAMEL.items():
        if snake in data:
            value = data.pop(snake)
            data.setdefault(camel, value)

    if data.get("format") not in (MessageFormat.TEXT.value, MessageFormat.TEMPLATE.value):
        data["format"] = MessageFormat.TEXT.value
    if not isinstance(data.get("content"), str) or not data["content"].strip():
        data["content"] = EMPTY_CONTENT_REPLY

    params = data.get("templateParams")
    if isinstance(params, dict):
        data["templateParams"] = _flat_params(params)
    else:
        data["templateParams"] = None

    for key in ("templateName", "imageUrl", "caption"):
        if not isinstance(data.get(key), str) or not data[key].strip():
            data[key] = None

    try:
        return ReplyEnvelope.model_validate(data)
    except ValidationError as e:
        raise MalformedModelOutputError(f"Reply does not match the envelope shape: {e}") from e


def _flat_params(params: dict[str, Any]) -> dict[str, Any] | None:
    flat = {str(key): value for key, value in params.items() if isinstance(value, _SCALARS)}
    dropped = len(params) - len(flat)
    if dropped:
        logger.warning("Dropped {} non-scalar template parameter(s)", dropped)
    return flat or None


def enforce_template_policy(
    envelope: ReplyEnvelope, approved_templates: Iterable[str]
) -> ReplyEnvelope:
    """Template replies without a pre-approved template name are sent as text."""
    if envelope.format != MessageFormat.TEMPLATE:
        return envelope
    if envelope.template_name and envelope.template_name in set(approved_templates):
        return envelope
    logger.info("Template {!r} is not approved; sending as text", envelope.template_name)
    return envelope.as_text()


def parse_envelope(raw: str | None, approved_templates: Iterable[str] = ()) -> ReplyEnvelope:
    try:
        envelope = decode_envelope(raw)
    except MalformedModelOutputError as e:
        logger.warning("Falling back to a plain text reply: {}", e)
        envelope = ReplyEnvelope.text((raw or "").strip() or EMPTY_CONTENT_REPLY)

    if looks_like_serialized_object(envelope.content):
        logger.warning("Reply content looks like a serialized object")

    return enforce_template_policy(envelope, approved_templates)
