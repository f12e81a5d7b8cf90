from typing import Any

from chatledger.formatters.base import Formatter
from chatledger.formatters.telegram import TelegramFormatter
from chatledger.formatters.whatsapp import WhatsAppFormatter
from chatledger.models.schemas import Platform, ReplyEnvelope


def build_formatters(whatsapp_language: str = "en_US") -> dict[Platform, Formatter]:
    return {
        Platform.WHATSAPP: WhatsAppFormatter(language_code=whatsapp_language),
        Platform.TELEGRAM: TelegramFormatter(),
    }


FORMATTERS: dict[Platform, Formatter] = build_formatters()


def format_for_platform(
    envelope: ReplyEnvelope,
    platform: Platform,
    recipient: str,
    formatters: dict[Platform, Formatter] | None = None,
) -> dict[str, Any]:
    formatter = (FORMATTERS if formatters is None else formatters).get(platform)
    if formatter is None:
        raise ValueError(f"Unsupported platform: {platform}")
    return formatter.format(envelope, str(recipient))
