from typing import Any

from chatledger.models.schemas import ReplyEnvelope


class TelegramFormatter:
    """Telegram gets plain text only; ``format`` and template fields are ignored.

    Output keys match the keyword arguments of ``Bot.send_message`` and
    ``Bot.send_photo``.
    """

    def format(self, envelope: ReplyEnvelope, recipient: str) -> dict[str, Any]:
        if envelope.image_url:
            return {
                "chat_id": recipient,
                "photo": envelope.image_url,
                "caption": envelope.caption or envelope.content,
            }
        return {"chat_id": recipient, "text": envelope.content}
