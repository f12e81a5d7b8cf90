from typing import Any, Protocol

from chatledger.models.schemas import ReplyEnvelope


class Formatter(Protocol):
    """Turns a platform-agnostic reply into the wire message one platform expects."""

    def format(self, envelope: ReplyEnvelope, recipient: str) -> dict[str, Any]: ...
