import json
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

CENT = Decimal("0.01")
UNCATEGORIZED = "uncategorized"


def normalize_category(category: str | None) -> str | None:
    """Lower-case and trim a category; blank categories become ``None``."""
    if category is None:
        return None
    normalized = category.strip().lower()
    return normalized or None


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class Platform(str, Enum):
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"


class MessageFormat(str, Enum):
    TEXT = "text"
    TEMPLATE = "template"


# ── Capabilities ────────────────────────────────────────────────────


class ArgumentSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["string", "number", "integer", "boolean"]
    description: str
    required: bool = False
    enum: tuple[str, ...] | None = None


class CapabilityDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    arguments: dict[str, ArgumentSpec] = {}

    @property
    def required_arguments(self) -> list[str]:
        return [name for name, spec in self.arguments.items() if spec.required]


class OperationRequest(BaseModel):
    call_id: str
    name: str
    arguments: dict[str, Any] = {}


class OperationSuccess(BaseModel):
    status: Literal["success"] = "success"
    call_id: str
    name: str
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        return True

    def to_tool_content(self) -> str:
        return json.dumps({"success": True, **self.payload})


class OperationFailure(BaseModel):
    status: Literal["failure"] = "failure"
    call_id: str
    name: str
    reason: str
    message: str

    @property
    def ok(self) -> bool:
        return False

    def to_tool_content(self) -> str:
        return json.dumps({"success": False, "error": self.reason, "message": self.message})


OperationResult = Annotated[OperationSuccess | OperationFailure, Field(discriminator="status")]


# ── Ledger ──────────────────────────────────────────────────────────


class LedgerRecord(BaseModel):
    id: int | None = None
    owner_id: int
    amount: Decimal = Field(gt=0)
    description: str | None = None
    category: str | None = None
    date: date
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("amount")
    @classmethod
    def _round_amount(cls, value: Decimal) -> Decimal:
        rounded = to_cents(value)
        if rounded <= 0:
            raise ValueError("amount must be at least 0.01")
        return rounded

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str | None) -> str | None:
        return normalize_category(value)

    @property
    def date_text(self) -> str:
        return self.date.isoformat()

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe view sent to the model."""
        return {
            "id": self.id,
            "amount": float(self.amount),
            "description": self.description,
            "category": self.category,
            "date": self.date_text,
        }


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    @property
    def start_text(self) -> str:
        return self.start.isoformat()

    @property
    def end_text(self) -> str:
        return self.end.isoformat()

    def contains_text(self, day: str) -> bool:
        # ISO dates order lexically, so plain string comparison is enough
        return self.start_text <= day <= self.end_text


class User(BaseModel):
    id: int | None = None
    external_id: str
    name: str


# ── Replies ─────────────────────────────────────────────────────────


Scalar = str | int | float | bool


class ReplyEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    format: MessageFormat = MessageFormat.TEXT
    content: str
    template_name: str | None = Field(default=None, alias="templateName")
    template_params: dict[str, Scalar] | None = Field(default=None, alias="templateParams")
    image_url: str | None = Field(default=None, alias="imageUrl")
    caption: str | None = None

    @classmethod
    def text(cls, content: str) -> "ReplyEnvelope":
        return cls(format=MessageFormat.TEXT, content=content)

    def as_text(self) -> "ReplyEnvelope":
        """Same reply with the template part dropped."""
        return self.model_copy(
            update={
                "format": MessageFormat.TEXT,
                "template_name": None,
                "template_params": None,
            }
        )


# ── HTTP ────────────────────────────────────────────────────────────


class MessageRequest(BaseModel):
    message: str
    owner_id: int
    platform: Platform = Platform.TELEGRAM
    recipient: str | None = None


class MessageResponse(BaseModel):
    envelope: ReplyEnvelope
    outbound: dict[str, Any]


class ExpenseOut(BaseModel):
    id: int
    amount: Decimal
    description: str | None = None
    category: str | None = None
    date: date
    created_at: datetime


class TotalOut(BaseModel):
    owner_id: int
    total: Decimal
