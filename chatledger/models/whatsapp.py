"""WhatsApp Cloud API payloads: inbound webhook events and outbound messages."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ── Inbound webhook ─────────────────────────────────────────────────


class Metadata(BaseModel):
    display_phone_number: str
    phone_number_id: str


class Contact(BaseModel):
    wa_id: str


class MessageText(BaseModel):
    body: str


class InboundMessage(BaseModel):
    id: str | None = None
    timestamp: str | None = None
    type: str
    text: MessageText | None = None
    sender: str | None = Field(default=None, alias="from")

    model_config = ConfigDict(populate_by_name=True)


class ChangeValue(BaseModel):
    messaging_product: str = "whatsapp"
    metadata: Metadata
    contacts: list[Contact] = []
    messages: list[InboundMessage] = []


class Change(BaseModel):
    field: str | None = None
    value: ChangeValue


class Entry(BaseModel):
    id: str | None = None
    changes: list[Change] = []


class WebhookPayload(BaseModel):
    object: str | None = None
    entry: list[Entry] = []


# ── Outbound messages ───────────────────────────────────────────────


class TextBody(BaseModel):
    body: str


class WhatsAppTextMessage(BaseModel):
    messaging_product: Literal["whatsapp"] = "whatsapp"
    to: str
    text: TextBody


class TemplateParameter(BaseModel):
    type: Literal["text"] = "text"
    text: str


class TemplateComponent(BaseModel):
    type: Literal["body"] = "body"
    parameters: list[TemplateParameter]


class TemplateLanguage(BaseModel):
    code: str


class Template(BaseModel):
    name: str
    language: TemplateLanguage
    components: list[TemplateComponent] | None = None


class WhatsAppTemplateMessage(BaseModel):
    messaging_product: Literal["whatsapp"] = "whatsapp"
    to: str
    type: Literal["template"] = "template"
    template: Template


class ImageLink(BaseModel):
    link: str
    caption: str | None = None


class WhatsAppImageMessage(BaseModel):
    messaging_product: Literal["whatsapp"] = "whatsapp"
    to: str
    type: Literal["image"] = "image"
    image: ImageLink
