from typing import Any

from chatledger.models.schemas import MessageFormat, ReplyEnvelope
from chatledger.models.whatsapp import (
    ImageLink,
    Template,
    TemplateComponent,
    TemplateLanguage,
    TemplateParameter,
    TextBody,
    WhatsAppImageMessage,
    WhatsAppTemplateMessage,
    WhatsAppTextMessage,
)

METADATA_PREFIX = "_"


class WhatsAppFormatter:
    def __init__(self, language_code: str = "en_US"):
        self.language_code = language_code

    def format(self, envelope: ReplyEnvelope, recipient: str) -> dict[str, Any]:
        if envelope.image_url:
            message = WhatsAppImageMessage(
                to=recipient,
                image=ImageLink(link=envelope.image_url, caption=envelope.caption or envelope.content),
            )
        elif envelope.format == MessageFormat.TEMPLATE and envelope.template_name:
            message = self._template(envelope, recipient)
        else:
            # includes template replies without a name
            message = WhatsAppTextMessage(to=recipient, text=TextBody(body=envelope.content))
        return message.model_dump(exclude_none=True)

    def _template(self, envelope: ReplyEnvelope, recipient: str) -> WhatsAppTemplateMessage:
        return WhatsAppTemplateMessage(
            to=recipient,
            template=Template(
                name=envelope.template_name,
                language=TemplateLanguage(code=self.language_code),
                components=build_template_components(envelope.template_params),
            ),
        )


def build_template_components(params: dict[str, Any] | None) -> list[TemplateComponent] | None:
    """One body component with a positional text parameter per value, in order.

    Keys starting with ``_`` are metadata and are not sent.
    """
    if not params:
        return None
    parameters = [
        TemplateParameter(text=str(value))
        for key, value in params.items()
        if not key.startswith(METADATA_PREFIX)
    ]
    if not parameters:
        return None
    return [TemplateComponent(parameters=parameters)]
