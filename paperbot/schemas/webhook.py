from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, Field


class TextContent(BaseModel):
    body: str = ""


class ReplyContent(BaseModel):
    id: str = Field(min_length=1)
    title: Optional[str] = None
    description: Optional[str] = None


class InteractiveContent(BaseModel):
    """Interactive payload; only button and list replies count as choices.

    Other kinds (e.g. ``nfm_reply`` from Flows) are kept but carry no choice.
    """

    type: Optional[str] = None  # button_reply, list_reply, nfm_reply, ...
    button_reply: Optional[ReplyContent] = None
    list_reply: Optional[ReplyContent] = None

    @property
    def choice_id(self) -> Optional[str]:
        reply = self.button_reply or self.list_reply
        return reply.id if reply else None


class InboundMessage(BaseModel):
    """One decoded user event: free text or a choice selection."""

    sender: str
    message_id: str
    text: str = ""
    choice_id: Optional[str] = None

    @property
    def is_choice(self) -> bool:
        return self.choice_id is not None


class WhatsAppMessage(BaseModel):
    sender: str = Field(min_length=1, validation_alias=AliasChoices("from", "sender"))
    id: str = Field(min_length=1)
    timestamp: Optional[Union[str, int]] = None
    type: Optional[str] = None
    text: Optional[TextContent] = None
    interactive: Optional[InteractiveContent] = None

    def to_inbound(self) -> InboundMessage:
        return InboundMessage(
            sender=self.sender,
            message_id=self.id,
            text=self.text.body if self.text else "",
            choice_id=self.interactive.choice_id if self.interactive else None,
        )


class WebhookValue(BaseModel):
    messaging_product: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    contacts: list[dict[str, Any]] = []
    messages: list[WhatsAppMessage] = []
    statuses: list[dict[str, Any]] = []


class WebhookChange(BaseModel):
    field: Optional[str] = None
    value: WebhookValue


class WebhookEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WebhookChange] = []


class WebhookEnvelope(BaseModel):
    object: str = Field(min_length=1)
    entry: list[WebhookEntry] = []

    def first_message(self) -> Optional[WhatsAppMessage]:
        """entry[0].changes[0].value.messages[0], or None for status-only callbacks."""
        if not self.entry or not self.entry[0].changes:
            return None
        messages = self.entry[0].changes[0].value.messages
        return messages[0] if messages else None


class WebhookAck(BaseModel):
    success: bool
    message: str
