"""
WhatsApp Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines what the relay sees of a WhatsApp session: messages, media,
chat handles, and the Meta webhook payload they are parsed from.
"""

import base64
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .session import WhatsAppSession


# ============================================================================
# MEDIA
# ============================================================================

class MessageMedia(BaseModel):
    """Media attachment, base64 encoded like the WhatsApp Web clients expose it."""

    mimetype: str
    data: str = Field(..., description="Base64 encoded payload")
    filename: Optional[str] = None

    @classmethod
    def from_bytes(
        cls,
        mimetype: str,
        raw: bytes,
        filename: Optional[str] = None,
    ) -> "MessageMedia":
        return cls(
            mimetype=mimetype,
            data=base64.b64encode(raw).decode("ascii"),
            filename=filename,
        )

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def is_audio(self) -> bool:
        return self.mimetype.startswith("audio/")


# ============================================================================
# TRANSPORT MESSAGE (THE EVENT PAYLOAD)
# ============================================================================

class TransportMessage(BaseModel):
    """
    A message observed by the session.

    Addresses are transport addresses ("<digits>@c.us").
    Emitted with the "message" event (inbound) and the
    "message_create" event (anything the session itself sent).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    from_: str = Field(..., alias="from")
    to: str
    body: str = ""
    from_me: bool = False
    has_media: bool = False
    media_id: Optional[str] = None
    mime_type: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Media the session already holds (self-sent attachments); never serialized
    media: Optional[MessageMedia] = Field(None, exclude=True)


@dataclass(frozen=True)
class Chat:
    """
    Resolved chat handle for a transport address.

    Thin proxy back to the owning session.
    """

    id: str
    session: "WhatsAppSession"

    async def send_message(self, content: str) -> TransportMessage:
        return await self.session.send_message(self.id, content)


# ============================================================================
# META WEBHOOK PAYLOAD SCHEMAS (INPUT)
# ============================================================================

class WhatsAppWebhookPayload(BaseModel):
    """
    Full WhatsApp Cloud API webhook payload.

    ref: https://developers.facebook.com/docs/whatsapp/cloud-api/webhooks/payload-example
    """

    model_config = ConfigDict(extra="allow")  # WhatsApp may add fields

    object: str = Field(..., description="Always 'whatsapp_business_account'")
    entry: list[dict] = Field(..., description="Webhook entries")


class WhatsAppMessageResponse(BaseModel):
    """Response from WhatsApp Cloud API when sending a message."""

    model_config = ConfigDict(extra="allow")

    messaging_product: str = Field(default="whatsapp")
    contacts: list[dict[str, str]] = Field(default_factory=list)
    messages: list[dict[str, str]] = Field(default_factory=list)

    @property
    def message_id(self) -> Optional[str]:
        if not self.messages:
            return None
        return self.messages[0].get("id")
