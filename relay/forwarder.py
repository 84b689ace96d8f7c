"""
Webhook Forwarder

Relays WhatsApp message events to the configured webhook (n8n).

Rules:
- One POST per event, no retries
- Failures are logged and swallowed; the caller gets None
- Each event is forwarded independently (no ordering guarantee)
"""

import logging
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from transport.whatsapp.schemas import TransportMessage
from transport.whatsapp.session import WhatsAppSession, WhatsAppSessionError

from .phone import to_public_phone
from .state import RelayConfig

logger = logging.getLogger(__name__)

MessageType = Literal["text", "audio"]


class RelayedMessageEvent(BaseModel):
    """Body POSTed to the webhook. Field names are the wire contract."""

    model_config = ConfigDict(frozen=True)

    senderPhone: str
    receiverPhone: str
    messageType: MessageType = "text"
    mediaBase64: Optional[str] = None
    message: str = ""
    isFromUser: bool = True


class WebhookForwarder:
    """
    Forwards inbound ("message") and self-sent ("message_create")
    events to RelayConfig.webhook_url.
    """

    def __init__(
        self,
        config: RelayConfig,
        session: WhatsAppSession,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.session = session
        self.timeout = timeout
        self.http_client = http_client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(timeout=self.timeout)
        return self.http_client

    async def close(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None

    def attach(self, session: Optional[WhatsAppSession] = None) -> None:
        """Subscribe to the session's message events."""
        session = session or self.session
        session.on("message", self.on_message)
        session.on("message_create", self.on_message_create)

    async def forward(
        self,
        message: str,
        sender: str,
        receiver: str,
        message_type: MessageType = "text",
        media_base64: Optional[str] = None,
        is_from_user: bool = True,
    ) -> Optional[httpx.Response]:
        """
        POST one relayed event to the current webhook URL.

        Returns:
            The webhook response, or None if delivery failed
        """
        event = RelayedMessageEvent(
            senderPhone=to_public_phone(sender),
            receiverPhone=to_public_phone(receiver),
            messageType=message_type,
            mediaBase64=media_base64,
            message=message,
            isFromUser=is_from_user,
        )
        url = self.config.webhook_url

        try:
            client = await self._get_http_client()
            response = await client.post(url, json=event.model_dump())
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                f"Failed to deliver message to webhook: {e}",
                extra={"webhook_url": url, "sender": event.senderPhone},
            )
            return None

        logger.debug(
            f"Forwarded {event.messageType} message from {event.senderPhone}",
            extra={"webhook_url": url, "status_code": response.status_code},
        )
        return response

    async def _extract_media(self, msg: TransportMessage) -> tuple[MessageType, Optional[str]]:
        """Only audio media travels to the webhook; anything else is relayed as text."""
        if not msg.has_media:
            return "text", None
        try:
            media = await self.session.download_media(msg)
        except WhatsAppSessionError as e:
            logger.error(
                f"Media download failed, relaying as text: {e}",
                extra={"message_id": msg.id},
            )
            return "text", None
        if media is not None and media.is_audio:
            return "audio", media.data
        return "text", None

    async def on_message(self, msg: TransportMessage) -> Optional[httpx.Response]:
        """Inbound message from a contact."""
        message_type, media_base64 = await self._extract_media(msg)
        return await self.forward(
            msg.body, msg.from_, msg.to, message_type, media_base64, is_from_user=True
        )

    async def on_message_create(self, msg: TransportMessage) -> Optional[httpx.Response]:
        """Message created by this session; only our own messages are relayed."""
        if not msg.from_me:
            return None
        message_type, media_base64 = await self._extract_media(msg)
        return await self.forward(
            msg.body, msg.from_, msg.to, message_type, media_base64, is_from_user=False
        )
