"""
WhatsApp Cloud API Session

Session backed by the WhatsApp Business Cloud API (Meta Graph API).
- initialize: verify credentials by reading the phone-number resource
- send: /messages (text) and /media + /messages (audio/document)
- inbound: delivered by the Meta webhook router (see webhook.py)

No retries. Failures raise WhatsAppSessionError; callers decide.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

import httpx

from relay.phone import TRANSPORT_SUFFIX, to_transport_address

from .schemas import Chat, MessageMedia, TransportMessage, WhatsAppMessageResponse
from .session import WhatsAppSession, WhatsAppSessionError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://graph.facebook.com"

# Graph API rejects the non-standard "audio/mp3"
_UPLOAD_MIMETYPES = {"audio/mp3": "audio/mpeg"}


class CloudApiSession(WhatsAppSession):
    """
    WhatsApp session over the Cloud API.

    Every successful send emits message_create with from_me=True,
    mirroring what WhatsApp Web clients report for their own messages.
    """

    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        api_version: str = "v18.0",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__()
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_url = f"{base_url.rstrip('/')}/{api_version}"
        self.timeout = timeout
        self.http_client = http_client

    # ── Private helpers ────────────────────────────────────────────────────

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self.http_client is None:
            self.http_client = httpx.AsyncClient(timeout=self.timeout)
        return self.http_client

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    @staticmethod
    def _recipient(chat_id: str) -> str:
        return chat_id.split("@", 1)[0]

    async def _post_message(self, payload: dict[str, Any]) -> WhatsAppMessageResponse:
        client = await self._get_http_client()
        try:
            response = await client.post(
                f"{self.api_url}/{self.phone_number_id}/messages",
                json={
                    "messaging_product": "whatsapp",
                    "recipient_type": "individual",
                    **payload,
                },
                headers=self._headers,
            )
        except httpx.RequestError as e:
            raise WhatsAppSessionError(f"HTTP request failed: {e}")

        if response.status_code != 200:
            logger.error(
                f"WhatsApp API error: {response.status_code} - {response.text}",
                extra={"status_code": response.status_code, "error_body": response.text},
            )
            raise WhatsAppSessionError(f"WhatsApp API returned {response.status_code}")

        try:
            return WhatsAppMessageResponse(**response.json())
        except (ValueError, TypeError) as e:
            raise WhatsAppSessionError(f"Unreadable WhatsApp API response: {e}")

    async def _upload_media(self, media: MessageMedia) -> str:
        client = await self._get_http_client()
        mimetype = _UPLOAD_MIMETYPES.get(media.mimetype, media.mimetype)
        try:
            response = await client.post(
                f"{self.api_url}/{self.phone_number_id}/media",
                data={"messaging_product": "whatsapp", "type": mimetype},
                files={"file": (media.filename or "media", media.to_bytes(), mimetype)},
                headers=self._headers,
            )
        except httpx.RequestError as e:
            raise WhatsAppSessionError(f"Media upload failed: {e}")

        if response.status_code != 200:
            raise WhatsAppSessionError(f"Media upload returned {response.status_code}")
        try:
            return response.json()["id"]
        except (ValueError, KeyError, TypeError) as e:
            raise WhatsAppSessionError(f"Unreadable media upload response: {e!r}")

    # ── Lifecycle ──────────────────────────────────────────────────────────

    async def initialize(self) -> None:
        client = await self._get_http_client()
        try:
            response = await client.get(
                f"{self.api_url}/{self.phone_number_id}",
                params={"fields": "display_phone_number,verified_name"},
                headers=self._headers,
            )
        except httpx.RequestError as e:
            logger.error(f"Could not reach WhatsApp Cloud API: {e}", exc_info=True)
            return

        if response.status_code in (401, 403):
            await self.emit("auth_failure", response.text)
            return
        if response.status_code != 200:
            logger.error(
                f"WhatsApp Cloud API returned {response.status_code} during initialize",
                extra={"status_code": response.status_code},
            )
            return

        try:
            display_number = response.json().get("display_phone_number", "")
        except (ValueError, AttributeError) as e:
            logger.error(f"Unreadable phone-number resource: {e}")
            return
        self.address = to_transport_address(re.sub(r"\D", "", display_number))
        self._initialized = True
        await self.emit("ready")

    async def destroy(self) -> None:
        was_initialized = self._initialized
        self._initialized = False
        if self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
        if was_initialized:
            await self.emit("disconnected", "session destroyed")

    # ── Operations ─────────────────────────────────────────────────────────

    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        self._require_initialized()
        # Cloud API has no chat lookup; any individual address is sendable
        if not chat_id.endswith(TRANSPORT_SUFFIX) or not self._recipient(chat_id).isdigit():
            return None
        return Chat(id=chat_id, session=self)

    async def send_message(
        self,
        chat_id: str,
        content: Union[str, MessageMedia],
        send_audio_as_voice: bool = False,
    ) -> TransportMessage:
        self._require_initialized()
        recipient = self._recipient(chat_id)

        if isinstance(content, MessageMedia):
            media_id = await self._upload_media(content)
            if send_audio_as_voice or content.is_audio:
                payload = {"to": recipient, "type": "audio", "audio": {"id": media_id}}
            else:
                payload = {
                    "to": recipient,
                    "type": "document",
                    "document": {"id": media_id, "filename": content.filename},
                }
            body, media = "", content
        else:
            payload = {"to": recipient, "type": "text", "text": {"body": content}}
            body, media, media_id = content, None, None

        result = await self._post_message(payload)

        sent = TransportMessage(
            id=result.message_id or "",
            from_=self.address or "",
            to=chat_id,
            body=body,
            from_me=True,
            has_media=media is not None,
            media_id=media_id,
            mime_type=media.mimetype if media else None,
            timestamp=datetime.now(timezone.utc),
            media=media,
        )
        logger.info(f"Message sent to {recipient}", extra={"message_id": sent.id})
        await self.emit("message_create", sent)
        return sent

    async def download_media(self, message: TransportMessage) -> Optional[MessageMedia]:
        if message.media is not None:
            return message.media
        if not message.media_id:
            return None

        client = await self._get_http_client()
        try:
            info = await client.get(f"{self.api_url}/{message.media_id}", headers=self._headers)
            info.raise_for_status()
            meta = info.json()
            content = await client.get(meta["url"], headers=self._headers)
            content.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, KeyError, TypeError) as e:
            raise WhatsAppSessionError(f"Media download failed: {e!r}")

        return MessageMedia.from_bytes(
            meta.get("mime_type") or message.mime_type or "application/octet-stream",
            content.content,
        )
