"""
Stub WhatsApp session for testing and offline development.

Deterministic, in-memory. Records every send and lets tests drive
lifecycle and inbound events.
"""

import itertools
from datetime import datetime, timezone
from typing import Optional, Union

from .schemas import Chat, MessageMedia, TransportMessage
from .session import WhatsAppSession, WhatsAppSessionError


class StubWhatsAppSession(WhatsAppSession):
    """
    Fake session.

    Args:
        address: Own transport address
        auto_ready: Emit ready from initialize()
        fail_sends: Every send raises WhatsAppSessionError
        known_chats: Addresses get_chat_by_id resolves; None resolves all
    """

    def __init__(
        self,
        address: str = "5511900000000@c.us",
        auto_ready: bool = True,
        fail_sends: bool = False,
        known_chats: Optional[set[str]] = None,
    ):
        super().__init__()
        self.address = address
        self.auto_ready = auto_ready
        self.fail_sends = fail_sends
        self.known_chats = known_chats
        self.sent: list[tuple[str, Union[str, MessageMedia], bool]] = []
        self.media_store: dict[str, MessageMedia] = {}
        self._ids = itertools.count(1)

    async def initialize(self) -> None:
        self._initialized = True
        if self.auto_ready:
            await self.emit("ready")

    async def destroy(self) -> None:
        if self._initialized:
            self._initialized = False
            await self.emit("disconnected", "session destroyed")

    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        self._require_initialized()
        if self.known_chats is not None and chat_id not in self.known_chats:
            return None
        return Chat(id=chat_id, session=self)

    async def send_message(
        self,
        chat_id: str,
        content: Union[str, MessageMedia],
        send_audio_as_voice: bool = False,
    ) -> TransportMessage:
        self._require_initialized()
        if self.fail_sends:
            raise WhatsAppSessionError("stub send failure")

        self.sent.append((chat_id, content, send_audio_as_voice))
        media = content if isinstance(content, MessageMedia) else None
        sent = TransportMessage(
            id=f"stub-{next(self._ids)}",
            from_=self.address,
            to=chat_id,
            body="" if media else content,
            from_me=True,
            has_media=media is not None,
            mime_type=media.mimetype if media else None,
            timestamp=datetime.now(timezone.utc),
            media=media,
        )
        await self.emit("message_create", sent)
        return sent

    async def download_media(self, message: TransportMessage) -> Optional[MessageMedia]:
        if message.media is not None:
            return message.media
        if message.media_id is None:
            return None
        try:
            return self.media_store[message.media_id]
        except KeyError:
            raise WhatsAppSessionError(f"unknown media id {message.media_id}")

    # ── Simulation helpers ────────────────────────────────────────────────

    async def simulate_ready(self) -> None:
        self._initialized = True
        await self.emit("ready")

    async def simulate_disconnect(self, reason: str = "NAVIGATION") -> None:
        self._initialized = False
        await self.emit("disconnected", reason)

    async def simulate_auth_failure(self, message: str = "auth failed") -> None:
        await self.emit("auth_failure", message)

    async def simulate_message(self, message: TransportMessage) -> None:
        await self.dispatch_inbound(message)
