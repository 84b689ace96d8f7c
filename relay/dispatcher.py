"""
Outbound Dispatcher

Sends text and synthesized voice messages to a phone number.
Every failure is logged and swallowed: callers only learn a boolean.
"""

import asyncio
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from services.tts import TTSBackend, TTSRequest
from transport.whatsapp.schemas import Chat, MessageMedia
from transport.whatsapp.session import WhatsAppSession, WhatsAppSessionError

from .phone import to_transport_address

logger = logging.getLogger(__name__)


class OutboundDispatcher:
    """Resolves chat handles and pushes text or voice through the session."""

    def __init__(
        self,
        session: WhatsAppSession,
        tts: TTSBackend,
        audio_dir: str = "audios",
        language: str = "pt",
    ):
        self.session = session
        self.tts = tts
        self.audio_dir = Path(audio_dir)
        self.language = language

    async def _resolve_chat(self, address: str) -> Optional[Chat]:
        chat = await self.session.get_chat_by_id(address)
        if chat is None:
            logger.warning(f"Chat not found for {address}")
        return chat

    def _new_audio_path(self) -> Path:
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        return self.audio_dir / f"audio_{timestamp}.mp3"

    async def send_text(self, phone: str, message: str) -> bool:
        """Send a text message. Returns True if the session accepted it."""
        address = to_transport_address(phone)
        try:
            chat = await self._resolve_chat(address)
            if chat is None:
                return False
            await chat.send_message(message)
        except WhatsAppSessionError as e:
            logger.error(f"Failed to send WhatsApp message: {e}", extra={"to": address})
            return False
        return True

    async def send_audio(self, phone: str, message: str) -> bool:
        """
        Synthesize message as speech and send it as a voice note.

        The intermediate audio file is removed on every exit path.
        """
        address = to_transport_address(phone)
        request = TTSRequest(text=message, language=self.language)
        audio_path = None

        try:
            audio_path = self._new_audio_path()
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(
                None, self.tts.synthesize_to_file, request, str(audio_path)
            )
            if not result.ok:
                logger.error(
                    f"Audio synthesis failed: {result.error_type}",
                    extra={"to": address, "metadata": result.metadata},
                )
                return False

            media = MessageMedia.from_bytes("audio/mp3", audio_path.read_bytes(), audio_path.name)

            chat = await self._resolve_chat(address)
            if chat is None:
                return False
            await self.session.send_message(address, media, send_audio_as_voice=True)
        except (WhatsAppSessionError, OSError) as e:
            logger.error(f"Failed to send WhatsApp audio: {e}", extra={"to": address})
            return False
        finally:
            if audio_path is not None and audio_path.exists():
                os.remove(audio_path)
        return True
