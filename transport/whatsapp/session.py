"""
WhatsApp Session Boundary

Abstract session the relay talks to. Concrete sessions (Cloud API, stub)
implement connection, sending and media download; this base class owns
the event registry and the initialized state.

Events:
  ready                          session usable for sends
  disconnected(reason)           session lost
  auth_failure(message)          credentials rejected
  message(TransportMessage)      inbound message
  message_create(TransportMessage)  any message created by this session
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, Union

from .schemas import Chat, MessageMedia, TransportMessage

logger = logging.getLogger(__name__)

EventHandler = Callable[..., Awaitable[None]]

SESSION_EVENTS = ("ready", "disconnected", "auth_failure", "message", "message_create")


class WhatsAppSessionError(Exception):
    """Session operation failed."""
    pass


class SessionNotInitializedError(WhatsAppSessionError):
    """Session used before initialize() completed."""
    pass


class WhatsAppSession(ABC):
    """
    Abstract WhatsApp session.
    Relay code must depend ONLY on this interface.
    """

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._initialized = False
        self.address: Optional[str] = None  # own transport address once known

    # ── Events ────────────────────────────────────────────────────────────

    def on(self, event: str, handler: EventHandler) -> None:
        """Register an async handler for a session event."""
        if event not in SESSION_EVENTS:
            raise ValueError(f"Unknown session event: {event}")
        self._handlers[event].append(handler)

    async def emit(self, event: str, *args: Any) -> None:
        """
        Run every handler registered for event, in registration order.

        A failing handler is logged and does not stop the others.
        """
        for handler in list(self._handlers[event]):
            try:
                await handler(*args)
            except Exception as e:
                logger.error(
                    f"Handler for '{event}' failed: {e}",
                    exc_info=True,
                    extra={"event": event},
                )

    async def dispatch_inbound(self, message: TransportMessage) -> None:
        """Deliver an inbound message; dropped while not initialized."""
        if not self._initialized:
            logger.warning(
                "Inbound message dropped: session not initialized",
                extra={"message_id": message.id},
            )
            return
        await self.emit("message", message)

    # ── State ─────────────────────────────────────────────────────────────

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise SessionNotInitializedError("WhatsApp session not initialized")

    # ── Operations ────────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Connect the session; emits ready or auth_failure."""
        raise NotImplementedError

    @abstractmethod
    async def destroy(self) -> None:
        """Tear the session down; emits disconnected."""
        raise NotImplementedError

    @abstractmethod
    async def get_chat_by_id(self, chat_id: str) -> Optional[Chat]:
        """
        Resolve a chat handle for a transport address.

        Returns:
            Chat, or None if the address cannot be resolved

        Raises:
            SessionNotInitializedError: called before initialize()
        """
        raise NotImplementedError

    @abstractmethod
    async def send_message(
        self,
        chat_id: str,
        content: Union[str, MessageMedia],
        send_audio_as_voice: bool = False,
    ) -> TransportMessage:
        """
        Send text or media to a transport address.

        Emits message_create for the sent message.

        Raises:
            SessionNotInitializedError: called before initialize()
            WhatsAppSessionError: send failed
        """
        raise NotImplementedError

    @abstractmethod
    async def download_media(self, message: TransportMessage) -> Optional[MessageMedia]:
        """
        Fetch the media attached to a message.

        Raises:
            WhatsAppSessionError: download failed
        """
        raise NotImplementedError
