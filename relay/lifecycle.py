"""Session lifecycle observer: keeps RelayConfig.whatsapp_ready in step with the session."""

import logging

from transport.whatsapp.session import WhatsAppSession

from .state import RelayConfig

logger = logging.getLogger(__name__)


class SessionLifecycleObserver:
    """
    not-ready --ready--> ready --disconnected--> not-ready

    auth_failure is logged only. Reconnecting is the session's business.
    """

    def __init__(self, config: RelayConfig):
        self.config = config

    def attach(self, session: WhatsAppSession) -> None:
        session.on("ready", self.on_ready)
        session.on("disconnected", self.on_disconnected)
        session.on("auth_failure", self.on_auth_failure)

    async def on_ready(self) -> None:
        self.config.mark_ready()
        logger.info("WhatsApp session ready")

    async def on_disconnected(self, reason: str) -> None:
        self.config.mark_not_ready()
        logger.info(f"WhatsApp session disconnected: {reason}")

    async def on_auth_failure(self, message: str) -> None:
        logger.error(f"WhatsApp authentication failure: {message}")
