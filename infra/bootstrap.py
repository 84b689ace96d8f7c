"""
Infrastructure initialization and bootstrap.

Builds the relay from configuration and wires its components to the
WhatsApp session. One instance per application, stored on app.state.
"""

import logging
from typing import Optional

import httpx

from relay import (
    OutboundDispatcher,
    RelayConfig,
    SessionLifecycleObserver,
    WebhookForwarder,
)
from services.tts import TTSBackend
from transport.whatsapp import WhatsAppSession

from .config import InfraConfig, get_config

logger = logging.getLogger(__name__)


class RelayBootstrap:
    """
    Owns the relay configuration handle, the session and every
    component that depends on them.

    Session, TTS backend and webhook HTTP client may be injected (tests, offline runs);
    otherwise they are created from configuration.
    """

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        session: Optional[WhatsAppSession] = None,
        tts_backend: Optional[TTSBackend] = None,
        relay_config: Optional[RelayConfig] = None,
        webhook_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_config()
        self.relay_config = relay_config or RelayConfig(webhook_url=self.config.webhook_url)
        self.session = session or self.config.create_session()
        self.tts_backend = tts_backend or self.config.create_tts_backend()

        self.forwarder = WebhookForwarder(
            self.relay_config,
            self.session,
            timeout=self.config.webhook_timeout_s,
            http_client=webhook_client,
        )
        self.dispatcher = OutboundDispatcher(
            self.session,
            self.tts_backend,
            audio_dir=self.config.audio_dir,
            language=self.config.tts_language,
        )
        self.lifecycle = SessionLifecycleObserver(self.relay_config)

        # Observers first so ready/disconnected land before anything else
        self.lifecycle.attach(self.session)
        self.forwarder.attach(self.session)

    async def start(self) -> None:
        """Initialize the session."""
        missing = self.config.validate()
        if missing:
            logger.warning(f"Missing required environment variables: {', '.join(missing)}")
        await self.session.initialize()

    async def stop(self) -> None:
        """Destroy the session and release HTTP clients."""
        await self.session.destroy()
        await self.forwarder.close()

    def __repr__(self) -> str:
        """String representation showing configured backends."""
        return (
            f"RelayBootstrap(transport={self.config.transport_backend}, "
            f"tts={self.config.tts_backend if self.config.tts_enabled else 'disabled'}, "
            f"webhook={self.relay_config.webhook_url})"
        )


def bootstrap_relay(config: Optional[InfraConfig] = None) -> RelayBootstrap:
    """
    Build a relay from configuration.

    Args:
        config: Optional custom configuration

    Returns:
        RelayBootstrap with all components wired
    """
    return RelayBootstrap(config)
