"""
Infrastructure configuration system.

Environment-based backend selection with sensible defaults.
"""

import os
from typing import Optional, Literal
from dataclasses import dataclass

from relay.state import DEFAULT_WEBHOOK_URL
from services.tts import TTSBackend, GTTSBackend, NoOpTTSBackend, StubTTSBackend
from transport.whatsapp import CloudApiSession, StubWhatsAppSession, WebhookSecrets, WhatsAppSession


TransportBackendType = Literal["cloud", "stub"]
TTSBackendType = Literal["gtts", "stub"]


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Transport
    transport_backend: TransportBackendType
    whatsapp_access_token: str
    whatsapp_phone_number_id: str
    whatsapp_api_version: str
    whatsapp_api_base_url: str

    # TTS
    tts_enabled: bool
    tts_backend: TTSBackendType
    tts_language: str
    audio_dir: str

    # Webhook
    webhook_url: str
    webhook_timeout_s: float

    # Meta webhook security
    whatsapp_app_secret: str = ""
    whatsapp_verify_token: str = ""

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults: Cloud API transport, Portuguese gTTS voice and the
        n8n webhook on localhost.
        """
        return cls(
            # Transport Configuration
            transport_backend=os.getenv("TRANSPORT_BACKEND", "cloud"),  # type: ignore
            whatsapp_access_token=os.getenv("WHATSAPP_ACCESS_TOKEN", ""),
            whatsapp_phone_number_id=os.getenv("WHATSAPP_PHONE_NUMBER_ID", ""),
            whatsapp_api_version=os.getenv("WHATSAPP_API_VERSION", "v18.0"),
            whatsapp_api_base_url=os.getenv("WHATSAPP_API_BASE_URL", "https://graph.facebook.com"),

            # TTS Configuration
            tts_enabled=os.getenv("TTS_ENABLED", "true").lower() == "true",
            tts_backend=os.getenv("TTS_BACKEND", "gtts"),  # type: ignore
            tts_language=os.getenv("TTS_LANGUAGE", "pt"),
            audio_dir=os.getenv("AUDIO_DIR", "./audios"),

            # Webhook Configuration
            webhook_url=os.getenv("WEBHOOK_URL") or DEFAULT_WEBHOOK_URL,
            webhook_timeout_s=float(os.getenv("WEBHOOK_TIMEOUT_S", "30")),

            # Meta Webhook Security
            whatsapp_app_secret=os.getenv("WHATSAPP_APP_SECRET", ""),
            whatsapp_verify_token=os.getenv("WHATSAPP_VERIFY_TOKEN", ""),
        )

    def create_session(self) -> WhatsAppSession:
        """Create WhatsApp session based on configuration."""
        if self.transport_backend == "stub":
            return StubWhatsAppSession()
        return CloudApiSession(
            access_token=self.whatsapp_access_token,
            phone_number_id=self.whatsapp_phone_number_id,
            api_version=self.whatsapp_api_version,
            base_url=self.whatsapp_api_base_url,
        )

    def create_tts_backend(self) -> TTSBackend:
        """Create TTS backend instance based on configuration."""
        if not self.tts_enabled:
            return NoOpTTSBackend()
        if self.tts_backend == "stub":
            return StubTTSBackend()
        return GTTSBackend(language=self.tts_language)

    def webhook_secrets(self) -> WebhookSecrets:
        """Secrets checked on inbound Meta webhook calls."""
        return WebhookSecrets(
            app_secret=self.whatsapp_app_secret,
            verify_token=self.whatsapp_verify_token,
        )

    def validate(self) -> list[str]:
        """Names of missing settings required by the selected backends."""
        missing = []
        if self.transport_backend == "cloud":
            if not self.whatsapp_access_token:
                missing.append("WHATSAPP_ACCESS_TOKEN")
            if not self.whatsapp_phone_number_id:
                missing.append("WHATSAPP_PHONE_NUMBER_ID")
            if not self.whatsapp_app_secret:
                missing.append("WHATSAPP_APP_SECRET")
        return missing


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the environment."""
    return InfraConfig.from_env()
