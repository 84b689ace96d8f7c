"""
Infrastructure configuration and bootstrap tests.
"""

import asyncio
from unittest.mock import patch

from infra import InfraConfig, RelayBootstrap, get_config
from relay.state import DEFAULT_WEBHOOK_URL
from services.tts import GTTSBackend, NoOpTTSBackend, StubTTSBackend
from transport.whatsapp import CloudApiSession, StubWhatsAppSession, WebhookSecrets


class TestInfraConfig:

    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = get_config()

        assert config.transport_backend == "cloud"
        assert config.tts_backend == "gtts"
        assert config.tts_language == "pt"
        assert config.audio_dir == "./audios"
        assert config.webhook_url == DEFAULT_WEBHOOK_URL
        assert config.webhook_timeout_s == 30.0

    def test_env_overrides(self):
        env = {
            "TRANSPORT_BACKEND": "stub",
            "TTS_ENABLED": "false",
            "WEBHOOK_URL": "http://n8n.internal/webhook/x",
            "WEBHOOK_TIMEOUT_S": "5",
            "WHATSAPP_APP_SECRET": "app-secret",
            "WHATSAPP_VERIFY_TOKEN": "verify-me",
        }
        with patch.dict("os.environ", env, clear=True):
            config = InfraConfig.from_env()

        assert config.transport_backend == "stub"
        assert config.tts_enabled is False
        assert config.webhook_url == "http://n8n.internal/webhook/x"
        assert config.webhook_timeout_s == 5.0
        assert config.webhook_secrets() == WebhookSecrets(app_secret="app-secret", verify_token="verify-me")

    def test_cloud_backend_requires_credentials(self):
        with patch.dict("os.environ", {}, clear=True):
            config = get_config()

        assert config.validate() == [
            "WHATSAPP_ACCESS_TOKEN",
            "WHATSAPP_PHONE_NUMBER_ID",
            "WHATSAPP_APP_SECRET",
        ]

    def test_stub_backend_needs_nothing(self, infra_config):
        assert infra_config.validate() == []

    def test_factories(self, infra_config):
        assert isinstance(infra_config.create_session(), StubWhatsAppSession)
        assert isinstance(infra_config.create_tts_backend(), StubTTSBackend)

        infra_config.transport_backend = "cloud"
        infra_config.tts_backend = "gtts"
        assert isinstance(infra_config.create_session(), CloudApiSession)
        assert isinstance(infra_config.create_tts_backend(), GTTSBackend)

        infra_config.tts_enabled = False
        assert isinstance(infra_config.create_tts_backend(), NoOpTTSBackend)


class TestRelayBootstrap:

    def test_wires_components_to_one_session(self, infra_config):
        relay = RelayBootstrap(infra_config)

        assert isinstance(relay.session, StubWhatsAppSession)
        assert relay.forwarder.session is relay.session
        assert relay.dispatcher.session is relay.session
        assert relay.relay_config.webhook_url == "http://n8n.test/webhook/relay"
        assert relay.relay_config.whatsapp_ready is False

    def test_start_and_stop_drive_readiness(self, infra_config):
        relay = RelayBootstrap(infra_config)

        asyncio.run(relay.start())
        assert relay.relay_config.whatsapp_ready is True

        asyncio.run(relay.stop())
        assert relay.relay_config.whatsapp_ready is False

    def test_repr_names_backends(self, infra_config):
        assert "transport=stub" in repr(RelayBootstrap(infra_config))
