"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from infra.config import InfraConfig  # noqa: E402
from relay.state import RelayConfig  # noqa: E402
from services.tts import StubTTSBackend  # noqa: E402
from transport.whatsapp import CloudApiSession, StubWhatsAppSession  # noqa: E402


class WebhookRecorder:
    """httpx.MockTransport handler that records every webhook POST."""

    def __init__(self, status_code: int = 200, error: Exception | None = None):
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"received": True})

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    @property
    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def make_recorder():
    """Factory for recorders with a custom status code or transport error."""
    return WebhookRecorder


@pytest.fixture
def webhook_recorder():
    return WebhookRecorder()


@pytest.fixture
def relay_config():
    return RelayConfig(webhook_url="http://n8n.test/webhook/relay")


@pytest.fixture
def stub_session():
    return StubWhatsAppSession()


@pytest.fixture
def infra_config(tmp_path):
    """Offline configuration: stub transport, stub TTS, temp audio dir."""
    return InfraConfig(
        transport_backend="stub",
        whatsapp_access_token="",
        whatsapp_phone_number_id="",
        whatsapp_api_version="v18.0",
        whatsapp_api_base_url="https://graph.test",
        tts_enabled=True,
        tts_backend="stub",
        tts_language="pt",
        audio_dir=str(tmp_path / "audios"),
        webhook_url="http://n8n.test/webhook/relay",
        webhook_timeout_s=5.0,
    )


@pytest.fixture
def stub_tts():
    return StubTTSBackend()


@pytest.fixture
def make_cloud_session():
    """
    Factory for a CloudApiSession backed by a fake Graph API.

    The phone-number resource always answers; the messages and media
    replies can be overridden to simulate malformed responses.
    """

    def factory(messages: httpx.Response | None = None, upload: httpx.Response | None = None):
        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path.endswith("/messages"):
                return messages or httpx.Response(200, json={"messages": [{"id": "wamid.sent"}]})
            if path.endswith("/media"):
                return upload or httpx.Response(200, json={"id": "uploaded-media"})
            return httpx.Response(200, json={"display_phone_number": "5511900000000"})

        return CloudApiSession(
            access_token="TOKEN",
            phone_number_id="PHONE_ID",
            base_url="https://graph.test",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    return factory
