"""
WhatsApp Transport Integration Tests

End-to-end flow: Meta webhook → signature → normalization →
session "message" event → relayed POST to the n8n webhook.
"""

import hashlib
import hmac
import json

import pytest
from fastapi.testclient import TestClient

from infra.bootstrap import RelayBootstrap
from main import create_app
from transport.whatsapp import MessageMedia, StubWhatsAppSession, WebhookSecrets

APP_SECRET = "flow_secret"


def signed(payload: dict) -> tuple[bytes, dict]:
    body = json.dumps(payload).encode()
    signature = "sha256=" + hmac.new(APP_SECRET.encode(), body, hashlib.sha256).hexdigest()
    return body, {"X-Hub-Signature-256": signature, "Content-Type": "application/json"}


def webhook_payload(*messages):
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "waba",
            "changes": [{
                "field": "messages",
                "value": {
                    "messaging_product": "whatsapp",
                    "metadata": {"display_phone_number": "5511900000000", "phone_number_id": "1"},
                    "messages": list(messages),
                },
            }],
        }],
    }


TEXT = {
    "from": "5511988887777",
    "id": "wamid.msg_123",
    "timestamp": "1707500000",
    "type": "text",
    "text": {"body": "Quero um empréstimo"},
}

VOICE = {
    "from": "5511988887777",
    "id": "wamid.voice_1",
    "timestamp": "1707500001",
    "type": "audio",
    "audio": {"id": "media-voice", "mime_type": "audio/ogg; codecs=opus", "voice": True},
}


@pytest.fixture
def session():
    return StubWhatsAppSession()


@pytest.fixture
def client(infra_config, session, stub_tts, webhook_recorder):
    infra_config.whatsapp_app_secret = APP_SECRET
    infra_config.whatsapp_verify_token = "verify-me"
    relay = RelayBootstrap(
        infra_config,
        session=session,
        tts_backend=stub_tts,
        webhook_client=webhook_recorder.client(),
    )
    with TestClient(create_app(relay)) as test_client:
        yield test_client


class TestInboundFlow:

    def test_text_message_relayed(self, client, webhook_recorder):
        body, headers = signed(webhook_payload(TEXT))

        response = client.post("/webhook/whatsapp", content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert webhook_recorder.payloads == [{
            "senderPhone": "+5511988887777",
            "receiverPhone": "+5511900000000",
            "messageType": "text",
            "mediaBase64": None,
            "message": "Quero um empréstimo",
            "isFromUser": True,
        }]

    def test_voice_note_relayed_as_audio(self, client, session, webhook_recorder):
        voice = MessageMedia.from_bytes("audio/ogg; codecs=opus", b"OggS-voice")
        session.media_store["media-voice"] = voice
        body, headers = signed(webhook_payload(VOICE))

        client.post("/webhook/whatsapp", content=body, headers=headers)

        [payload] = webhook_recorder.payloads
        assert payload["messageType"] == "audio"
        assert payload["mediaBase64"] == voice.data
        assert payload["message"] == ""

    def test_each_message_relayed_once(self, client, webhook_recorder):
        second = dict(TEXT, id="wamid.msg_124", text={"body": "segunda"})
        body, headers = signed(webhook_payload(TEXT, second))

        client.post("/webhook/whatsapp", content=body, headers=headers)

        assert [p["message"] for p in webhook_recorder.payloads] == ["Quero um empréstimo", "segunda"]

    def test_status_callback_relays_nothing(self, client, webhook_recorder):
        payload = webhook_payload()
        payload["entry"][0]["changes"][0]["value"]["statuses"] = [{"id": "wamid.x", "status": "read"}]
        body, headers = signed(payload)

        response = client.post("/webhook/whatsapp", content=body, headers=headers)

        assert response.status_code == 200
        assert webhook_recorder.requests == []


class TestRejectedRequests:

    def test_bad_signature_is_403(self, client, webhook_recorder):
        body, headers = signed(webhook_payload(TEXT))
        headers["X-Hub-Signature-256"] = "sha256=" + "0" * 64

        response = client.post("/webhook/whatsapp", content=body, headers=headers)

        assert response.status_code == 403
        assert webhook_recorder.requests == []

    def test_missing_signature_is_401(self, client):
        response = client.post("/webhook/whatsapp", json=webhook_payload(TEXT))

        assert response.status_code == 401

    def test_unconfigured_app_secret_is_500(self, client, webhook_recorder):
        client.app.state.webhook_secrets = WebhookSecrets()
        body, headers = signed(webhook_payload(TEXT))

        response = client.post("/webhook/whatsapp", content=body, headers=headers)

        assert response.status_code == 500
        assert webhook_recorder.requests == []

    def test_invalid_json_is_422(self, client):
        response = client.post(
            "/webhook/whatsapp",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422

    def test_malformed_payload_is_400(self, client):
        body, headers = signed({"object": "whatsapp_business_account"})

        response = client.post("/webhook/whatsapp", content=body, headers=headers)

        assert response.status_code == 400


class TestSubscriptionChallenge:

    def test_challenge_echoed(self, client):
        response = client.get(
            "/webhook/whatsapp",
            params={"hub.mode": "subscribe", "hub.challenge": "12345", "hub.verify_token": "verify-me"},
        )

        assert response.status_code == 200
        assert response.text == "12345"

    def test_wrong_token_is_403(self, client):
        response = client.get(
            "/webhook/whatsapp",
            params={"hub.mode": "subscribe", "hub.challenge": "12345", "hub.verify_token": "nope"},
        )

        assert response.status_code == 403
