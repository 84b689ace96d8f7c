"""
WhatsApp Input Normalization Tests

Conversion of Meta webhook payloads into TransportMessages.
"""

from datetime import datetime, timezone

import pytest

from transport.whatsapp.normalize import NormalizationError, parse_inbound_messages
from transport.whatsapp.schemas import TransportMessage


def payload_with(*messages, display_phone_number="55 11 90000-0000"):
    value = {"messaging_product": "whatsapp", "messages": list(messages)}
    if display_phone_number is not None:
        value["metadata"] = {
            "display_phone_number": display_phone_number,
            "phone_number_id": "1234",
        }
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "waba", "changes": [{"field": "messages", "value": value}]}],
    }


def text_message(body="Olá", msg_id="wamid.msg_123"):
    return {
        "from": "5511988887777",
        "id": msg_id,
        "timestamp": "1707500000",
        "type": "text",
        "text": {"body": body},
    }


class TestTextMessages:

    def test_text_message(self):
        [result] = parse_inbound_messages(payload_with(text_message("Quero simular")))

        assert isinstance(result, TransportMessage)
        assert result.id == "wamid.msg_123"
        assert result.body == "Quero simular"
        assert result.from_ == "5511988887777@c.us"
        assert result.from_me is False
        assert result.has_media is False
        assert result.timestamp == datetime(2024, 2, 9, 17, 33, 20, tzinfo=timezone.utc)

    def test_body_kept_verbatim(self):
        [result] = parse_inbound_messages(payload_with(text_message("  oi  ")))

        assert result.body == "  oi  "

    def test_receiver_from_metadata(self):
        [result] = parse_inbound_messages(payload_with(text_message()))

        assert result.to == "5511900000000@c.us"

    def test_receiver_falls_back_to_own_address(self):
        payload = payload_with(text_message(), display_phone_number=None)

        [result] = parse_inbound_messages(payload, own_address="5511900000000@c.us")

        assert result.to == "5511900000000@c.us"

    def test_missing_receiver_raises(self):
        with pytest.raises(NormalizationError):
            parse_inbound_messages(payload_with(text_message(), display_phone_number=None))

    def test_multiple_messages_in_order(self):
        payload = payload_with(
            text_message("primeira", "wamid.1"),
            text_message("segunda", "wamid.2"),
        )

        results = parse_inbound_messages(payload)

        assert [m.id for m in results] == ["wamid.1", "wamid.2"]


class TestMediaMessages:

    def test_voice_note(self):
        message = {
            "from": "5511988887777",
            "id": "wamid.voice",
            "timestamp": "1707500000",
            "type": "audio",
            "audio": {"id": "media_abc", "mime_type": "audio/ogg; codecs=opus", "voice": True},
        }

        [result] = parse_inbound_messages(payload_with(message))

        assert result.has_media is True
        assert result.media_id == "media_abc"
        assert result.mime_type == "audio/ogg; codecs=opus"
        assert result.body == ""
        assert result.media is None

    def test_image_caption_becomes_body(self):
        message = {
            "from": "5511988887777",
            "id": "wamid.img",
            "timestamp": "1707500000",
            "type": "image",
            "image": {"id": "img_1", "mime_type": "image/jpeg", "caption": "meu documento"},
        }

        [result] = parse_inbound_messages(payload_with(message))

        assert result.body == "meu documento"
        assert result.media_id == "img_1"

    def test_media_without_id_raises(self):
        message = {
            "from": "5511988887777",
            "id": "wamid.bad",
            "timestamp": "1707500000",
            "type": "audio",
            "audio": {},
        }

        with pytest.raises(NormalizationError):
            parse_inbound_messages(payload_with(message))


class TestPayloadShapes:

    def test_status_callback_yields_nothing(self):
        payload = {
            "entry": [{
                "changes": [{
                    "value": {
                        "metadata": {"display_phone_number": "5511900000000"},
                        "statuses": [{"id": "wamid.x", "status": "delivered"}],
                    }
                }],
            }],
        }

        assert parse_inbound_messages(payload) == []

    def test_missing_entry_raises(self):
        with pytest.raises(NormalizationError):
            parse_inbound_messages({"object": "whatsapp_business_account"})

    def test_message_without_from_raises(self):
        message = text_message()
        del message["from"]

        with pytest.raises(NormalizationError):
            parse_inbound_messages(payload_with(message))
