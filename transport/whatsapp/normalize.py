"""
WhatsApp Input Normalization

PURE CONVERSION - NO NETWORK, NO SIDE EFFECTS

Converts Meta webhook payloads into TransportMessage events.
- TEXT: body kept verbatim
- MEDIA (audio, voice, image, video, document, sticker): media id and
  mime type preserved, caption (if any) used as body; nothing downloaded
- Status callbacks (delivered/read) carry no messages and yield nothing
"""

import re
from datetime import datetime, timezone
from typing import Optional

from relay.phone import to_transport_address

from .schemas import TransportMessage, WhatsAppWebhookPayload

MEDIA_TYPES = ("audio", "voice", "image", "video", "document", "sticker")


class NormalizationError(Exception):
    """Input normalization failed."""
    pass


def parse_inbound_messages(
    payload: dict | WhatsAppWebhookPayload,
    own_address: Optional[str] = None,
) -> list[TransportMessage]:
    """
    Convert a WhatsApp Cloud webhook payload into TransportMessages.

    Args:
        payload: Raw webhook payload
        own_address: Transport address of this session, used as receiver
            when the payload metadata does not carry one

    Returns:
        One TransportMessage per inbound message (possibly empty)

    Raises:
        NormalizationError: Invalid payload structure
    """
    if isinstance(payload, WhatsAppWebhookPayload):
        payload = payload.model_dump()

    try:
        entries = payload["entry"]
    except (KeyError, TypeError) as e:
        raise NormalizationError(f"Invalid payload structure: {e}")

    messages = []
    try:
        for entry in entries:
            for change in entry.get("changes", []):
                value = change.get("value", {})
                receiver = _receiver_address(value, own_address)
                for message in value.get("messages", []):
                    messages.append(_normalize_message(message, receiver))
    except (KeyError, AttributeError, ValueError) as e:
        raise NormalizationError(f"Invalid payload structure: {e}")

    return messages


def _receiver_address(value: dict, own_address: Optional[str]) -> str:
    display_number = value.get("metadata", {}).get("display_phone_number")
    if display_number:
        return to_transport_address(re.sub(r"\D", "", display_number))
    if own_address:
        return own_address
    raise NormalizationError("Cannot determine receiver address")


def _normalize_message(message: dict, receiver: str) -> TransportMessage:
    message_type = message.get("type")
    body = ""
    media_id = None
    mime_type = None

    if message_type == "text":
        try:
            body = message["text"]["body"]
        except KeyError:
            raise NormalizationError("Text message missing 'text.body'")

    elif message_type in MEDIA_TYPES:
        media = message.get(message_type)
        if not media or not media.get("id"):
            raise NormalizationError(f"{message_type} message missing media id")
        media_id = media["id"]
        mime_type = media.get("mime_type")
        body = media.get("caption", "")

    return TransportMessage(
        id=message["id"],
        from_=to_transport_address(message["from"]),
        to=receiver,
        body=body,
        from_me=False,
        has_media=media_id is not None,
        media_id=media_id,
        mime_type=mime_type,
        timestamp=datetime.fromtimestamp(int(message["timestamp"]), tz=timezone.utc),
    )

