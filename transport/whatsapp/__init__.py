"""WhatsApp Transport Layer - Module Exports"""

from .normalize import (
    NormalizationError,
    parse_inbound_messages,
)
from .schemas import (
    Chat,
    MessageMedia,
    TransportMessage,
    WhatsAppMessageResponse,
    WhatsAppWebhookPayload,
)
from .security import WebhookSecrets, verify_signature, verify_webhook_challenge
from .session import (
    SESSION_EVENTS,
    SessionNotInitializedError,
    WhatsAppSession,
    WhatsAppSessionError,
)
from .cloud import CloudApiSession
from .stub import StubWhatsAppSession
from .webhook import router

__all__ = [
    # Schemas
    "Chat",
    "MessageMedia",
    "TransportMessage",
    "WhatsAppMessageResponse",
    "WhatsAppWebhookPayload",
    # Normalization
    "parse_inbound_messages",
    "NormalizationError",
    # Security
    "WebhookSecrets",
    "verify_signature",
    "verify_webhook_challenge",
    # Sessions
    "SESSION_EVENTS",
    "WhatsAppSession",
    "WhatsAppSessionError",
    "SessionNotInitializedError",
    "CloudApiSession",
    "StubWhatsAppSession",
    # Router
    "router",
]
