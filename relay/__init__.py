"""
Relay components.

Glue between the WhatsApp session, the n8n webhook and the control API.
"""

from .phone import TRANSPORT_SUFFIX, to_public_phone, to_transport_address
from .state import DEFAULT_WEBHOOK_URL, RelayConfig
from .forwarder import RelayedMessageEvent, WebhookForwarder
from .dispatcher import OutboundDispatcher
from .lifecycle import SessionLifecycleObserver

__all__ = [
    "TRANSPORT_SUFFIX",
    "to_public_phone",
    "to_transport_address",
    "DEFAULT_WEBHOOK_URL",
    "RelayConfig",
    "RelayedMessageEvent",
    "WebhookForwarder",
    "OutboundDispatcher",
    "SessionLifecycleObserver",
]
