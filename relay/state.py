"""
Relay configuration handle.

One instance per application. Owned by the bootstrap, read by the
control API and mutated by the lifecycle observer. Not persisted.
"""

from dataclasses import dataclass

DEFAULT_WEBHOOK_URL = "http://localhost:5678/webhook/zeempresta_whatsapp"


@dataclass
class RelayConfig:
    """Webhook target and WhatsApp readiness flag."""

    webhook_url: str = DEFAULT_WEBHOOK_URL
    whatsapp_ready: bool = False

    def set_webhook_url(self, url: str) -> str:
        """
        Replace the webhook target.

        Raises:
            ValueError: url is empty
        """
        if not url:
            raise ValueError("webhook_url must be a non-empty string")
        self.webhook_url = url
        return self.webhook_url

    def mark_ready(self) -> None:
        self.whatsapp_ready = True

    def mark_not_ready(self) -> None:
        self.whatsapp_ready = False

    def snapshot(self) -> dict:
        """Public view used by the control API."""
        return {"webhookUrl": self.webhook_url, "whatsappReady": self.whatsapp_ready}
