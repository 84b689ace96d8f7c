"""
WhatsApp Webhook Security

Checks applied to Meta webhook calls before any payload is trusted:
- POST: X-Hub-Signature-256 must be HMAC-SHA256(body, app secret)
- GET:  subscription handshake must carry the configured verify token

Secrets are passed in; the application factory installs them on
app.state as WebhookSecrets.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status

SIGNATURE_HEADER = "X-Hub-Signature-256"


@dataclass(frozen=True)
class WebhookSecrets:
    """App secret (signatures) and verify token (subscription handshake)."""

    app_secret: str = ""
    verify_token: str = ""


def expected_signature(body: bytes, app_secret: str) -> str:
    digest = hmac.new(app_secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(signature: Optional[str], body: bytes, app_secret: str) -> None:
    """
    Raises:
        HTTPException(401): Missing signature
        HTTPException(500): App secret not configured
        HTTPException(403): Signature does not match the body
    """
    if not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {SIGNATURE_HEADER} header",
        )
    if not app_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="WHATSAPP_APP_SECRET not configured",
        )
    if not hmac.compare_digest(signature.encode(), expected_signature(body, app_secret).encode()):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")


def verify_webhook_challenge(
    hub_mode: str,
    hub_challenge: str,
    hub_verify_token: str,
    verify_token: str,
) -> str:
    """
    Answer Meta's subscription handshake with the challenge.

    An unset verify token rejects every handshake.

    Raises:
        HTTPException(400): hub.mode is not "subscribe"
        HTTPException(403): Token missing or mismatched
    """
    if hub_mode != "subscribe":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid hub.mode")
    if not verify_token or not hmac.compare_digest(hub_verify_token.encode(), verify_token.encode()):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid hub.verify_token")
    return hub_challenge
