"""
WhatsApp Webhook Receiver

FastAPI router that receives WhatsApp Cloud API callbacks and hands
each inbound message to the session as a "message" event.
No relay imports. No retries. Pure transport.
"""

import json
import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from .normalize import NormalizationError, parse_inbound_messages
from .security import SIGNATURE_HEADER, WebhookSecrets, verify_signature, verify_webhook_challenge
from .session import WhatsAppSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["WhatsApp Transport"])


def get_session(request: Request) -> WhatsAppSession:
    """Session installed on app.state by the application factory."""
    return request.app.state.session


def get_webhook_secrets(request: Request) -> WebhookSecrets:
    """Secrets installed on app.state; none configured rejects every call."""
    return getattr(request.app.state, "webhook_secrets", WebhookSecrets())


# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook_challenge(
    request: Request,
    hub_mode: str = Query(..., alias="hub.mode"),
    hub_challenge: str = Query(..., alias="hub.challenge"),
    hub_verify_token: str = Query(..., alias="hub.verify_token"),
) -> str:
    """
    Verify webhook subscription challenge from Meta.

    Returns:
        The challenge string (plain text)

    Raises:
        HTTPException(403): Invalid token
        HTTPException(400): Invalid mode
    """
    secrets = get_webhook_secrets(request)
    return verify_webhook_challenge(hub_mode, hub_challenge, hub_verify_token, secrets.verify_token)


# ============================================================================
# WEBHOOK RECEIVER (Message events)
# ============================================================================

@router.post("/whatsapp")
async def whatsapp_webhook_receiver(
    request: Request,
    background_tasks: BackgroundTasks,
) -> dict[str, str]:
    """
    Receive WhatsApp messages via webhook.

    Flow:
    1. Get raw payload
    2. Verify signature (403 if invalid, 401 if missing)
    3. Normalize to TransportMessages
    4. Schedule one "message" event per message and return 200 at once

    Raises:
        HTTPException(401): Missing signature
        HTTPException(403): Invalid signature
        HTTPException(422): Invalid JSON
        HTTPException(400): Unreadable payload structure
    """
    body = await request.body()
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid JSON payload"
        )

    try:
        verify_signature(
            request.headers.get(SIGNATURE_HEADER),
            body,
            get_webhook_secrets(request).app_secret,
        )
    except HTTPException as e:
        logger.warning(f"Signature verification failed: {e.detail}")
        raise

    session = get_session(request)
    try:
        messages = parse_inbound_messages(payload, own_address=session.address)
    except NormalizationError as e:
        logger.error(f"Normalization failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Normalization failed: {str(e)}"
        )

    for message in messages:
        background_tasks.add_task(session.dispatch_inbound, message)

    logger.info(
        f"Accepted {len(messages)} inbound message(s)",
        extra={"message_count": len(messages)},
    )
    return {"status": "ok"}
