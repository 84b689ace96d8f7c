"""
Control API

HTTP surface used by the n8n workflow (and operators) to:
  - read the webhook target and WhatsApp readiness
  - change the webhook target
  - send text or synthesized voice messages

Send endpoints answer 200 once the request validates, whatever the
delivery outcome: the dispatcher logs and swallows transport errors.
"""

import json
import logging
from typing import Any, Optional, TypeVar

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, field_validator

from infra.bootstrap import RelayBootstrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Control"])

MISSING_WEBHOOK_URL = 'Parâmetro "webhookUrl" é obrigatório.'
MISSING_SEND_PARAMS = 'Parâmetros "phone" e "message" são obrigatórios'


class ControlRequest(BaseModel):
    """Lenient body: numbers are accepted as strings, falsy values count as missing."""

    @field_validator("*", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        if isinstance(value, (bool, int, float)):
            return str(value) if value else None
        return value


class SetWebhookRequest(ControlRequest):
    webhookUrl: Optional[str] = None


class SendRequest(ControlRequest):
    phone: Optional[str] = None
    message: Optional[str] = None


RequestModel = TypeVar("RequestModel", bound=ControlRequest)


def get_relay(request: Request) -> RelayBootstrap:
    """Relay installed on app.state by the application factory."""
    return request.app.state.relay


async def _read_body(request: Request, model: type[RequestModel]) -> RequestModel:
    """
    Parse the JSON body into model.

    Anything unreadable (no body, invalid JSON, wrong shapes) yields an
    empty model, so the caller answers with its own 400.
    """
    try:
        payload = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return model()
    if not isinstance(payload, dict):
        return model()
    try:
        return model.model_validate(payload)
    except ValidationError:
        return model()


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error})


@router.get("/get-webhook")
async def get_webhook(relay: RelayBootstrap = Depends(get_relay)):
    """Current webhook target and readiness."""
    return relay.relay_config.snapshot()


@router.get("/status-whatsapp")
async def status_whatsapp(relay: RelayBootstrap = Depends(get_relay)):
    return {"whatsappReady": relay.relay_config.whatsapp_ready}


@router.post("/set-webhook")
async def set_webhook(request: Request, relay: RelayBootstrap = Depends(get_relay)):
    body = await _read_body(request, SetWebhookRequest)
    if not body.webhookUrl:
        return _bad_request(MISSING_WEBHOOK_URL)

    webhook_url = relay.relay_config.set_webhook_url(body.webhookUrl)
    logger.info(f"Webhook URL updated to {webhook_url}")
    return {"message": "Webhook atualizado com sucesso!", "webhookUrl": webhook_url}


@router.post("/send-message")
async def send_message(request: Request, relay: RelayBootstrap = Depends(get_relay)):
    """Send a text message. Delivery failures are logged, not reported."""
    body = await _read_body(request, SendRequest)
    if not body.phone or not body.message:
        return _bad_request(MISSING_SEND_PARAMS)

    await relay.dispatcher.send_text(body.phone, body.message)
    return {"message": "Mensagem enviada com sucesso!"}


@router.post("/send-audio")
async def send_audio(request: Request, relay: RelayBootstrap = Depends(get_relay)):
    """Send message as a synthesized voice note."""
    body = await _read_body(request, SendRequest)
    if not body.phone or not body.message:
        return _bad_request(MISSING_SEND_PARAMS)

    await relay.dispatcher.send_audio(body.phone, body.message)
    return {"message": "Áudio enviado com sucesso!"}
