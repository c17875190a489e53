import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from paperbot.config import Settings, get_settings
from paperbot.dependencies import get_dispatcher
from paperbot.logging_config import get_logger
from paperbot.schemas.webhook import WebhookAck, WebhookEnvelope
from paperbot.services.dispatcher import ConversationDispatcher

logger = get_logger("webhook")

router = APIRouter()


def _first_param(request: Request, *names: str) -> Optional[str]:
    for name in names:
        value = request.query_params.get(name)
        if value:
            return value
    return None


def _ack(status_code: int, success: bool, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=WebhookAck(success=success, message=message).model_dump())


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(request: Request, settings: Settings = Depends(get_settings)):
    """Subscription handshake: echo the challenge when the token matches."""
    mode = _first_param(request, "hub.mode", "mode")
    token = _first_param(request, "hub.verify_token", "verify_token")
    challenge = _first_param(request, "hub.challenge", "challenge") or ""

    if not mode or not token:
        logger.warning("Webhook verification without mode or token")
        return PlainTextResponse("Missing verification parameters", status_code=400)

    token_ok = bool(settings.verify_token) and hmac.compare_digest(
        token.encode("utf-8"), settings.verify_token.encode("utf-8")
    )
    if mode == "subscribe" and token_ok:
        logger.info("Webhook verified")
        return PlainTextResponse(challenge, status_code=200)

    logger.warning("Webhook verification failed", extra={"context": {"mode": mode}})
    return PlainTextResponse("Forbidden", status_code=403)


async def _parse_envelope(request: Request) -> WebhookEnvelope | JSONResponse:
    try:
        payload = await request.json()
    except ClientDisconnect:
        logger.info("Webhook client disconnected during read")
        return _ack(200, True, "Client disconnected")
    except Exception as exc:
        logger.warning("Webhook payload is not valid JSON", extra={"context": {"error": str(exc)}})
        return _ack(400, False, "Invalid JSON payload")

    if not isinstance(payload, dict):
        return _ack(400, False, "Invalid payload format")

    try:
        return WebhookEnvelope.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "Webhook envelope rejected",
            extra={"context": {"errors": exc.errors(include_url=False), "payload_keys": list(payload.keys())[:20]}},
        )
        return _ack(400, False, "Invalid webhook payload")


@router.post("/webhook", response_model=WebhookAck)
async def handle_webhook(request: Request, dispatcher: ConversationDispatcher = Depends(get_dispatcher)):
    """Receive WhatsApp messages.

    Business failures are answered with 200 so the platform does not redeliver;
    only an unexpected exception yields 500.
    """
    parsed = await _parse_envelope(request)
    if isinstance(parsed, JSONResponse):
        return parsed

    try:
        message = parsed.first_message()
        if message is None:
            return WebhookAck(success=True, message="No actionable content")

        logger.debug(f"Webhook message received: id={message.id}, type={message.type}")
        result = await dispatcher.dispatch(message.to_inbound())
    except Exception as e:
        logger.error(f"Error processing webhook: {e}", exc_info=True)
        return _ack(500, False, "Internal error")

    if not result.handled:
        return WebhookAck(success=True, message="Message already processed")
    return WebhookAck(success=True, message="OK")
