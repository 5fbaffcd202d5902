from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse
from utils.deps import admin_dependency, settings_dependency, whatsapp_dependency
from schemas.common import ApiResponse, ok
from schemas.whatsapp_schemas import DispatchRequest, parse_webhook
from core.exceptions import WebhookAuthError
from utils.signatures import tokens_match, verify_hub_signature
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/whatsapp",
    tags=["whatsapp"]
)


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(settings: settings_dependency,
                         mode: Optional[str] = Query(None, alias="hub.mode"),
                         verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
                         challenge: Optional[str] = Query(None, alias="hub.challenge")):
    """Subscription handshake: echo the challenge when the verify token matches."""
    if mode == "subscribe" and settings.WHATSAPP_VERIFY_TOKEN \
            and tokens_match(settings.WHATSAPP_VERIFY_TOKEN, verify_token):
        logger.info("WhatsApp webhook verified")
        return challenge or ""

    logger.warning("WhatsApp webhook verification failed", extra={"mode": mode})
    raise WebhookAuthError("Verification failed")


@router.post("/webhook", response_class=PlainTextResponse)
async def receive_webhook(request: Request, settings: settings_dependency):
    body = await request.body()

    if settings.WHATSAPP_APP_SECRET and not verify_hub_signature(
        settings.WHATSAPP_APP_SECRET, body, request.headers.get("X-Hub-Signature-256")
    ):
        raise WebhookAuthError("Invalid signature")

    envelope = parse_webhook(body)

    for message in envelope.messages():
        text = message.text.body if message.text else ""
        logger.info(
            f"WhatsApp message from {message.sender}: {text}",
            extra={"sender": message.sender, "message_id": message.id, "message_type": message.type}
        )

    return "OK"


@router.post("/send-dispatch", response_model=ApiResponse[dict])
def send_dispatch(body: DispatchRequest, admin: admin_dependency, whatsapp: whatsapp_dependency):
    delivery_date = body.delivery_date.strftime("%d %b %Y") if body.delivery_date else "soon"
    result = whatsapp.send_dispatch(body.to, body.name, body.order_id, body.destination, delivery_date)
    return ok(result, "Dispatch message sent")
