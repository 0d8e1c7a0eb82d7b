from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_current_user, get_payment_gateway, get_settings, get_storage
from app.core.config import Settings
from app.models.user import User
from app.repos.base import Storage
from app.schemas.payments import PaymentIntentOut, PaymentIntentRequest, WebhookAck
from app.services import payment_service

router = APIRouter(tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    body: PaymentIntentRequest,
    storage: Storage = Depends(get_storage),
    gateway=Depends(get_payment_gateway),
    me: User = Depends(get_current_user),
):
    client_secret = payment_service.create_payment_intent(storage, gateway, body.bookingId, me)
    return PaymentIntentOut(clientSecret=client_secret)


@router.post("/stripe-webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    # signature is computed over the raw bytes, so read them before any parsing
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    await run_in_threadpool(
        payment_service.handle_payment_webhook, storage, payload, signature, settings.STRIPE_WEBHOOK_SECRET
    )
    return WebhookAck()
