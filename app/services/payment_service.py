import logging

from app.core.config import Settings
from app.core.errors import Forbidden, NotFound, UpstreamFailure, ValidationError
from app.models.booking import Booking, PAYMENT_CANCELLED, PAYMENT_COMPLETED, PAYMENT_PENDING
from app.models.user import User
from app.repos.base import Storage
from app.services.stripe_client import (
    InvalidWebhookError,
    MockStripeClient,
    StripeClient,
    StripeClientError,
    StripeConfig,
    parse_webhook_event,
)

logger = logging.getLogger(__name__)

EVENT_PAYMENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_PAYMENT_FAILED = "payment_intent.payment_failed"


def build_payment_gateway(settings: Settings):
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY not configured, payment intents will be mocked")
        return MockStripeClient()
    return StripeClient(StripeConfig(secret_key=settings.STRIPE_SECRET_KEY, currency=settings.STRIPE_CURRENCY.lower()))


def amount_in_minor_units(total_price: float) -> int:
    # cents; round() rather than int() so 19.99 * 100 does not become 1998
    return int(round(total_price * 100))


def _ensure_customer(storage: Storage, gateway, user: User) -> str | None:
    if user.stripe_customer_id:
        return user.stripe_customer_id
    name = " ".join(p for p in (user.first_name, user.last_name) if p) or user.username
    customer_id = gateway.create_customer(email=user.email, name=name, user_id=user.id)
    if customer_id:
        storage.update_stripe_customer_id(user.id, customer_id)
    return customer_id


def create_payment_intent(storage: Storage, gateway, booking_id: str, user: User) -> str:
    """Create a processor payment intent for the booking and return its client secret."""
    booking = storage.get_booking(booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if booking.user_id != user.id:
        raise Forbidden("Not authorized to pay for this booking")
    if booking.payment_status == PAYMENT_COMPLETED:
        raise ValidationError("Booking is already paid")
    if booking.payment_status == PAYMENT_CANCELLED:
        raise ValidationError("Booking has been cancelled")

    metadata = {"bookingId": booking.id, "cruiseId": booking.cruise_id, "userId": user.id}
    try:
        customer_id = _ensure_customer(storage, gateway, user)
        intent = gateway.create_payment_intent(
            amount=amount_in_minor_units(booking.total_price),
            metadata=metadata,
            customer_id=customer_id,
        )
    except StripeClientError as e:
        logger.error("payment intent failed", extra={"booking_id": booking.id, "error": str(e)})
        raise UpstreamFailure("Payment processor error, please try again") from e

    storage.update_booking_payment_intent(booking.id, intent.id, intent.client_secret)
    logger.info("payment intent created", extra={"booking_id": booking.id, "payment_intent_id": intent.id})
    return intent.client_secret


def mark_booking_paid(storage: Storage, booking_id: str) -> Booking | None:
    """pending -> completed. Repeating it is a no-op; cancelled bookings stay cancelled."""
    booking = storage.get_booking(booking_id)
    if not booking:
        logger.warning("payment succeeded for unknown booking", extra={"booking_id": booking_id})
        return None
    if booking.payment_status == PAYMENT_COMPLETED:
        logger.info("payment already recorded", extra={"booking_id": booking_id})
        return booking
    if booking.payment_status != PAYMENT_PENDING:
        logger.warning(
            "payment succeeded for booking in status %s, leaving it unchanged",
            booking.payment_status,
            extra={"booking_id": booking_id},
        )
        return booking
    booking = storage.update_booking_payment_status(booking_id, PAYMENT_COMPLETED)
    logger.info("payment succeeded", extra={"booking_id": booking_id})
    return booking


def handle_payment_webhook(storage: Storage, payload: bytes, signature: str | None, webhook_secret: str | None) -> None:
    """Verify and apply a processor event.

    Only an invalid or unverifiable event raises. Reconciliation problems are
    logged and swallowed so the processor does not keep redelivering.
    """
    if not webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not configured, accepting webhook without signature verification")
    try:
        event = parse_webhook_event(payload, signature, webhook_secret)
    except InvalidWebhookError as e:
        logger.warning("webhook rejected: %s", e)
        raise ValidationError(f"Webhook Error: {e}") from e

    event_type = event.get("type") or ""
    event_id = event.get("id") or ""
    booking_id = None

    try:
        intent = ((event.get("data") or {}).get("object")) or {}
        booking_id = (intent.get("metadata") or {}).get("bookingId")
        if event_type == EVENT_PAYMENT_SUCCEEDED:
            if not booking_id:
                logger.warning("succeeded event without bookingId metadata", extra={"event_id": event_id})
                return
            mark_booking_paid(storage, str(booking_id))
        elif event_type == EVENT_PAYMENT_FAILED:
            # status stays pending so the customer can retry from the checkout page
            logger.info("payment failed", extra={"booking_id": booking_id, "event_id": event_id})
        else:
            logger.debug("ignoring webhook event %s", event_type, extra={"event_id": event_id})
    except Exception:
        logger.exception("webhook reconciliation failed", extra={"event_id": event_id, "booking_id": booking_id})
