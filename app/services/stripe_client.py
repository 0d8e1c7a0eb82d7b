import json
import secrets
import time
from dataclasses import dataclass

import stripe


@dataclass
class StripeConfig:
    secret_key: str          # sk_test_... / sk_live_...
    currency: str = "usd"
    max_network_retries: int = 2  # retries are left to the stripe library


@dataclass
class PaymentIntentHandle:
    id: str
    client_secret: str


class StripeClientError(RuntimeError):
    pass


class InvalidWebhookError(ValueError):
    pass


class StripeClient:
    """Thin wrapper over the stripe library so the rest of the app never imports it."""

    def __init__(self, cfg: StripeConfig):
        self.cfg = cfg
        self._client = stripe.StripeClient(cfg.secret_key, max_network_retries=cfg.max_network_retries)

    def create_customer(self, *, email: str, name: str, user_id: str) -> str:
        try:
            customer = self._client.customers.create(
                params={"email": email, "name": name, "metadata": {"userId": user_id}}
            )
        except stripe.StripeError as e:
            raise StripeClientError(f"Stripe customer creation failed: {e.user_message or e}") from e
        return customer.id

    def create_payment_intent(self, *, amount: int, metadata: dict, customer_id: str | None = None) -> PaymentIntentHandle:
        params = {
            "amount": amount,
            "currency": self.cfg.currency,
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if customer_id:
            params["customer"] = customer_id
        try:
            intent = self._client.payment_intents.create(params=params)
        except stripe.StripeError as e:
            raise StripeClientError(f"Stripe payment intent failed: {e.user_message or e}") from e
        return PaymentIntentHandle(id=intent.id, client_secret=intent.client_secret)


class MockStripeClient:
    """Stand-in used when no Stripe key is configured (development only).

    Produces locally unique ids shaped like the real ones so the checkout and
    confirmation pages keep working without a live processor.
    """

    def create_customer(self, *, email: str, name: str, user_id: str) -> str | None:
        return None

    def create_payment_intent(self, *, amount: int, metadata: dict, customer_id: str | None = None) -> PaymentIntentHandle:
        stamp = int(time.time() * 1000)
        return PaymentIntentHandle(
            id=f"mock_pi_{stamp}_{secrets.token_hex(4)}",
            client_secret=f"mock_{stamp}_secret_{secrets.token_hex(8)}",
        )


def parse_webhook_event(payload: bytes, signature: str | None, webhook_secret: str | None) -> dict:
    """Return the event as a plain dict, verifying the signature when a secret is set."""
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidWebhookError(f"Malformed webhook payload: {e}") from e
    if webhook_secret:
        if not signature:
            raise InvalidWebhookError("Missing Stripe-Signature header")
        try:
            stripe.WebhookSignature.verify_header(text, signature, webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise InvalidWebhookError(str(e)) from e
    try:
        event = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise InvalidWebhookError(f"Malformed webhook payload: {e}") from e
    if not isinstance(event, dict):
        raise InvalidWebhookError("Malformed webhook payload: expected an object")
    return event
