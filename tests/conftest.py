import os

# settings are read at import time, so the environment has to be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("LOG_JSON", "false")

import hashlib
import hmac
import json
import time
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.security import hash_password
from app.main import create_app
from app.models.cruise import Cruise
from app.models.user import User
from app.repos.memory import MemoryStorage
from app.services.email_service import MailSender
from app.services.stripe_client import PaymentIntentHandle, StripeClientError


class RecordingMailer(MailSender):
    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    def send(self, to_email, subject, html_body, text_body=""):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append({"to": to_email, "subject": subject, "html": html_body, "text": text_body})
        return f"msg-{len(self.sent)}"


class FakeGateway:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.intents = []
        self.customers = []

    def create_customer(self, *, email, name, user_id):
        self.customers.append({"email": email, "name": name, "user_id": user_id})
        return f"cus_{len(self.customers)}"

    def create_payment_intent(self, *, amount, metadata, customer_id=None):
        if self.fail:
            raise StripeClientError("card network unavailable")
        self.intents.append({"amount": amount, "metadata": metadata, "customer_id": customer_id})
        n = len(self.intents)
        return PaymentIntentHandle(id=f"pi_test_{n}", client_secret=f"pi_test_{n}_secret_abc")


def make_cruise(storage, **overrides) -> Cruise:
    data = dict(
        id=str(uuid.uuid4()),
        title="Caribbean Paradise Cruise",
        description="Sun and sand",
        destination="Caribbean",
        image_url="",
        cruise_line="Royal Caribbean",
        ship_name="Allure of the Seas",
        departure_port="Miami, FL",
        departure_date=datetime(2030, 11, 15, tzinfo=timezone.utc),
        return_date=datetime(2030, 11, 22, tzinfo=timezone.utc),
        duration=7,
        price_per_person=1299.0,
        sale_price=None,
        is_best_seller=False,
        is_special_offer=False,
        amenities=["pools", "spa"],
        cabin_types=["interior", "balcony"],
    )
    data.update(overrides)
    return storage.create_cruise(Cruise(**data))


def make_user(storage, username="alice", password="password123", **overrides) -> User:
    data = dict(
        id=str(uuid.uuid4()),
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(password),
        first_name=None,
        last_name=None,
        email_verified=False,
        stripe_customer_id=None,
        created_at=datetime.now(timezone.utc),
    )
    data.update(overrides)
    return storage.create_user(User(**data))


def booking_payload(cruise_id, guests=2, **overrides) -> dict:
    body = {
        "cruiseId": cruise_id,
        "numberOfGuests": guests,
        "cabinType": "balcony",
        "contactEmail": "alice@example.com",
        "contactPhone": "+1 555 0100",
        "passengers": [
            {
                "firstName": f"Guest{i}",
                "lastName": "Smith",
                "dateOfBirth": "1990-01-01",
                "citizenship": "US",
            }
            for i in range(guests)
        ],
    }
    body.update(overrides)
    return body


WEBHOOK_SECRET = "whsec_test"


def sign(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for the payload."""
    ts = timestamp or int(time.time())
    mac = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={mac}"


def succeeded_event(booking_id, event_type="payment_intent.succeeded") -> str:
    return json.dumps({
        "id": "evt_1",
        "type": event_type,
        "data": {"object": {"id": "pi_test_1", "metadata": {"bookingId": booking_id}}},
    })


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def settings():
    return Settings(SECRET_KEY="test-secret-key", STORAGE_BACKEND="memory", ENV="test", LOG_JSON=False)


@pytest.fixture
def app(settings, storage, mailer, gateway):
    return create_app(settings=settings, storage=storage, mailer=mailer, payments=gateway)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def logged_in(client, storage):
    """Client with an authenticated session for a freshly registered user."""
    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "password123"},
    )
    assert r.status_code == 201
    return client
