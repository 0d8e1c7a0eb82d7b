import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.api.deps import get_storage
from app.db.session import Base, make_engine, make_session_factory
from app.models.booking import PAYMENT_COMPLETED
from app.models.review import Review
from app.repos.memory import MemoryStorage
from app.repos.sql import SqlStorage
from app.schemas.booking import BookingCreate
from app.seed import run as run_seed
from app.services import booking_service, payment_service
from app.services.search_service import CruiseFilters, search_cruises
from conftest import RecordingMailer, booking_payload, make_cruise, make_user


@pytest.fixture
def sql_storage():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    db = make_session_factory(engine)()
    try:
        yield SqlStorage(db)
    finally:
        db.close()
        engine.dispose()


def _review(storage, user, cruise, rating):
    return storage.create_review(
        Review(
            id=str(uuid.uuid4()),
            user_id=user.id,
            cruise_id=cruise.id,
            rating=rating,
            comment="Lovely trip",
            created_at=datetime.now(timezone.utc),
        )
    )


def test_rating_summary(sql_storage):
    user = make_user(sql_storage)
    cruise = make_cruise(sql_storage)
    assert tuple(sql_storage.rating_summary(cruise.id)) == (0.0, 0)
    _review(sql_storage, user, cruise, 5)
    _review(sql_storage, user, cruise, 4)
    assert tuple(sql_storage.rating_summary(cruise.id)) == (4.5, 2)


def test_user_lookup(sql_storage):
    user = make_user(sql_storage)
    assert sql_storage.get_user_by_username("alice").id == user.id
    assert sql_storage.get_user_by_email("ALICE@example.com").id == user.id
    assert sql_storage.get_user_by_username("nobody") is None


def test_search_matches_memory_semantics(sql_storage):
    make_cruise(sql_storage, title="A", destination="Caribbean", amenities=["casino"], sale_price=899.0)
    make_cruise(sql_storage, title="B", destination="Alaska", amenities=["spa"], price_per_person=1249.0)

    results = search_cruises(sql_storage, CruiseFilters(destination="CARIB", max_price=1000))
    assert [c.title for c, _ in results] == ["A"]
    # tag overlap is evaluated by the predicate on SQLite
    results = search_cruises(sql_storage, CruiseFilters(amenities=("spa",)))
    assert [c.title for c, _ in results] == ["B"]


def test_departure_date_bound_with_offset(sql_storage):
    memory = MemoryStorage()
    for storage in (sql_storage, memory):
        make_cruise(storage, title="Evening", departure_date=datetime(2030, 11, 14, 20, 0, tzinfo=timezone.utc))
        make_cruise(storage, title="Morning", departure_date=datetime(2030, 11, 14, 18, 0, tzinfo=timezone.utc))

    # midnight at UTC+5 is 19:00 UTC the day before
    filters = CruiseFilters(departure_date_from=datetime(2030, 11, 15, 0, 0, tzinfo=timezone(timedelta(hours=5))))
    sql_titles = [c.title for c, _ in search_cruises(sql_storage, filters)]
    assert sql_titles == ["Evening"]
    assert sql_titles == [c.title for c, _ in search_cruises(memory, filters)]


def test_like_wildcards_are_literal(sql_storage):
    make_cruise(sql_storage, destination="Caribbean")
    assert search_cruises(sql_storage, CruiseFilters(destination="%")) == []


def test_booking_roundtrip_with_passengers(sql_storage):
    user = make_user(sql_storage)
    cruise = make_cruise(sql_storage, price_per_person=1000.0, sale_price=800.0)
    booking = booking_service.create_booking(
        sql_storage, BookingCreate(**booking_payload(cruise.id, guests=3)), user, RecordingMailer()
    )

    sql_storage.db.expire_all()
    loaded = sql_storage.get_booking(booking.id)
    assert loaded.total_price == 2400.0
    assert [p.first_name for p in loaded.passengers] == ["Guest0", "Guest1", "Guest2"]
    assert [b.id for b in sql_storage.list_user_bookings(user.id)] == [booking.id]

    payment_service.mark_booking_paid(sql_storage, booking.id)
    sql_storage.db.expire_all()
    assert sql_storage.get_booking(booking.id).payment_status == PAYMENT_COMPLETED

    with pytest.raises(ValueError):
        sql_storage.update_booking_payment_status(booking.id, "refunded")


def test_featured_listings(sql_storage):
    best = make_cruise(sql_storage, title="Best", is_best_seller=True, destination="Caribbean")
    offer = make_cruise(sql_storage, title="Offer", is_special_offer=True, destination="Caribbean", price_per_person=500.0)
    make_cruise(sql_storage, title="Plain", destination="Alaska", price_per_person=100.0)

    assert [c.id for c in sql_storage.best_seller_cruises()] == [best.id]
    assert [c.id for c in sql_storage.special_offer_cruises()] == [offer.id]
    assert [c.title for c in sql_storage.recommended_cruises()] == ["Best", "Offer", "Plain"]
    assert [c.title for c in sql_storage.recommended_cruises("Caribbean", limit=1)] == ["Best"]


def test_seed_is_idempotent(sql_storage):
    run_seed(sql_storage)
    run_seed(sql_storage)
    cruises = sql_storage.list_cruises()
    assert len(cruises) == 3
    caribbean = next(c for c in cruises if c.destination == "Caribbean")
    assert tuple(sql_storage.rating_summary(caribbean.id)) == (5.0, 1)


class _TrackedSession:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.mark.parametrize("finish", ["close", "throw"])
def test_request_session_is_closed(finish):
    sessions = []

    def factory():
        sessions.append(_TrackedSession())
        return sessions[-1]

    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(session_factory=factory)))
    deps = get_storage(request)
    storage = next(deps)
    assert storage.db is sessions[0] and not sessions[0].closed

    if finish == "close":
        deps.close()
    else:
        with pytest.raises(RuntimeError):
            deps.throw(RuntimeError("handler failed"))
    assert sessions[0].closed
