import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.security import hash_password
from app.models.cruise import Cruise
from app.models.review import Review
from app.models.user import User
from app.repos.base import Storage
from app.schemas.cruise import CruiseCreate

logger = logging.getLogger(__name__)


def _utc(y: int, m: int, d: int) -> datetime:
    return datetime(y, m, d, tzinfo=timezone.utc)


SAMPLE_CRUISES = [
    CruiseCreate(
        title="Caribbean Paradise Cruise",
        description="Explore the breathtaking beaches of Jamaica, Cozumel, and the Bahamas on this 7-night cruise with luxury accommodations and world-class dining.",
        destination="Caribbean",
        imageUrl="https://images.unsplash.com/photo-1580541631971-c7f8c0053551?auto=format&fit=crop&w=800&q=80",
        cruiseLine="Royal Caribbean",
        shipName="Allure of the Seas",
        departurePort="Miami, FL",
        departureDate=_utc(2023, 11, 15),
        returnDate=_utc(2023, 11, 22),
        duration=7,
        pricePerPerson=1299,
        salePrice=899,
        isBestSeller=True,
        amenities=["pools", "casino", "spa", "kidsClub"],
        cabinTypes=["interior", "oceanview", "balcony", "suite"],
    ),
    CruiseCreate(
        title="Mediterranean Adventure",
        description="Discover the rich history and stunning coastlines of Italy, Greece, and Spain on this 10-night Mediterranean adventure.",
        destination="Mediterranean",
        imageUrl="https://images.unsplash.com/photo-1548574505-5e239809ee19?auto=format&fit=crop&w=800&q=80",
        cruiseLine="Norwegian Cruise Line",
        shipName="Norwegian Epic",
        departurePort="Barcelona, Spain",
        departureDate=_utc(2023, 12, 10),
        returnDate=_utc(2023, 12, 20),
        duration=10,
        pricePerPerson=1899,
        salePrice=1499,
        isSpecialOffer=True,
        amenities=["pools", "casino", "spa"],
        cabinTypes=["interior", "oceanview", "balcony", "suite"],
    ),
    CruiseCreate(
        title="Alaskan Glaciers Expedition",
        description="Witness the majestic glaciers and wildlife of Alaska's Inside Passage with stops in Juneau, Skagway, and Ketchikan.",
        destination="Alaska",
        imageUrl="https://images.unsplash.com/photo-1566288623394-377af472d81b?auto=format&fit=crop&w=800&q=80",
        cruiseLine="Princess Cruises",
        shipName="Discovery Princess",
        departurePort="Seattle, WA",
        departureDate=_utc(2024, 5, 20),
        returnDate=_utc(2024, 5, 27),
        duration=7,
        pricePerPerson=1249,
        amenities=["pools", "spa"],
        cabinTypes=["interior", "oceanview", "balcony"],
    ),
]

SAMPLE_USER = {"username": "testuser", "email": "test@example.com", "password": "password123", "first_name": "Test", "last_name": "User"}

# (index into SAMPLE_CRUISES, rating, comment)
SAMPLE_REVIEWS = [
    (0, 5, "Amazing experience! The staff was incredibly friendly and the destinations were breathtaking."),
    (1, 4, "Beautiful ports of call and excellent service. The ship was a bit crowded at times."),
]


def cruise_from_schema(data: CruiseCreate) -> Cruise:
    return Cruise(
        id=str(uuid.uuid4()),
        title=data.title,
        description=data.description,
        destination=data.destination,
        image_url=data.imageUrl,
        cruise_line=data.cruiseLine,
        ship_name=data.shipName,
        departure_port=data.departurePort,
        departure_date=data.departureDate,
        return_date=data.returnDate,
        duration=data.duration,
        price_per_person=data.pricePerPerson,
        sale_price=data.salePrice,
        is_best_seller=data.isBestSeller,
        is_special_offer=data.isSpecialOffer,
        amenities=list(data.amenities),
        cabin_types=list(data.cabinTypes),
    )


def ensure_user(storage: Storage, username: str, email: str, password: str, first_name: str, last_name: str) -> User:
    u = storage.get_user_by_username(username)
    if u:
        return u
    return storage.create_user(
        User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            email_verified=False,
            created_at=datetime.now(timezone.utc),
        )
    )


def run(storage: Storage) -> None:
    """Insert the sample catalog, test user and reviews. Does nothing if cruises exist."""
    if storage.list_cruises():
        logger.info("cruises already present, skipping seed")
        return

    cruises = [storage.create_cruise(cruise_from_schema(c)) for c in SAMPLE_CRUISES]
    logger.info("seeded %d cruises", len(cruises))

    user = ensure_user(storage, **SAMPLE_USER)
    for idx, rating, comment in SAMPLE_REVIEWS:
        storage.create_review(
            Review(
                id=str(uuid.uuid4()),
                user_id=user.id,
                cruise_id=cruises[idx].id,
                rating=rating,
                comment=comment,
                created_at=datetime.now(timezone.utc),
            )
        )
    logger.info("seeded test user and %d reviews", len(SAMPLE_REVIEWS))


def run_sql(database_url: str) -> None:
    from app.db.session import make_engine, make_session_factory
    from app.repos.sql import SqlStorage

    engine = make_engine(database_url)
    db = make_session_factory(engine)()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM cruises LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("cruises table not found yet, skipping seeding (run alembic upgrade head)")
            return
        run(SqlStorage(db))
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    from app.core.config import settings
    from app.core.logging_config import setup_logging

    setup_logging(settings)
    run_sql(settings.DATABASE_URL)
