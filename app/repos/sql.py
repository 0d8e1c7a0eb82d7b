from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.booking import PAYMENT_STATUSES, Booking
from app.models.cruise import Cruise
from app.models.review import Review
from app.models.user import User
from app.repos.base import DEFAULT_FEATURED_LIMIT, RatingSummary, RecordNotFound, Storage
from app.services.search_service import CruiseFilters, build_sql_conditions

LISTING_ORDER = (Cruise.is_best_seller.desc(), Cruise.is_special_offer.desc(), Cruise.departure_date.asc())


class SqlStorage(Storage):
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    # users
    def get_user(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self.db.execute(select(User).where(User.username == username)).scalar_one_or_none()

    def get_user_by_email(self, email: str) -> User | None:
        return self.db.execute(select(User).where(func.lower(User.email) == email.lower())).scalar_one_or_none()

    def create_user(self, user: User) -> User:
        return self._save(user)

    def _user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise RecordNotFound(f"user {user_id} not found")
        return user

    def update_user_profile(self, user_id: str, first_name: str | None, last_name: str | None, email: str) -> User:
        user = self._user(user_id)
        user.first_name = first_name
        user.last_name = last_name
        user.email = email
        return self._save(user)

    def update_user_password(self, user_id: str, password_hash: str) -> User:
        user = self._user(user_id)
        user.password_hash = password_hash
        return self._save(user)

    def update_stripe_customer_id(self, user_id: str, stripe_customer_id: str) -> User:
        user = self._user(user_id)
        user.stripe_customer_id = stripe_customer_id
        return self._save(user)

    # cruises
    def list_cruises(self, filters: CruiseFilters | None = None) -> list[Cruise]:
        q = select(Cruise)
        if filters is not None:
            conditions = build_sql_conditions(filters, dialect=self.dialect)
            if conditions:
                q = q.where(*conditions)
        return list(self.db.execute(q.order_by(*LISTING_ORDER)).scalars().all())

    def get_cruise(self, cruise_id: str) -> Cruise | None:
        return self.db.get(Cruise, cruise_id)

    def create_cruise(self, cruise: Cruise) -> Cruise:
        return self._save(cruise)

    def best_seller_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        q = select(Cruise).where(Cruise.is_best_seller.is_(True)).order_by(*LISTING_ORDER).limit(limit)
        return list(self.db.execute(q).scalars().all())

    def special_offer_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        q = select(Cruise).where(Cruise.is_special_offer.is_(True)).order_by(*LISTING_ORDER).limit(limit)
        return list(self.db.execute(q).scalars().all())

    def recommended_cruises(self, destination: str | None = None, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        q = select(Cruise)
        if destination:
            q = q.where(Cruise.destination == destination)
        q = q.order_by(Cruise.is_best_seller.desc(), Cruise.is_special_offer.desc(), Cruise.price_per_person.asc())
        return list(self.db.execute(q.limit(limit)).scalars().all())

    # bookings
    def get_booking(self, booking_id: str) -> Booking | None:
        return self.db.get(Booking, booking_id)

    def list_user_bookings(self, user_id: str) -> list[Booking]:
        q = select(Booking).where(Booking.user_id == user_id).order_by(Booking.booking_date.desc())
        return list(self.db.execute(q).scalars().all())

    def create_booking(self, booking: Booking) -> Booking:
        return self._save(booking)

    def _booking(self, booking_id: str) -> Booking:
        booking = self.db.get(Booking, booking_id)
        if not booking:
            raise RecordNotFound(f"booking {booking_id} not found")
        return booking

    def update_booking_payment_status(self, booking_id: str, status: str) -> Booking:
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"unknown payment status {status}")
        booking = self._booking(booking_id)
        booking.payment_status = status
        return self._save(booking)

    def update_booking_payment_intent(self, booking_id: str, payment_intent_id: str, client_secret: str) -> Booking:
        booking = self._booking(booking_id)
        booking.stripe_payment_intent_id = payment_intent_id
        booking.stripe_client_secret = client_secret
        return self._save(booking)

    # reviews
    def list_cruise_reviews(self, cruise_id: str) -> list[Review]:
        q = select(Review).where(Review.cruise_id == cruise_id).order_by(Review.created_at.desc())
        return list(self.db.execute(q).scalars().all())

    def create_review(self, review: Review) -> Review:
        return self._save(review)

    def rating_summary(self, cruise_id: str) -> RatingSummary:
        avg, count = self.db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.cruise_id == cruise_id)
        ).one()
        return RatingSummary(float(avg) if avg is not None else 0.0, int(count or 0))
