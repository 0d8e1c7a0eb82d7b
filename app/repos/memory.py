from app.models.booking import PAYMENT_STATUSES, Booking
from app.models.cruise import Cruise
from app.models.review import Review
from app.models.user import User
from app.repos.base import DEFAULT_FEATURED_LIMIT, RatingSummary, RecordNotFound, Storage
from app.services.search_service import CruiseFilters, as_utc, listing_sort_key


class MemoryStorage(Storage):
    """Dict-backed storage for tests and database-less local runs.

    Holds the same ORM model instances the SQL backend returns, just never
    attached to a session.
    """

    def __init__(self):
        self.users: dict[str, User] = {}
        self.cruises: dict[str, Cruise] = {}
        self.bookings: dict[str, Booking] = {}
        self.reviews: dict[str, Review] = {}

    # users
    def get_user(self, user_id: str) -> User | None:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self.users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> User | None:
        email = email.lower()
        return next((u for u in self.users.values() if u.email.lower() == email), None)

    def create_user(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def _user(self, user_id: str) -> User:
        user = self.users.get(user_id)
        if not user:
            raise RecordNotFound(f"user {user_id} not found")
        return user

    def update_user_profile(self, user_id: str, first_name: str | None, last_name: str | None, email: str) -> User:
        user = self._user(user_id)
        user.first_name = first_name
        user.last_name = last_name
        user.email = email
        return user

    def update_user_password(self, user_id: str, password_hash: str) -> User:
        user = self._user(user_id)
        user.password_hash = password_hash
        return user

    def update_stripe_customer_id(self, user_id: str, stripe_customer_id: str) -> User:
        user = self._user(user_id)
        user.stripe_customer_id = stripe_customer_id
        return user

    # cruises
    def list_cruises(self, filters: CruiseFilters | None = None) -> list[Cruise]:
        return sorted(self.cruises.values(), key=listing_sort_key)

    def get_cruise(self, cruise_id: str) -> Cruise | None:
        return self.cruises.get(cruise_id)

    def create_cruise(self, cruise: Cruise) -> Cruise:
        self.cruises[cruise.id] = cruise
        return cruise

    def best_seller_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        return [c for c in self.list_cruises() if c.is_best_seller][:limit]

    def special_offer_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        return [c for c in self.list_cruises() if c.is_special_offer][:limit]

    def recommended_cruises(self, destination: str | None = None, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]:
        cruises = [c for c in self.cruises.values() if not destination or c.destination == destination]
        cruises.sort(key=lambda c: (not c.is_best_seller, not c.is_special_offer, c.price_per_person))
        return cruises[:limit]

    # bookings
    def get_booking(self, booking_id: str) -> Booking | None:
        return self.bookings.get(booking_id)

    def list_user_bookings(self, user_id: str) -> list[Booking]:
        items = [b for b in self.bookings.values() if b.user_id == user_id]
        return sorted(items, key=lambda b: as_utc(b.booking_date), reverse=True)

    def create_booking(self, booking: Booking) -> Booking:
        self.bookings[booking.id] = booking
        return booking

    def _booking(self, booking_id: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if not booking:
            raise RecordNotFound(f"booking {booking_id} not found")
        return booking

    def update_booking_payment_status(self, booking_id: str, status: str) -> Booking:
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"unknown payment status {status}")
        booking = self._booking(booking_id)
        booking.payment_status = status
        return booking

    def update_booking_payment_intent(self, booking_id: str, payment_intent_id: str, client_secret: str) -> Booking:
        booking = self._booking(booking_id)
        booking.stripe_payment_intent_id = payment_intent_id
        booking.stripe_client_secret = client_secret
        return booking

    # reviews
    def list_cruise_reviews(self, cruise_id: str) -> list[Review]:
        items = [r for r in self.reviews.values() if r.cruise_id == cruise_id]
        return sorted(items, key=lambda r: as_utc(r.created_at), reverse=True)

    def create_review(self, review: Review) -> Review:
        self.reviews[review.id] = review
        return review

    def rating_summary(self, cruise_id: str) -> RatingSummary:
        ratings = [r.rating for r in self.reviews.values() if r.cruise_id == cruise_id]
        if not ratings:
            return RatingSummary(0.0, 0)
        return RatingSummary(sum(ratings) / len(ratings), len(ratings))
