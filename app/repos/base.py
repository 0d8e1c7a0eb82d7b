"""Storage contract shared by the in-memory and relational backends.

Repositories only move records in and out. Filtering semantics live in
``app.services.search_service``; a backend may narrow ``list_cruises`` with the
filters it can evaluate natively, but callers always re-apply the search
predicate, so returning extra rows is allowed and returning too few is not.
"""
from abc import ABC, abstractmethod
from typing import NamedTuple, TYPE_CHECKING

from app.models.booking import Booking
from app.models.cruise import Cruise
from app.models.review import Review
from app.models.user import User

if TYPE_CHECKING:
    from app.services.search_service import CruiseFilters

DEFAULT_FEATURED_LIMIT = 3


class RatingSummary(NamedTuple):
    rating: float  # 0.0 when there are no reviews
    count: int


class Storage(ABC):
    # users
    @abstractmethod
    def get_user(self, user_id: str) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    def create_user(self, user: User) -> User: ...

    @abstractmethod
    def update_user_profile(self, user_id: str, first_name: str | None, last_name: str | None, email: str) -> User: ...

    @abstractmethod
    def update_user_password(self, user_id: str, password_hash: str) -> User: ...

    @abstractmethod
    def update_stripe_customer_id(self, user_id: str, stripe_customer_id: str) -> User: ...

    # cruises
    @abstractmethod
    def list_cruises(self, filters: "CruiseFilters | None" = None) -> list[Cruise]:
        """Cruises in listing order: best sellers, special offers, then departure date."""

    @abstractmethod
    def get_cruise(self, cruise_id: str) -> Cruise | None: ...

    @abstractmethod
    def create_cruise(self, cruise: Cruise) -> Cruise: ...

    @abstractmethod
    def best_seller_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]: ...

    @abstractmethod
    def special_offer_cruises(self, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]: ...

    @abstractmethod
    def recommended_cruises(self, destination: str | None = None, limit: int = DEFAULT_FEATURED_LIMIT) -> list[Cruise]: ...

    # bookings
    @abstractmethod
    def get_booking(self, booking_id: str) -> Booking | None: ...

    @abstractmethod
    def list_user_bookings(self, user_id: str) -> list[Booking]:
        """Newest first."""

    @abstractmethod
    def create_booking(self, booking: Booking) -> Booking: ...

    @abstractmethod
    def update_booking_payment_status(self, booking_id: str, status: str) -> Booking: ...

    @abstractmethod
    def update_booking_payment_intent(self, booking_id: str, payment_intent_id: str, client_secret: str) -> Booking: ...

    # reviews
    @abstractmethod
    def list_cruise_reviews(self, cruise_id: str) -> list[Review]:
        """Newest first."""

    @abstractmethod
    def create_review(self, review: Review) -> Review: ...

    @abstractmethod
    def rating_summary(self, cruise_id: str) -> RatingSummary: ...


class RecordNotFound(LookupError):
    """Raised by update methods when the target row does not exist."""
