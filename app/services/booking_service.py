import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from app.core.errors import Forbidden, NotFound, ValidationError
from app.models.booking import Booking, PAYMENT_PENDING
from app.models.cruise import Cruise
from app.models.passenger import Passenger
from app.models.user import User
from app.repos.base import Storage
from app.schemas.booking import BookingCreate
from app.services.email_service import MailSender, dispatch_booking_confirmation

logger = logging.getLogger(__name__)

PRICE_TOLERANCE = 0.01

# BackgroundTasks.add_task shape: defer(fn, *args)
Defer = Callable[..., None]


def quote_total(cruise: Cruise, number_of_guests: int) -> float:
    return round(cruise.effective_price * number_of_guests, 2)


def _resolve_total(cruise: Cruise, body: BookingCreate, trust_client_price: bool) -> float:
    expected = quote_total(cruise, body.numberOfGuests)
    if body.totalPrice is None:
        return expected
    if trust_client_price:
        return body.totalPrice
    if abs(body.totalPrice - expected) > PRICE_TOLERANCE:
        raise ValidationError(
            f"totalPrice {body.totalPrice:.2f} does not match the current price {expected:.2f}",
            errors=[{"field": "totalPrice", "message": "Price has changed, please review your booking"}],
        )
    return expected


def create_booking(
    storage: Storage,
    body: BookingCreate,
    user: User,
    mailer: MailSender,
    defer: Defer | None = None,
    trust_client_price: bool = False,
) -> Booking:
    cruise = storage.get_cruise(body.cruiseId)
    if not cruise:
        raise NotFound("Cruise not found")

    if cruise.cabin_types and body.cabinType not in cruise.cabin_types:
        raise ValidationError(
            f"Cabin type '{body.cabinType}' is not offered on this cruise",
            errors=[{"field": "cabinType", "message": f"expected one of {', '.join(cruise.cabin_types)}"}],
        )

    total_price = _resolve_total(cruise, body, trust_client_price)

    booking_id = str(uuid.uuid4())
    booking = Booking(
        id=booking_id,
        user_id=user.id,
        cruise_id=cruise.id,
        booking_date=datetime.now(timezone.utc),
        departure_date=body.departureDate or cruise.departure_date,
        return_date=body.returnDate or cruise.return_date,
        number_of_guests=body.numberOfGuests,
        cabin_type=body.cabinType,
        total_price=total_price,
        payment_status=PAYMENT_PENDING,
        special_requests=body.specialRequests,
        contact_email=str(body.contactEmail),
        contact_phone=body.contactPhone,
    )
    booking.passengers = [
        Passenger(
            id=str(uuid.uuid4()),
            booking_id=booking_id,
            position=i,
            first_name=p.firstName,
            last_name=p.lastName,
            date_of_birth=p.dateOfBirth,
            citizenship=p.citizenship,
            passport_number=p.passportNumber,
        )
        for i, p in enumerate(body.passengers)
    ]
    booking = storage.create_booking(booking)
    logger.info(
        "booking created",
        extra={"booking_id": booking.id, "cruise_id": cruise.id, "user_id": user.id, "total_price": total_price},
    )

    if defer is not None:
        defer(dispatch_booking_confirmation, mailer, booking, cruise, user)
    else:
        dispatch_booking_confirmation(mailer, booking, cruise, user)
    return booking


def list_user_bookings(storage: Storage, user: User) -> list[tuple[Booking, Cruise | None]]:
    """Caller's bookings, newest first, each paired with its cruise."""
    return [(b, storage.get_cruise(b.cruise_id)) for b in storage.list_user_bookings(user.id)]


def get_user_booking(storage: Storage, booking_id: str, user: User) -> tuple[Booking, Cruise | None]:
    booking = storage.get_booking(booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if booking.user_id != user.id:
        raise Forbidden("Not authorized to view this booking")
    return booking, storage.get_cruise(booking.cruise_id)
