from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from app.api.deps import get_current_user, get_mailer, get_settings, get_storage
from app.core.config import Settings
from app.models.user import User
from app.repos.base import Storage
from app.schemas.booking import BookingCreate, BookingOut, booking_out
from app.schemas.cruise import cruise_out
from app.services import booking_service
from app.services.email_service import MailSender

router = APIRouter(tags=["bookings"])


def _with_cruise(storage: Storage, booking, cruise) -> BookingOut:
    if cruise is None:
        return booking_out(booking)
    summary = storage.rating_summary(cruise.id)
    return booking_out(booking, cruise_out(cruise, summary.rating, summary.count))


@router.get("/bookings", response_model=List[BookingOut])
def list_bookings(storage: Storage = Depends(get_storage), me: User = Depends(get_current_user)):
    return [_with_cruise(storage, b, c) for b, c in booking_service.list_user_bookings(storage, me)]


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, storage: Storage = Depends(get_storage), me: User = Depends(get_current_user)):
    booking, cruise = booking_service.get_user_booking(storage, booking_id, me)
    return _with_cruise(storage, booking, cruise)


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_booking(
    body: BookingCreate,
    background: BackgroundTasks,
    storage: Storage = Depends(get_storage),
    mailer: MailSender = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    me: User = Depends(get_current_user),
):
    booking = booking_service.create_booking(
        storage,
        body,
        me,
        mailer,
        defer=background.add_task,
        trust_client_price=settings.TRUST_CLIENT_PRICE,
    )
    return booking_out(booking)
