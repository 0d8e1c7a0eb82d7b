from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import List, Optional

from app.schemas.cruise import CruiseOut

MAX_GUESTS = 10


class PassengerIn(BaseModel):
    firstName: str = Field(min_length=1, max_length=100)
    lastName: str = Field(min_length=1, max_length=100)
    dateOfBirth: str = Field(min_length=1, max_length=20)
    citizenship: str = Field(min_length=1, max_length=80)
    passportNumber: Optional[str] = Field(default=None, max_length=80)


class BookingCreate(BaseModel):
    cruiseId: str
    numberOfGuests: int = Field(ge=1, le=MAX_GUESTS)
    cabinType: str = Field(min_length=1, max_length=60)
    contactEmail: EmailStr
    contactPhone: Optional[str] = Field(default=None, max_length=40)
    specialRequests: Optional[str] = Field(default=None, max_length=2000)
    passengers: List[PassengerIn] = Field(min_length=1, max_length=MAX_GUESTS)
    # Optional client-side values; see booking_service for how they are used.
    totalPrice: Optional[float] = Field(default=None, ge=0)
    departureDate: Optional[datetime] = None
    returnDate: Optional[datetime] = None

    @model_validator(mode="after")
    def passengers_match_guests(self):
        if len(self.passengers) != self.numberOfGuests:
            raise ValueError(
                f"passengers has {len(self.passengers)} entries but numberOfGuests is {self.numberOfGuests}"
            )
        return self


class PassengerOut(BaseModel):
    firstName: str
    lastName: str
    dateOfBirth: str
    citizenship: str
    passportNumber: Optional[str] = None


class BookingOut(BaseModel):
    id: str
    userId: str
    cruiseId: str
    bookingDate: datetime
    departureDate: datetime
    returnDate: datetime
    numberOfGuests: int
    cabinType: str
    totalPrice: float
    paymentStatus: str
    specialRequests: Optional[str] = None
    contactEmail: str
    contactPhone: Optional[str] = None
    passengers: List[PassengerOut]
    cruise: Optional[CruiseOut] = None


def booking_out(booking, cruise: CruiseOut | None = None) -> BookingOut:
    # stripe ids/secrets stay server-side; the secret is only handed out by the payment endpoint
    return BookingOut(
        id=booking.id,
        userId=booking.user_id,
        cruiseId=booking.cruise_id,
        bookingDate=booking.booking_date,
        departureDate=booking.departure_date,
        returnDate=booking.return_date,
        numberOfGuests=booking.number_of_guests,
        cabinType=booking.cabin_type,
        totalPrice=booking.total_price,
        paymentStatus=booking.payment_status,
        specialRequests=booking.special_requests,
        contactEmail=booking.contact_email,
        contactPhone=booking.contact_phone,
        passengers=[
            PassengerOut(
                firstName=p.first_name,
                lastName=p.last_name,
                dateOfBirth=p.date_of_birth,
                citizenship=p.citizenship,
                passportNumber=p.passport_number,
            )
            for p in booking.passengers
        ],
        cruise=cruise,
    )
