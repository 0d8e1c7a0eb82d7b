from sqlalchemy import String, Integer, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, timezone
from app.db.session import Base

PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_CANCELLED = "cancelled"
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_COMPLETED, PAYMENT_CANCELLED)

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), index=True)
    cruise_id: Mapped[str] = mapped_column(String(36), ForeignKey("cruises.id"), index=True)
    booking_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # snapshot taken at booking time; never recomputed from the cruise
    departure_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    return_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    number_of_guests: Mapped[int] = mapped_column(Integer)
    cabin_type: Mapped[str] = mapped_column(String(60))
    total_price: Mapped[float] = mapped_column(Float)

    payment_status: Mapped[str] = mapped_column(String(20), default=PAYMENT_PENDING)  # pending, completed, cancelled
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    stripe_client_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)

    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    contact_email: Mapped[str] = mapped_column(String(320))
    contact_phone: Mapped[str | None] = mapped_column(String(40), nullable=True)

    passengers: Mapped[list["Passenger"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Passenger.position",
        lazy="selectin",
    )


from app.models.passenger import Passenger  # noqa: E402,F401
