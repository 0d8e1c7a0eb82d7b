from sqlalchemy import String, Integer, DateTime, Boolean, Float, Text, JSON
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base

# Postgres stores tag sets as text[]; SQLite (tests) falls back to JSON lists.
TagList = ARRAY(Text).with_variant(JSON(), "sqlite")

class Cruise(Base):
    __tablename__ = "cruises"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text, default="")
    destination: Mapped[str] = mapped_column(String(120), index=True)
    image_url: Mapped[str] = mapped_column(String(512), default="")
    cruise_line: Mapped[str] = mapped_column(String(120), index=True)
    ship_name: Mapped[str] = mapped_column(String(120))
    departure_port: Mapped[str] = mapped_column(String(120))
    departure_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    return_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    duration: Mapped[int] = mapped_column(Integer)  # nights

    price_per_person: Mapped[float] = mapped_column(Float)
    sale_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    is_best_seller: Mapped[bool] = mapped_column(Boolean, default=False)
    is_special_offer: Mapped[bool] = mapped_column(Boolean, default=False)

    amenities: Mapped[list[str]] = mapped_column(TagList, default=list)
    cabin_types: Mapped[list[str]] = mapped_column(TagList, default=list)

    @property
    def effective_price(self) -> float:
        return self.sale_price if self.sale_price is not None else self.price_per_person
