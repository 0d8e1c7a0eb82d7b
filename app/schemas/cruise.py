from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class CruiseCreate(BaseModel):
    """Catalog entry as written by the seed/admin process."""
    title: str
    description: str = ""
    destination: str
    imageUrl: str = ""
    cruiseLine: str
    shipName: str
    departurePort: str
    departureDate: datetime
    returnDate: datetime
    duration: int = Field(ge=1)
    pricePerPerson: float = Field(gt=0)
    salePrice: Optional[float] = Field(default=None, gt=0)
    isBestSeller: bool = False
    isSpecialOffer: bool = False
    amenities: List[str] = Field(default_factory=list)
    cabinTypes: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self):
        if self.returnDate <= self.departureDate:
            raise ValueError("returnDate must be after departureDate")
        nights = (self.returnDate - self.departureDate).days
        if nights != self.duration:
            raise ValueError(f"duration ({self.duration}) does not match dates ({nights} nights)")
        if self.salePrice is not None and self.salePrice > self.pricePerPerson:
            raise ValueError("salePrice must not exceed pricePerPerson")
        return self


class CruiseOut(BaseModel):
    id: str
    title: str
    description: str
    destination: str
    imageUrl: str
    cruiseLine: str
    shipName: str
    departurePort: str
    departureDate: datetime
    returnDate: datetime
    duration: int
    pricePerPerson: float
    salePrice: Optional[float] = None
    isBestSeller: bool
    isSpecialOffer: bool
    amenities: List[str]
    cabinTypes: List[str]
    rating: Optional[float] = None
    reviewCount: Optional[int] = None


def cruise_out(cruise, rating: float | None = None, review_count: int | None = None) -> CruiseOut:
    return CruiseOut(
        id=cruise.id,
        title=cruise.title,
        description=cruise.description or "",
        destination=cruise.destination,
        imageUrl=cruise.image_url or "",
        cruiseLine=cruise.cruise_line,
        shipName=cruise.ship_name,
        departurePort=cruise.departure_port,
        departureDate=cruise.departure_date,
        returnDate=cruise.return_date,
        duration=cruise.duration,
        pricePerPerson=cruise.price_per_person,
        salePrice=cruise.sale_price,
        isBestSeller=bool(cruise.is_best_seller),
        isSpecialOffer=bool(cruise.is_special_offer),
        amenities=list(cruise.amenities or []),
        cabinTypes=list(cruise.cabin_types or []),
        rating=rating,
        reviewCount=review_count,
    )
