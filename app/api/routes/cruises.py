import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user, get_storage
from app.core.errors import NotFound, ValidationError
from app.models.review import Review
from app.models.user import User
from app.repos.base import DEFAULT_FEATURED_LIMIT, Storage
from app.schemas.cruise import CruiseOut, cruise_out
from app.schemas.review import ReviewCreate, ReviewOut, review_out
from app.services.search_service import CruiseFilters, search_cruises

router = APIRouter(tags=["cruises"])

ANY = "any"


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ANY:
        return None
    return value


def _parse_date(value: str | None) -> datetime | None:
    value = _optional(value)
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            f"Invalid departureDate '{value}'",
            errors=[{"field": "departureDate", "message": "expected an ISO 8601 date"}],
        )


def _enriched(storage: Storage, cruises) -> list[CruiseOut]:
    out = []
    for c in cruises:
        summary = storage.rating_summary(c.id)
        out.append(cruise_out(c, summary.rating, summary.count))
    return out


@router.get("/cruises", response_model=List[CruiseOut])
def list_cruises(
    destination: Optional[str] = None,
    departurePort: Optional[str] = None,
    departureDate: Optional[str] = None,
    duration: Optional[str] = None,
    minPrice: Optional[float] = Query(default=None, ge=0),
    maxPrice: Optional[float] = Query(default=None, ge=0),
    cruiseLine: List[str] = Query(default=[]),
    amenities: List[str] = Query(default=[]),
    cabinTypes: List[str] = Query(default=[]),
    rating: Optional[float] = Query(default=None, ge=0, le=5),
    storage: Storage = Depends(get_storage),
):
    filters = CruiseFilters(
        destination=_optional(destination),
        departure_port=_optional(departurePort),
        departure_date_from=_parse_date(departureDate),
        duration_band=_optional(duration),
        min_price=minPrice,
        max_price=maxPrice,
        cruise_line=tuple(cruiseLine),
        amenities=tuple(amenities),
        cabin_types=tuple(cabinTypes),
        min_rating=rating,
    )
    return [cruise_out(c, s.rating, s.count) for c, s in search_cruises(storage, filters)]


@router.get("/cruises/featured/bestsellers", response_model=List[CruiseOut])
def best_sellers(limit: int = Query(default=DEFAULT_FEATURED_LIMIT, ge=1, le=50), storage: Storage = Depends(get_storage)):
    return _enriched(storage, storage.best_seller_cruises(limit))


@router.get("/cruises/featured/special-offers", response_model=List[CruiseOut])
def special_offers(limit: int = Query(default=DEFAULT_FEATURED_LIMIT, ge=1, le=50), storage: Storage = Depends(get_storage)):
    return _enriched(storage, storage.special_offer_cruises(limit))


@router.get("/cruises/featured/recommended", response_model=List[CruiseOut])
def recommended(
    destination: Optional[str] = None,
    limit: int = Query(default=DEFAULT_FEATURED_LIMIT, ge=1, le=50),
    storage: Storage = Depends(get_storage),
):
    return _enriched(storage, storage.recommended_cruises(_optional(destination), limit))


@router.get("/cruises/{cruise_id}", response_model=CruiseOut)
def get_cruise(cruise_id: str, storage: Storage = Depends(get_storage)):
    cruise = storage.get_cruise(cruise_id)
    if not cruise:
        raise NotFound("Cruise not found")
    summary = storage.rating_summary(cruise.id)
    return cruise_out(cruise, summary.rating, summary.count)


@router.get("/cruises/{cruise_id}/reviews", response_model=List[ReviewOut])
def list_reviews(cruise_id: str, storage: Storage = Depends(get_storage)):
    if not storage.get_cruise(cruise_id):
        raise NotFound("Cruise not found")
    return [review_out(r) for r in storage.list_cruise_reviews(cruise_id)]


@router.post("/cruises/{cruise_id}/reviews", response_model=ReviewOut, status_code=201)
def create_review(
    cruise_id: str,
    body: ReviewCreate,
    storage: Storage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    if not storage.get_cruise(cruise_id):
        raise NotFound("Cruise not found")
    review = storage.create_review(
        Review(
            id=str(uuid.uuid4()),
            user_id=me.id,
            cruise_id=cruise_id,
            rating=body.rating,
            comment=body.comment,
            created_at=datetime.now(timezone.utc),
        )
    )
    return review_out(review)
