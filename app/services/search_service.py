"""Cruise search: typed filters, a pure predicate, and optional SQL narrowing.

``build_predicate`` is the single definition of what a filter means. Storage
backends may push some of it down into SQL via ``build_sql_conditions``, but the
predicate is always applied to the result, including the rating post-filter that
needs the derived review aggregate.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, TYPE_CHECKING

from sqlalchemy import cast, func
from sqlalchemy.dialects.postgresql import ARRAY, array
from sqlalchemy.types import Text

from app.core.errors import ValidationError
from app.models.cruise import Cruise

if TYPE_CHECKING:
    from app.repos.base import RatingSummary, Storage

# closed ranges in nights; None = open-ended
DURATION_BANDS: dict[str, tuple[int, int | None]] = {
    "1-5": (1, 5),
    "6-9": (6, 9),
    "10-14": (10, 14),
    "15+": (15, None),
}

Predicate = Callable[[Cruise, float], bool]


def as_utc(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC so comparisons work."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def listing_sort_key(cruise: Cruise):
    return (not cruise.is_best_seller, not cruise.is_special_offer, as_utc(cruise.departure_date))


def _clean_values(values: Iterable[str] | None) -> tuple[str, ...]:
    return tuple(v.strip() for v in (values or ()) if v and v.strip())


@dataclass(frozen=True)
class CruiseFilters:
    destination: str | None = None
    departure_port: str | None = None
    departure_date_from: datetime | None = None
    duration_band: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    cruise_line: tuple[str, ...] = field(default_factory=tuple)
    amenities: tuple[str, ...] = field(default_factory=tuple)
    cabin_types: tuple[str, ...] = field(default_factory=tuple)
    min_rating: float | None = None

    def __post_init__(self):
        if self.duration_band is not None and self.duration_band not in DURATION_BANDS:
            raise ValidationError(
                f"Unknown duration '{self.duration_band}'; expected one of {', '.join(DURATION_BANDS)}"
            )
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValidationError("minPrice must not exceed maxPrice")
        # frozen: normalise list-valued fields through object.__setattr__
        for name in ("cruise_line", "amenities", "cabin_types"):
            object.__setattr__(self, name, _clean_values(getattr(self, name)))


def build_predicate(filters: CruiseFilters) -> Predicate:
    """Scalar checks AND together; each list field matches on any of its values."""
    checks: list[Predicate] = []

    if filters.destination:
        destination = filters.destination.lower()
        checks.append(lambda c, r: destination in (c.destination or "").lower())

    if filters.departure_port:
        port = filters.departure_port.lower()
        checks.append(lambda c, r: port in (c.departure_port or "").lower())

    if filters.departure_date_from is not None:
        since = as_utc(filters.departure_date_from)
        checks.append(lambda c, r: as_utc(c.departure_date) >= since)

    if filters.duration_band:
        lo, hi = DURATION_BANDS[filters.duration_band]
        checks.append(lambda c, r: c.duration >= lo and (hi is None or c.duration <= hi))

    if filters.min_price is not None:
        min_price = filters.min_price
        checks.append(lambda c, r: c.effective_price >= min_price)

    if filters.max_price is not None:
        max_price = filters.max_price
        checks.append(lambda c, r: c.effective_price <= max_price)

    if filters.cruise_line:
        lines = set(filters.cruise_line)
        checks.append(lambda c, r: c.cruise_line in lines)

    if filters.amenities:
        amenities = set(filters.amenities)
        checks.append(lambda c, r: bool(amenities.intersection(c.amenities or ())))

    if filters.cabin_types:
        cabins = set(filters.cabin_types)
        checks.append(lambda c, r: bool(cabins.intersection(c.cabin_types or ())))

    if filters.min_rating is not None:
        min_rating = filters.min_rating
        checks.append(lambda c, r: r >= min_rating)

    def predicate(cruise: Cruise, rating: float = 0.0) -> bool:
        return all(check(cruise, rating) for check in checks)

    return predicate


def _like_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_sql_conditions(filters: CruiseFilters, dialect: str = "postgresql") -> list:
    """WHERE clauses for the filters a database can evaluate directly.

    Tag overlap needs Postgres arrays, so other dialects leave it to the
    predicate. Rating is never pushed down.
    """
    conditions = []
    effective_price = func.coalesce(Cruise.sale_price, Cruise.price_per_person)

    if filters.destination:
        conditions.append(Cruise.destination.ilike(_like_pattern(filters.destination), escape="\\"))
    if filters.departure_port:
        conditions.append(Cruise.departure_port.ilike(_like_pattern(filters.departure_port), escape="\\"))
    if filters.departure_date_from is not None:
        since = as_utc(filters.departure_date_from).astimezone(timezone.utc)
        if dialect != "postgresql":
            # SQLite keeps the wall-clock text and drops the offset; stored values are UTC
            since = since.replace(tzinfo=None)
        conditions.append(Cruise.departure_date >= since)
    if filters.duration_band:
        lo, hi = DURATION_BANDS[filters.duration_band]
        conditions.append(Cruise.duration >= lo)
        if hi is not None:
            conditions.append(Cruise.duration <= hi)
    if filters.min_price is not None:
        conditions.append(effective_price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(effective_price <= filters.max_price)
    if filters.cruise_line:
        conditions.append(Cruise.cruise_line.in_(filters.cruise_line))

    if dialect == "postgresql":
        if filters.amenities:
            conditions.append(Cruise.amenities.overlap(cast(array(list(filters.amenities)), ARRAY(Text))))
        if filters.cabin_types:
            conditions.append(Cruise.cabin_types.overlap(cast(array(list(filters.cabin_types)), ARRAY(Text))))

    return conditions


def search_cruises(storage: "Storage", filters: CruiseFilters) -> list[tuple[Cruise, "RatingSummary"]]:
    """Matching cruises in listing order, each paired with its rating summary."""
    predicate = build_predicate(filters)
    results = []
    for cruise in storage.list_cruises(filters):
        summary = storage.rating_summary(cruise.id)
        if predicate(cruise, summary.rating):
            results.append((cruise, summary))
    return results
