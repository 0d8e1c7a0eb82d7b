from datetime import datetime, timezone

import pytest

from app.core.errors import ValidationError
from app.repos.memory import MemoryStorage
from app.services.search_service import CruiseFilters, build_predicate, search_cruises
from conftest import make_cruise


@pytest.fixture
def catalog():
    storage = MemoryStorage()
    caribbean = make_cruise(
        storage,
        title="Caribbean Paradise Cruise",
        destination="Caribbean",
        cruise_line="Royal Caribbean",
        departure_port="Miami, FL",
        duration=7,
        price_per_person=1299.0,
        sale_price=899.0,
        is_best_seller=True,
        amenities=["pools", "casino", "spa", "kidsClub"],
        cabin_types=["interior", "oceanview", "balcony", "suite"],
        departure_date=datetime(2030, 11, 15, tzinfo=timezone.utc),
        return_date=datetime(2030, 11, 22, tzinfo=timezone.utc),
    )
    med = make_cruise(
        storage,
        title="Mediterranean Adventure",
        destination="Mediterranean",
        cruise_line="Norwegian Cruise Line",
        departure_port="Barcelona, Spain",
        duration=10,
        price_per_person=1899.0,
        sale_price=1499.0,
        is_special_offer=True,
        amenities=["pools", "casino", "spa"],
        cabin_types=["interior", "oceanview", "balcony", "suite"],
        departure_date=datetime(2030, 12, 10, tzinfo=timezone.utc),
        return_date=datetime(2030, 12, 20, tzinfo=timezone.utc),
    )
    alaska = make_cruise(
        storage,
        title="Alaskan Glaciers Expedition",
        destination="Alaska",
        cruise_line="Princess Cruises",
        departure_port="Seattle, WA",
        duration=7,
        price_per_person=1249.0,
        amenities=["pools", "spa"],
        cabin_types=["interior", "oceanview", "balcony"],
        departure_date=datetime(2031, 5, 20, tzinfo=timezone.utc),
        return_date=datetime(2031, 5, 27, tzinfo=timezone.utc),
    )
    return storage, caribbean, med, alaska


def _titles(results):
    return [c.title for c, _ in results]


def test_empty_filters_return_everything_in_listing_order(catalog):
    storage, caribbean, med, alaska = catalog
    results = search_cruises(storage, CruiseFilters())
    # best seller, then special offer, then by departure date
    assert [c.id for c, _ in results] == [caribbean.id, med.id, alaska.id]


def test_destination_is_case_insensitive_substring(catalog):
    storage, caribbean, *_ = catalog
    assert _titles(search_cruises(storage, CruiseFilters(destination="carib"))) == [caribbean.title]


def test_departure_port_substring(catalog):
    storage, _, med, _ = catalog
    assert _titles(search_cruises(storage, CruiseFilters(departure_port="barcelona"))) == [med.title]


def test_price_uses_effective_price(catalog):
    storage, caribbean, med, alaska = catalog
    # caribbean sells at 899 even though its base price is 1299
    results = search_cruises(storage, CruiseFilters(max_price=1000))
    assert _titles(results) == [caribbean.title]
    results = search_cruises(storage, CruiseFilters(min_price=1200, max_price=1300))
    assert _titles(results) == [alaska.title]


def test_duration_band(catalog):
    storage, caribbean, med, alaska = catalog
    assert set(_titles(search_cruises(storage, CruiseFilters(duration_band="6-9")))) == {caribbean.title, alaska.title}
    assert _titles(search_cruises(storage, CruiseFilters(duration_band="10-14"))) == [med.title]
    assert search_cruises(storage, CruiseFilters(duration_band="15+")) == []


def test_unknown_duration_band_rejected():
    with pytest.raises(ValidationError):
        CruiseFilters(duration_band="3-4")


def test_min_price_above_max_price_rejected():
    with pytest.raises(ValidationError):
        CruiseFilters(min_price=500, max_price=100)


def test_list_filters_or_within_and_across(catalog):
    storage, caribbean, med, alaska = catalog
    # either amenity matches
    results = search_cruises(storage, CruiseFilters(amenities=("kidsClub", "casino")))
    assert set(_titles(results)) == {caribbean.title, med.title}
    # ...but every field must match
    results = search_cruises(storage, CruiseFilters(amenities=("kidsClub", "casino"), cabin_types=("suite",), cruise_line=("Norwegian Cruise Line",)))
    assert _titles(results) == [med.title]


def test_departure_date_from(catalog):
    storage, _, _, alaska = catalog
    results = search_cruises(storage, CruiseFilters(departure_date_from=datetime(2031, 1, 1, tzinfo=timezone.utc)))
    assert _titles(results) == [alaska.title]


def test_naive_departure_date_treated_as_utc(catalog):
    storage, _, _, alaska = catalog
    results = search_cruises(storage, CruiseFilters(departure_date_from=datetime(2031, 1, 1)))
    assert _titles(results) == [alaska.title]


def test_no_match_is_empty_list(catalog):
    storage, *_ = catalog
    assert search_cruises(storage, CruiseFilters(destination="Antarctica")) == []


def test_scalar_filters_commute(catalog):
    storage, *_ = catalog
    a = CruiseFilters(destination="a", max_price=1300)
    b = CruiseFilters(max_price=1300, destination="a")
    assert _titles(search_cruises(storage, a)) == _titles(search_cruises(storage, b))


def test_rating_post_filter():
    storage = MemoryStorage()
    cruise = make_cruise(storage)
    predicate = build_predicate(CruiseFilters(min_rating=4))
    assert predicate(cruise, 4.5)
    assert not predicate(cruise, 3.9)
    # a cruise without reviews rates 0.0
    assert not predicate(cruise, 0.0)


def test_blank_list_values_are_dropped():
    filters = CruiseFilters(amenities=(" ", "spa", ""))
    assert filters.amenities == ("spa",)
