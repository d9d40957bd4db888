"""Non-temporal search filters evaluated against a single listing.

``matches`` is a pure conjunction: every clause present in the filters must
hold and absent clauses impose nothing. Clauses that only make sense for
vehicles (type, fuel, capacity, driver offering, radius) never hold for a
driver listing, which has no value to compare.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import TYPE_CHECKING

from app.models.company import Company
from app.models.listing import DriverListing, Listing, ListingStatus, VehicleListing

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.schemas.search import (
        CapacityRange,
        LocationFilter,
        PriceRange,
        SearchFilters,
    )

EARTH_RADIUS_KM = 6371.0
DEFAULT_PRICE_TOLERANCE = Decimal("0.01")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(listing: Listing, coordinates: tuple[float, float]) -> float | None:
    """Distance from ``(longitude, latitude)`` to the listing, None if it has no position."""
    if not isinstance(listing, VehicleListing):
        return None
    if listing.latitude is None or listing.longitude is None:
        return None
    longitude, latitude = coordinates
    return haversine_km(latitude, longitude, listing.latitude, listing.longitude)


def lowest_rate(listing: Listing) -> Decimal | None:
    rates = [rate for rate in (listing.hourly_rate, listing.daily_rate) if rate is not None]
    return min(rates) if rates else None


def is_searchable(listing: Listing) -> bool:
    """Status gate: only active listings, and only verified drivers, are ever returned."""
    if listing.status != ListingStatus.ACTIVE:
        return False
    if isinstance(listing, DriverListing) and not listing.verified:
        return False
    return True


def _region_of(listing: Listing, company: Company | None) -> tuple[str | None, str | None]:
    if isinstance(listing, VehicleListing):
        return listing.fylke, listing.kommune
    if company is None:
        return None, None
    return company.fylke, company.kommune


def _match_location(
    listing: Listing, location: "LocationFilter", company: Company | None
) -> bool:
    fylke, kommune = _region_of(listing, company)
    if location.fylke is not None and fylke != location.fylke:
        return False
    if location.kommune is not None and kommune != location.kommune:
        return False
    if location.radius is not None and location.coordinates is not None:
        distance = distance_km(listing, location.coordinates)
        if distance is None or distance > location.radius:
            return False
    return True


def _match_capacity(listing: Listing, capacity: "CapacityRange") -> bool:
    if capacity.min is None and capacity.max is None:
        return True
    if not isinstance(listing, VehicleListing):
        return False
    if capacity.min is not None and listing.capacity < capacity.min:
        return False
    if capacity.max is not None and listing.capacity > capacity.max:
        return False
    return True


def price_in_range(
    listing: Listing,
    price_range: "PriceRange",
    tolerance: Decimal = DEFAULT_PRICE_TOLERANCE,
) -> bool:
    """True when at least one of the hourly/daily rates falls inside the range."""
    if price_range.min is None and price_range.max is None:
        return True
    for rate in (listing.hourly_rate, listing.daily_rate):
        if rate is None:
            continue
        if price_range.min is not None and rate < price_range.min - tolerance:
            continue
        if price_range.max is not None and rate > price_range.max + tolerance:
            continue
        return True
    return False


def _match_with_driver(listing: Listing, with_driver: bool) -> bool:
    if not isinstance(listing, VehicleListing):
        return False
    return listing.with_driver if with_driver else listing.without_driver


def matches(
    listing: Listing,
    filters: "SearchFilters",
    *,
    company: Company | None = None,
    tolerance: Decimal = DEFAULT_PRICE_TOLERANCE,
) -> bool:
    """Evaluate every present filter clause against ``listing``.

    Driver listings are located through their company; pass ``company``
    explicitly or make sure ``listing.company`` is already loaded.
    """
    if not is_searchable(listing):
        return False

    if filters.vehicle_type:
        if not isinstance(listing, VehicleListing) or listing.vehicle_type not in filters.vehicle_type:
            return False

    if filters.fuel_type:
        if not isinstance(listing, VehicleListing) or listing.fuel_type not in filters.fuel_type:
            return False

    if filters.location is not None:
        if company is None and isinstance(listing, DriverListing):
            company = listing.company
        if not _match_location(listing, filters.location, company):
            return False

    if filters.capacity is not None and not _match_capacity(listing, filters.capacity):
        return False

    if filters.price_range is not None and not price_in_range(
        listing, filters.price_range, tolerance
    ):
        return False

    if filters.with_driver is not None and not _match_with_driver(listing, filters.with_driver):
        return False

    if filters.tags and not set(filters.tags).issubset(listing.tags or []):
        return False

    return True


__all__ = [
    "distance_km",
    "haversine_km",
    "is_searchable",
    "lowest_rate",
    "matches",
    "price_in_range",
]
