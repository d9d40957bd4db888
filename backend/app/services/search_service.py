"""Listing search: candidate loading, filtering, availability, sorting and paging."""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.errors import InvalidFilterError, store_errors
from app.models.listing import (
    DriverListing,
    Listing,
    ListingKind,
    ListingStatus,
    VehicleListing,
)
from app.services.availability_service import find_unavailable_listing_ids
from app.services.listing_filters import distance_km, lowest_rate, matches

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.schemas.search import SearchFilters


@dataclass(slots=True, frozen=True)
class SearchResult:
    vehicle_listings: list[VehicleListing]
    driver_listings: list[DriverListing]
    total: int
    page: int
    page_size: int
    total_pages: int


def validate_filters(filters: "SearchFilters") -> None:
    """Reject filter combinations that can never be satisfied."""
    capacity = filters.capacity
    if capacity is not None and capacity.min is not None and capacity.max is not None:
        if capacity.min > capacity.max:
            raise InvalidFilterError("INVALID_CAPACITY_RANGE", "capacity.min exceeds capacity.max")
    price = filters.price_range
    if price is not None and price.min is not None and price.max is not None:
        if price.min > price.max:
            raise InvalidFilterError("INVALID_PRICE_RANGE", "price_range.min exceeds price_range.max")
    if filters.date_range is not None and filters.date_range.start > filters.date_range.end:
        raise InvalidFilterError("INVALID_DATE_RANGE", "date_range.start is after date_range.end")
    location = filters.location
    if location is not None and location.radius is not None and location.coordinates is None:
        raise InvalidFilterError("RADIUS_REQUIRES_COORDINATES")
    if filters.page < 1:
        raise InvalidFilterError("INVALID_PAGE", "page must be at least 1")
    if filters.page_size is not None and filters.page_size < 1:
        raise InvalidFilterError("INVALID_PAGE_SIZE", "page_size must be at least 1")


def _requested_kinds(filters: "SearchFilters") -> list[ListingKind]:
    listing_type = filters.listing_type.value if filters.listing_type else None
    if listing_type == "vehicle":
        return [ListingKind.VEHICLE]
    if listing_type == "driver":
        return [ListingKind.DRIVER]
    return [ListingKind.VEHICLE, ListingKind.DRIVER]


async def _load_vehicle_candidates(
    session: AsyncSession, filters: "SearchFilters"
) -> list[VehicleListing]:
    stmt = (
        select(VehicleListing)
        .options(selectinload(VehicleListing.company))
        .where(VehicleListing.status == ListingStatus.ACTIVE)
        .execution_options(populate_existing=True)
    )
    if filters.vehicle_type:
        stmt = stmt.where(VehicleListing.vehicle_type.in_(filters.vehicle_type))
    if filters.fuel_type:
        stmt = stmt.where(VehicleListing.fuel_type.in_(filters.fuel_type))
    location = filters.location
    if location is not None:
        if location.fylke is not None:
            stmt = stmt.where(VehicleListing.fylke == location.fylke)
        if location.kommune is not None:
            stmt = stmt.where(VehicleListing.kommune == location.kommune)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _load_driver_candidates(session: AsyncSession) -> list[DriverListing]:
    stmt = (
        select(DriverListing)
        .options(selectinload(DriverListing.company))
        .where(
            DriverListing.status == ListingStatus.ACTIVE,
            DriverListing.verified.is_(True),
        )
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _rating(listing: Listing) -> Decimal | None:
    if isinstance(listing, DriverListing):
        return listing.aggregated_rating
    company = listing.company
    return company.aggregated_rating if company is not None else None


def _sort_key(sort_by: str | None, filters: "SearchFilters") -> Callable[[Listing], Any]:
    if sort_by == "price":
        return lowest_rate
    if sort_by == "rating":
        return _rating
    if sort_by == "distance":
        coordinates = filters.location.coordinates if filters.location else None
        if coordinates is None:
            return lambda item: None
        return lambda item: distance_km(item, coordinates)
    return lambda item: item.created_at


def _sort(listings: list[Listing], filters: "SearchFilters") -> list[Listing]:
    """Order by the requested key; listings without a value for it go last."""
    sort_by = filters.sort_by.value if filters.sort_by else None
    if sort_by is None:
        descending = filters.sort_order is None or filters.sort_order.value == "desc"
    else:
        descending = filters.sort_order is not None and filters.sort_order.value == "desc"

    # id order survives as the tie-break because list.sort is stable
    ordered = sorted(listings, key=lambda item: str(item.id))
    key_value = _sort_key(sort_by, filters)
    present = [item for item in ordered if key_value(item) is not None]
    missing = [item for item in ordered if key_value(item) is None]
    present.sort(key=key_value, reverse=descending)
    return present + missing


def _page_window(items: Sequence[Listing], page: int, page_size: int) -> list[Listing]:
    offset = (page - 1) * page_size
    return list(items[offset : offset + page_size])


async def search_listings(
    session: AsyncSession,
    filters: "SearchFilters",
    *,
    tolerance: Decimal | None = None,
) -> SearchResult:
    """Run a listing search.

    Candidates are active listings of the requested kinds (drivers must also
    be verified). Each candidate must satisfy every filter clause and, when a
    date range is present, be free for the whole range. The same page window
    is applied to vehicles and drivers independently; ``total`` counts both.
    """
    validate_filters(filters)
    settings = get_settings()
    page_size = min(
        filters.page_size or settings.search_default_page_size,
        settings.search_max_page_size,
    )
    tolerance = settings.price_tolerance if tolerance is None else tolerance

    kinds = _requested_kinds(filters)
    matched: dict[ListingKind, list[Listing]] = {kind: [] for kind in ListingKind}

    with store_errors():
        if ListingKind.VEHICLE in kinds:
            vehicles = await _load_vehicle_candidates(session, filters)
            matched[ListingKind.VEHICLE] = [
                item for item in vehicles if matches(item, filters, tolerance=tolerance)
            ]
        if ListingKind.DRIVER in kinds:
            drivers = await _load_driver_candidates(session)
            matched[ListingKind.DRIVER] = [
                item
                for item in drivers
                if matches(item, filters, company=item.company, tolerance=tolerance)
            ]

    if filters.date_range is not None:
        for kind in kinds:
            candidates = matched[kind]
            unavailable: set[uuid.UUID] = await find_unavailable_listing_ids(
                session,
                listing_kind=kind,
                listing_ids=[item.id for item in candidates],
                start=filters.date_range.start,
                end=filters.date_range.end,
            )
            matched[kind] = [item for item in candidates if item.id not in unavailable]

    vehicles_sorted = _sort(matched[ListingKind.VEHICLE], filters)
    drivers_sorted = _sort(matched[ListingKind.DRIVER], filters)
    total = len(vehicles_sorted) + len(drivers_sorted)

    return SearchResult(
        vehicle_listings=_page_window(vehicles_sorted, filters.page, page_size),  # type: ignore[arg-type]
        driver_listings=_page_window(drivers_sorted, filters.page, page_size),  # type: ignore[arg-type]
        total=total,
        page=filters.page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )
