"""Schemas for listing search requests and results."""

from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.models.listing import FuelType, VehicleType
from app.schemas.listing import DriverListingRead, VehicleListingRead
from app.services.interval_utils import to_utc_date


class ListingTypeFilter(str, enum.Enum):
    """Which listing variants a search covers."""

    VEHICLE = "vehicle"
    DRIVER = "driver"
    VEHICLE_DRIVER = "vehicle_driver"


class SortField(str, enum.Enum):
    CREATED_AT = "created_at"
    PRICE = "price"
    RATING = "rating"
    DISTANCE = "distance"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class LocationFilter(BaseModel):
    """Geographic constraints. ``coordinates`` is ``(longitude, latitude)``."""

    fylke: str | None = None
    kommune: str | None = None
    radius: float | None = Field(default=None, gt=0)
    coordinates: tuple[float, float] | None = None


class CapacityRange(BaseModel):
    min: int | None = None
    max: int | None = None


class PriceRange(BaseModel):
    min: Decimal | None = None
    max: Decimal | None = None


class DateRange(BaseModel):
    """Closed range of UTC calendar dates; datetimes are truncated to their UTC date."""

    start: date
    end: date

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if isinstance(value, str) and "T" in value:
            value = datetime.fromisoformat(value)
        if isinstance(value, datetime):
            return to_utc_date(value)
        return value


class SearchFilters(BaseModel):
    """Conjunction of optional search clauses; absent clauses do not constrain."""

    listing_type: ListingTypeFilter | None = None
    vehicle_type: list[VehicleType] | None = None
    fuel_type: list[FuelType] | None = None
    location: LocationFilter | None = None
    capacity: CapacityRange | None = None
    price_range: PriceRange | None = None
    with_driver: bool | None = None
    tags: list[str] | None = None
    date_range: DateRange | None = None
    page: int = 1
    page_size: int | None = None
    sort_by: SortField | None = None
    sort_order: SortOrder | None = None


class SearchResponse(BaseModel):
    """Paginated search result."""

    vehicle_listings: list[VehicleListingRead]
    driver_listings: list[DriverListingRead]
    total: int
    page: int
    page_size: int
    total_pages: int
