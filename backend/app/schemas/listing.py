"""Pydantic schemas for vehicle and driver listings."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.models.listing import FuelType, ListingStatus, VehicleType


class VehicleListingCreate(BaseModel):
    """Payload for publishing a vehicle listing.

    Required-ness is enforced by the listing service so that callers get the
    same error codes over HTTP and in-process.
    """

    company_id: uuid.UUID
    title: str | None = None
    description: str | None = None
    vehicle_type: VehicleType | None = None
    capacity: int | None = None
    fuel_type: FuelType | None = None
    city: str | None = None
    fylke: str | None = None
    kommune: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    deposit: Decimal | None = Field(default=None, ge=Decimal("0"))
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    with_driver: bool = False
    with_driver_cost: Decimal | None = Field(default=None, ge=Decimal("0"))
    without_driver: bool = True
    photos: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class VehicleListingUpdate(BaseModel):
    """Mutable vehicle listing fields."""

    title: str | None = None
    description: str | None = None
    vehicle_type: VehicleType | None = None
    capacity: int | None = None
    fuel_type: FuelType | None = None
    city: str | None = None
    fylke: str | None = None
    kommune: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    deposit: Decimal | None = Field(default=None, ge=Decimal("0"))
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    with_driver: bool | None = None
    with_driver_cost: Decimal | None = Field(default=None, ge=Decimal("0"))
    without_driver: bool | None = None
    photos: list[str] | None = None
    tags: list[str] | None = None


class VehicleListingRead(BaseModel):
    """Serialized vehicle listing."""

    id: uuid.UUID
    company_id: uuid.UUID
    status: ListingStatus
    title: str
    description: str
    vehicle_type: VehicleType
    capacity: int
    fuel_type: FuelType
    city: str
    fylke: str
    kommune: str
    latitude: float | None = None
    longitude: float | None = None
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    deposit: Decimal | None = None
    currency: str
    with_driver: bool
    with_driver_cost: Decimal | None = None
    without_driver: bool
    photos: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DriverListingCreate(BaseModel):
    """Payload for publishing a driver listing."""

    company_id: uuid.UUID
    name: str | None = None
    license_class: str | None = None
    languages: list[str] = Field(default_factory=list)
    background_summary: str | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    license_document_path: str | None = None
    tags: list[str] = Field(default_factory=list)


class DriverListingUpdate(BaseModel):
    """Mutable driver listing fields; verification is not among them."""

    name: str | None = None
    license_class: str | None = None
    languages: list[str] | None = None
    background_summary: str | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    license_document_path: str | None = None
    tags: list[str] | None = None


class DriverListingRead(BaseModel):
    """Serialized driver listing. The license document path is not exposed."""

    id: uuid.UUID
    company_id: uuid.UUID
    status: ListingStatus
    name: str
    license_class: str
    languages: list[str] = Field(default_factory=list)
    background_summary: str | None = None
    hourly_rate: Decimal | None = None
    daily_rate: Decimal | None = None
    currency: str
    tags: list[str] = Field(default_factory=list)
    has_license_document: bool = False
    verified: bool
    verified_at: datetime | None = None
    verified_by: uuid.UUID | None = None
    aggregated_rating: Decimal | None = None
    status_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_listing(cls, listing: object) -> "DriverListingRead":
        read = cls.model_validate(listing)
        read.has_license_document = bool(getattr(listing, "license_document_path", None))
        return read


class CompanyListingsRead(BaseModel):
    """All listings owned by one company, newest first."""

    vehicle_listings: list[VehicleListingRead]
    driver_listings: list[DriverListingRead]


class ListingStatusUpdate(BaseModel):
    """Admin request to change a listing's publication status."""

    status: ListingStatus
    reason: str | None = Field(default=None, max_length=1024)
