"""Vehicle and driver listing models."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Union

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.company import Company


class ListingKind(str, enum.Enum):
    """Discriminator for the two listing variants."""

    VEHICLE = "vehicle"
    DRIVER = "driver"


class ListingStatus(str, enum.Enum):
    """Publication state shared by both listing variants."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    REMOVED = "removed"


class VehicleType(str, enum.Enum):
    """Vehicle categories offered on the marketplace."""

    PALLET_8 = "pallet_8"
    PALLET_18 = "pallet_18"
    PALLET_21 = "pallet_21"
    TRAILER = "trailer"
    VAN = "van"
    TRUCK = "truck"
    OTHER = "other"


class FuelType(str, enum.Enum):
    """Propulsion of a listed vehicle."""

    ELECTRIC = "electric"
    BIOGAS = "biogas"
    DIESEL = "diesel"
    GAS = "gas"
    HYDROGEN = "hydrogen"
    HYBRID = "hybrid"


class _ListingColumns(TimestampMixin):
    """Columns shared by every listing variant."""

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ListingStatus] = mapped_column(
        Enum(ListingStatus), default=ListingStatus.ACTIVE, nullable=False, index=True
    )
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="NOK")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status_reason: Mapped[str | None] = mapped_column(String(1024))
    status_changed_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    status_changed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class VehicleListing(_ListingColumns, Base):
    """A vehicle offered for hire, optionally with a driver."""

    __tablename__ = "vehicle_listings"

    kind = ListingKind.VEHICLE

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle_type: Mapped[VehicleType] = mapped_column(Enum(VehicleType), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    fuel_type: Mapped[FuelType] = mapped_column(Enum(FuelType), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    fylke: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    kommune: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    deposit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    with_driver: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    with_driver_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    without_driver: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    photos: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    company: Mapped["Company"] = relationship("Company", back_populates="vehicle_listings")


class DriverListing(_ListingColumns, Base):
    """A driver offered for hire on their own or alongside a vehicle."""

    __tablename__ = "driver_listings"

    kind = ListingKind.DRIVER

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    license_class: Mapped[str] = mapped_column(String(32), nullable=False)
    languages: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    background_summary: Mapped[str | None] = mapped_column(Text)
    license_document_path: Mapped[str | None] = mapped_column(String(1024))
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    verified_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
    aggregated_rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))

    company: Mapped["Company"] = relationship("Company", back_populates="driver_listings")


Listing = Union[VehicleListing, DriverListing]

LISTING_MODELS: dict[ListingKind, type[VehicleListing] | type[DriverListing]] = {
    ListingKind.VEHICLE: VehicleListing,
    ListingKind.DRIVER: DriverListing,
}
