"""Booking models."""
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.company import Company
    from app.models.listing import DriverListing, VehicleListing


class BookingStatus(str, enum.Enum):
    """Lifecycle states for bookings."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    ACTIVE = "active"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    DECLINED = "declined"
    EXPIRED = "expired"
    DISPUTED = "disputed"


# Confirmed, not yet finished occupancy. Only these reserve a listing's time.
ACTIVE_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.ACCEPTED, BookingStatus.ACTIVE}
)

# Bookings that still need attention before their listing may be deleted.
OPEN_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.ACCEPTED, BookingStatus.ACTIVE}
)


class Booking(TimestampMixin, Base):
    """A hire of a vehicle listing, a driver listing, or both, for a date range."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="date_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    booking_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    renter_company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    provider_company_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    vehicle_listing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("vehicle_listings.id", ondelete="SET NULL"), index=True
    )
    driver_listing_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("driver_listings.id", ondelete="SET NULL"), index=True
    )
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_hours: Mapped[int | None] = mapped_column(Integer)
    duration_days: Mapped[int | None] = mapped_column(Integer)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    renter_company: Mapped["Company"] = relationship(
        "Company", foreign_keys=[renter_company_id]
    )
    provider_company: Mapped["Company"] = relationship(
        "Company", foreign_keys=[provider_company_id]
    )
    vehicle_listing: Mapped["VehicleListing | None"] = relationship("VehicleListing")
    driver_listing: Mapped["DriverListing | None"] = relationship("DriverListing")
