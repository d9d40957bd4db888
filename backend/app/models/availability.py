"""Manual availability blocks for listings."""
from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import JSON, CheckConstraint, Date, Enum, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.listing import ListingKind
from app.models.mixins import TimestampMixin


class AvailabilityBlock(TimestampMixin, Base):
    """One-off period during which a listing cannot be booked."""

    __tablename__ = "availability_blocks"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="date_order"),
        Index("ix_availability_blocks_listing", "listing_kind", "listing_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    listing_kind: Mapped[ListingKind] = mapped_column(Enum(ListingKind), nullable=False)
    listing_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)


class RecurringBlock(TimestampMixin, Base):
    """Weekly unavailability pattern bounded by an active date span.

    ``days_of_week`` uses 0 for Sunday through 6 for Saturday. A missing
    ``end_date`` leaves the pattern open-ended.
    """

    __tablename__ = "recurring_blocks"
    __table_args__ = (
        Index("ix_recurring_blocks_listing", "listing_kind", "listing_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    listing_kind: Mapped[ListingKind] = mapped_column(Enum(ListingKind), nullable=False)
    listing_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
    days_of_week: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)
    reason: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[uuid.UUID | None] = mapped_column(nullable=True)
