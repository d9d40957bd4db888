"""Pydantic schemas for availability blocks and checks."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.listing import ListingKind


class AvailabilityBlockCreate(BaseModel):
    """Payload for blocking one listing over a closed date range."""

    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=255)


class BulkBlockCreate(AvailabilityBlockCreate):
    """Same block applied to several listings of one kind."""

    listing_kind: ListingKind
    listing_ids: list[uuid.UUID]


class AvailabilityBlockRead(BaseModel):
    id: uuid.UUID
    listing_kind: ListingKind
    listing_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecurringBlockCreate(BaseModel):
    """Weekly pattern; ``days_of_week`` uses 0 for Sunday through 6 for Saturday."""

    days_of_week: list[int] = Field(min_length=1)
    start_date: date
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=255)


class RecurringBlockUpdate(BaseModel):
    """Mutable recurring block fields. An explicit ``end_date: null`` makes it open-ended."""

    days_of_week: list[int] | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=255)


class RecurringBlockRead(BaseModel):
    id: uuid.UUID
    listing_kind: ListingKind
    listing_id: uuid.UUID
    days_of_week: list[int]
    start_date: date
    end_date: date | None = None
    reason: str | None = None
    created_by: uuid.UUID | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AvailabilityConflictRead(BaseModel):
    kind: str
    start_date: date
    end_date: date
    reference_id: uuid.UUID
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityRead(BaseModel):
    """Availability of one listing over a closed date range."""

    listing_id: uuid.UUID
    listing_kind: ListingKind
    start_date: date
    end_date: date
    available: bool
    conflicts: list[AvailabilityConflictRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
