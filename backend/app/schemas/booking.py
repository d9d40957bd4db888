"""Pydantic schemas for booking requests."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.booking import BookingStatus


class BookingCreate(BaseModel):
    """Payload for requesting a booking of a vehicle, a driver, or both."""

    renter_company_id: uuid.UUID
    vehicle_listing_id: uuid.UUID | None = None
    driver_listing_id: uuid.UUID | None = None
    start_date: date
    end_date: date
    duration_hours: int | None = Field(default=None, ge=0)
    duration_days: int | None = Field(default=None, ge=0)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingRead(BaseModel):
    """Serialized booking."""

    id: uuid.UUID
    booking_number: str
    renter_company_id: uuid.UUID
    provider_company_id: uuid.UUID
    vehicle_listing_id: uuid.UUID | None = None
    driver_listing_id: uuid.UUID | None = None
    status: BookingStatus
    start_date: date
    end_date: date
    duration_hours: int | None = None
    duration_days: int | None = None
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
