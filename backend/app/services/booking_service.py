"""Booking requests and their status workflow."""
from __future__ import annotations

import secrets
import time
import uuid
from datetime import UTC, date, datetime, timedelta
from typing import NoReturn

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    ConflictError,
    NotFoundError,
    StateTransitionError,
    ValidationError,
    store_errors,
)
from app.models.booking import Booking, BookingStatus
from app.models.company import Company
from app.models.listing import Listing, ListingKind
from app.services.availability_service import is_unavailable, list_conflicts
from app.services.interval_utils import to_utc_date
from app.services.listing_filters import is_searchable
from app.services.listing_service import get_listing

_ALLOWED_STATUS_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.ACCEPTED,
        BookingStatus.DECLINED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    },
    BookingStatus.ACCEPTED: {BookingStatus.ACTIVE, BookingStatus.CANCELLED},
    BookingStatus.ACTIVE: {
        BookingStatus.COMPLETED,
        BookingStatus.DISPUTED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.COMPLETED: {BookingStatus.CLOSED, BookingStatus.DISPUTED},
    BookingStatus.DISPUTED: {BookingStatus.CLOSED, BookingStatus.CANCELLED},
    BookingStatus.CLOSED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.DECLINED: set(),
    BookingStatus.EXPIRED: set(),
}


def _coerce_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _booking_number() -> str:
    return f"BK-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"


async def _abort(session: AsyncSession, error: Exception) -> NoReturn:
    """Roll back the open transaction (releasing row locks) and raise ``error``."""
    await session.rollback()
    raise error


async def _lock_booked_listings(
    session: AsyncSession,
    *,
    vehicle_listing_id: uuid.UUID | None,
    driver_listing_id: uuid.UUID | None,
) -> list[Listing]:
    # Vehicle before driver so concurrent writers lock in the same order.
    locked: list[Listing] = []
    if vehicle_listing_id is not None:
        locked.append(
            await get_listing(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=vehicle_listing_id,
                for_update=True,
            )
        )
    if driver_listing_id is not None:
        locked.append(
            await get_listing(
                session,
                listing_kind=ListingKind.DRIVER,
                listing_id=driver_listing_id,
                for_update=True,
            )
        )
    return locked


async def get_booking(session: AsyncSession, *, booking_id: uuid.UUID) -> Booking:
    with store_errors():
        booking = await session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("BOOKING_NOT_FOUND")
    return booking


async def create_booking_request(
    session: AsyncSession,
    *,
    renter_company_id: uuid.UUID,
    start_date: date | datetime,
    end_date: date | datetime,
    vehicle_listing_id: uuid.UUID | None = None,
    driver_listing_id: uuid.UUID | None = None,
    duration_hours: int | None = None,
    duration_days: int | None = None,
    now: datetime | None = None,
) -> Booking:
    """Request a booking of a vehicle, a driver, or both for a closed date range.

    The booked listings are row-locked while their availability is checked and
    the booking inserted, so two requests cannot both observe a free range.
    The new booking is PENDING and does not reserve the range until accepted.
    """
    if vehicle_listing_id is None and driver_listing_id is None:
        raise ValidationError("AT_LEAST_ONE_LISTING_REQUIRED")
    start, end = to_utc_date(start_date), to_utc_date(end_date)
    if start > end:
        raise ValidationError("INVALID_DATE_RANGE", "start date must not be after end date")
    if not duration_hours and not duration_days:
        raise ValidationError("DURATION_REQUIRED", "duration_hours or duration_days is required")
    if (duration_hours is not None and duration_hours < 0) or (
        duration_days is not None and duration_days < 0
    ):
        raise ValidationError("INVALID_DURATION", "durations must not be negative")

    with store_errors():
        renter = await session.get(Company, renter_company_id)
    if renter is None:
        raise NotFoundError("COMPANY_NOT_FOUND")

    listings = await _lock_booked_listings(
        session,
        vehicle_listing_id=vehicle_listing_id,
        driver_listing_id=driver_listing_id,
    )
    for listing in listings:
        if not is_searchable(listing):
            await _abort(session, StateTransitionError("LISTING_NOT_AVAILABLE_FOR_BOOKING"))

    providers = {listing.company_id for listing in listings}
    if len(providers) > 1:
        await _abort(session, ValidationError("CROSS_COMPANY_VEHICLE_DRIVER_NOT_ALLOWED"))
    provider_company_id = providers.pop()
    if provider_company_id == renter_company_id:
        await _abort(session, ValidationError("SELF_BOOKING_NOT_ALLOWED"))

    for listing in listings:
        if await is_unavailable(
            session, listing_id=listing.id, listing_kind=listing.kind, start=start, end=end
        ):
            await _abort(
                session,
                ConflictError(
                    "LISTING_NOT_AVAILABLE",
                    f"{listing.kind.value} listing is not available for the requested dates",
                ),
            )

    requested_at = _coerce_utc(now) if now else datetime.now(UTC)
    booking = Booking(
        booking_number=_booking_number(),
        renter_company_id=renter_company_id,
        provider_company_id=provider_company_id,
        vehicle_listing_id=vehicle_listing_id,
        driver_listing_id=driver_listing_id,
        status=BookingStatus.PENDING,
        start_date=start,
        end_date=end,
        duration_hours=duration_hours,
        duration_days=duration_days,
        expires_at=requested_at + timedelta(hours=get_settings().booking_timeout_hours),
    )
    session.add(booking)
    with store_errors():
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ConflictError("LISTING_NOT_AVAILABLE") from exc
        await session.refresh(booking)
    return booking


def _validate_status_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in _ALLOWED_STATUS_TRANSITIONS.get(current, set()):
        raise StateTransitionError(
            "INVALID_STATE_TRANSITION",
            f"cannot move booking from {current.value} to {target.value}",
        )


async def _ensure_no_confirmed_overlap(session: AsyncSession, booking: Booking) -> None:
    await _lock_booked_listings(
        session,
        vehicle_listing_id=booking.vehicle_listing_id,
        driver_listing_id=booking.driver_listing_id,
    )
    booked = [
        (ListingKind.VEHICLE, booking.vehicle_listing_id),
        (ListingKind.DRIVER, booking.driver_listing_id),
    ]
    for listing_kind, listing_id in booked:
        if listing_id is None:
            continue
        conflicts = await list_conflicts(
            session,
            listing_kind=listing_kind,
            listing_id=listing_id,
            start=booking.start_date,
            end=booking.end_date,
            exclude_booking_id=booking.id,
        )
        if any(conflict.kind == "booking" for conflict in conflicts):
            await _abort(
                session,
                ConflictError("BOOKING_CONFLICT", "an overlapping booking is already confirmed"),
            )


async def transition_booking_status(
    session: AsyncSession,
    *,
    booking_id: uuid.UUID,
    status: BookingStatus,
    now: datetime | None = None,
) -> Booking:
    """Move a booking along its workflow.

    Accepting re-checks, under the listing row locks, that no other confirmed
    booking overlaps the range.
    """
    stmt = (
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    with store_errors():
        booking = (await session.execute(stmt)).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("BOOKING_NOT_FOUND")
    _validate_status_transition(booking.status, status)

    if status == BookingStatus.ACCEPTED:
        current = _coerce_utc(now) if now else datetime.now(UTC)
        if booking.expires_at is not None and _coerce_utc(booking.expires_at) <= current:
            await _abort(session, StateTransitionError("BOOKING_EXPIRED"))
        await _ensure_no_confirmed_overlap(session, booking)

    booking.status = status
    with store_errors():
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ConflictError("BOOKING_CONFLICT") from exc
        await session.refresh(booking)
    return booking


async def expire_pending_bookings(session: AsyncSession, *, now: datetime | None = None) -> int:
    """Mark pending bookings whose response window has passed as EXPIRED."""
    cutoff = _coerce_utc(now) if now else datetime.now(UTC)
    stmt = (
        select(Booking)
        .where(
            Booking.status == BookingStatus.PENDING,
            Booking.expires_at.is_not(None),
            Booking.expires_at <= cutoff,
        )
        .with_for_update()
    )
    with store_errors():
        result = await session.execute(stmt)
        expired = list(result.scalars().all())
        for booking in expired:
            booking.status = BookingStatus.EXPIRED
        await session.commit()
    return len(expired)


__all__ = [
    "create_booking_request",
    "expire_pending_bookings",
    "get_booking",
    "transition_booking_status",
]
