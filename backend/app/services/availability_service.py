"""Listing availability: conflict resolution and manual block management."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFoundError, ValidationError, store_errors
from app.models.availability import AvailabilityBlock, RecurringBlock
from app.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from app.models.listing import ListingKind
from app.services.interval_utils import (
    occurrences,
    overlap_clause,
    overlaps,
    recurs,
    to_utc_date,
)
from app.services.listing_service import get_listing


@dataclass(slots=True, frozen=True)
class AvailabilityConflict:
    """One reason a listing is unavailable inside a requested range."""

    kind: str
    start_date: date
    end_date: date
    reference_id: uuid.UUID
    reason: str | None = None


@dataclass(slots=True)
class AvailabilityCheck:
    listing_id: uuid.UUID
    listing_kind: ListingKind
    start_date: date
    end_date: date
    conflicts: list[AvailabilityConflict] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return not self.conflicts


def _booking_listing_column(listing_kind: ListingKind):
    if listing_kind == ListingKind.VEHICLE:
        return Booking.vehicle_listing_id
    return Booking.driver_listing_id


def _normalize_range(start: date | datetime, end: date | datetime) -> tuple[date, date]:
    start_date = to_utc_date(start)
    end_date = to_utc_date(end)
    if start_date > end_date:
        raise ValidationError("INVALID_DATE_RANGE", "start date must not be after end date")
    return start_date, end_date


def _validate_days_of_week(days_of_week: Iterable[int]) -> list[int]:
    days = sorted(set(days_of_week))
    if any(day < 0 or day > 6 for day in days):
        raise ValidationError("INVALID_DAYS_OF_WEEK", "days of week must be within 0..6")
    return days


async def _load_bookings(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_ids: Sequence[uuid.UUID],
    start: date,
    end: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> dict[uuid.UUID, list[Booking]]:
    column = _booking_listing_column(listing_kind)
    stmt: Select[tuple[Booking]] = select(Booking).where(
        column.in_(listing_ids),
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        overlap_clause(Booking.start_date, Booking.end_date, start, end),
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    result = await session.execute(stmt)
    grouped: dict[uuid.UUID, list[Booking]] = {}
    for booking in result.scalars().all():
        listing_id = (
            booking.vehicle_listing_id
            if listing_kind == ListingKind.VEHICLE
            else booking.driver_listing_id
        )
        if overlaps(booking.start_date, booking.end_date, start, end):
            grouped.setdefault(listing_id, []).append(booking)
    return grouped


async def _load_blocks(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_ids: Sequence[uuid.UUID],
    start: date,
    end: date,
) -> dict[uuid.UUID, list[AvailabilityBlock]]:
    stmt: Select[tuple[AvailabilityBlock]] = select(AvailabilityBlock).where(
        AvailabilityBlock.listing_kind == listing_kind,
        AvailabilityBlock.listing_id.in_(listing_ids),
        overlap_clause(AvailabilityBlock.start_date, AvailabilityBlock.end_date, start, end),
    )
    result = await session.execute(stmt)
    grouped: dict[uuid.UUID, list[AvailabilityBlock]] = {}
    for block in result.scalars().all():
        if overlaps(block.start_date, block.end_date, start, end):
            grouped.setdefault(block.listing_id, []).append(block)
    return grouped


async def _load_recurring(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_ids: Sequence[uuid.UUID],
    start: date,
    end: date,
) -> dict[uuid.UUID, list[RecurringBlock]]:
    stmt: Select[tuple[RecurringBlock]] = select(RecurringBlock).where(
        RecurringBlock.listing_kind == listing_kind,
        RecurringBlock.listing_id.in_(listing_ids),
        overlap_clause(
            RecurringBlock.start_date, RecurringBlock.end_date, start, end, open_ended=True
        ),
    )
    result = await session.execute(stmt)
    grouped: dict[uuid.UUID, list[RecurringBlock]] = {}
    for pattern in result.scalars().all():
        if recurs(pattern, start, end):
            grouped.setdefault(pattern.listing_id, []).append(pattern)
    return grouped


async def find_unavailable_listing_ids(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_ids: Sequence[uuid.UUID],
    start: date | datetime,
    end: date | datetime,
) -> set[uuid.UUID]:
    """Return the subset of ``listing_ids`` that cannot be booked for the whole range.

    A listing is unavailable when an accepted/active booking overlaps the
    range, a one-off block overlaps it, or a recurring block produces at
    least one blocked day inside it.
    """
    if not listing_ids:
        return set()
    start_date, end_date = _normalize_range(start, end)
    ids = list(listing_ids)
    with store_errors():
        bookings = await _load_bookings(
            session, listing_kind=listing_kind, listing_ids=ids, start=start_date, end=end_date
        )
        blocks = await _load_blocks(
            session, listing_kind=listing_kind, listing_ids=ids, start=start_date, end=end_date
        )
        recurring = await _load_recurring(
            session, listing_kind=listing_kind, listing_ids=ids, start=start_date, end=end_date
        )
    return set(bookings) | set(blocks) | set(recurring)


async def is_unavailable(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    listing_kind: ListingKind,
    start: date | datetime,
    end: date | datetime,
) -> bool:
    unavailable = await find_unavailable_listing_ids(
        session,
        listing_kind=listing_kind,
        listing_ids=[listing_id],
        start=start,
        end=end,
    )
    return listing_id in unavailable


async def list_conflicts(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    start: date | datetime,
    end: date | datetime,
    exclude_booking_id: uuid.UUID | None = None,
) -> list[AvailabilityConflict]:
    """Describe every booking, block and recurring occurrence clashing with the range."""
    start_date, end_date = _normalize_range(start, end)
    ids = [listing_id]
    with store_errors():
        bookings = await _load_bookings(
            session,
            listing_kind=listing_kind,
            listing_ids=ids,
            start=start_date,
            end=end_date,
            exclude_booking_id=exclude_booking_id,
        )
        blocks = await _load_blocks(
            session, listing_kind=listing_kind, listing_ids=ids, start=start_date, end=end_date
        )
        recurring = await _load_recurring(
            session, listing_kind=listing_kind, listing_ids=ids, start=start_date, end=end_date
        )

    conflicts = [
        AvailabilityConflict(
            kind="booking",
            start_date=booking.start_date,
            end_date=booking.end_date,
            reference_id=booking.id,
            reason=booking.booking_number,
        )
        for booking in bookings.get(listing_id, [])
    ]
    conflicts.extend(
        AvailabilityConflict(
            kind="block",
            start_date=block.start_date,
            end_date=block.end_date,
            reference_id=block.id,
            reason=block.reason,
        )
        for block in blocks.get(listing_id, [])
    )
    for pattern in recurring.get(listing_id, []):
        conflicts.extend(
            AvailabilityConflict(
                kind="recurring",
                start_date=day,
                end_date=day,
                reference_id=pattern.id,
                reason=pattern.reason,
            )
            for day in occurrences(pattern, start_date, end_date)
        )
    conflicts.sort(key=lambda item: (item.start_date, item.kind))
    return conflicts


async def check_availability(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    start: date | datetime,
    end: date | datetime,
) -> AvailabilityCheck:
    await get_listing(session, listing_kind=listing_kind, listing_id=listing_id)
    start_date, end_date = _normalize_range(start, end)
    conflicts = await list_conflicts(
        session,
        listing_kind=listing_kind,
        listing_id=listing_id,
        start=start_date,
        end=end_date,
    )
    return AvailabilityCheck(
        listing_id=listing_id,
        listing_kind=listing_kind,
        start_date=start_date,
        end_date=end_date,
        conflicts=conflicts,
    )


async def list_blocks(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    start: date | None = None,
    end: date | None = None,
) -> list[AvailabilityBlock]:
    stmt: Select[tuple[AvailabilityBlock]] = (
        select(AvailabilityBlock)
        .where(
            AvailabilityBlock.listing_kind == listing_kind,
            AvailabilityBlock.listing_id == listing_id,
        )
        .order_by(AvailabilityBlock.start_date.asc())
    )
    if start is not None and end is not None:
        start_date, end_date = _normalize_range(start, end)
        stmt = stmt.where(
            overlap_clause(
                AvailabilityBlock.start_date, AvailabilityBlock.end_date, start_date, end_date
            )
        )
    with store_errors():
        result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_block(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    start_date: date,
    end_date: date,
    reason: str | None = None,
    created_by: uuid.UUID | None = None,
) -> AvailabilityBlock:
    """Block a listing for a one-off closed date range."""
    start_date, end_date = _normalize_range(start_date, end_date)
    await get_listing(session, listing_kind=listing_kind, listing_id=listing_id)
    block = AvailabilityBlock(
        listing_kind=listing_kind,
        listing_id=listing_id,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        created_by=created_by,
    )
    session.add(block)
    with store_errors():
        await session.commit()
        await session.refresh(block)
    return block


async def create_bulk_blocks(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_ids: Sequence[uuid.UUID],
    start_date: date,
    end_date: date,
    reason: str | None = None,
    created_by: uuid.UUID | None = None,
) -> list[AvailabilityBlock]:
    """Apply the same block to several listings; all or nothing."""
    start_date, end_date = _normalize_range(start_date, end_date)
    if not listing_ids:
        raise ValidationError("AT_LEAST_ONE_LISTING_REQUIRED")
    blocks: list[AvailabilityBlock] = []
    for listing_id in dict.fromkeys(listing_ids):
        await get_listing(session, listing_kind=listing_kind, listing_id=listing_id)
        block = AvailabilityBlock(
            listing_kind=listing_kind,
            listing_id=listing_id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            created_by=created_by,
        )
        session.add(block)
        blocks.append(block)
    with store_errors():
        await session.commit()
        for block in blocks:
            await session.refresh(block)
    return blocks


async def delete_block(session: AsyncSession, *, block_id: uuid.UUID) -> None:
    with store_errors():
        block = await session.get(AvailabilityBlock, block_id)
        if block is None:
            raise NotFoundError("BLOCK_NOT_FOUND")
        await session.delete(block)
        await session.commit()


async def list_recurring_blocks(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
) -> list[RecurringBlock]:
    stmt: Select[tuple[RecurringBlock]] = (
        select(RecurringBlock)
        .where(
            RecurringBlock.listing_kind == listing_kind,
            RecurringBlock.listing_id == listing_id,
        )
        .order_by(RecurringBlock.start_date.asc())
    )
    with store_errors():
        result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_recurring_block(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    days_of_week: Iterable[int],
    start_date: date,
    end_date: date | None = None,
    reason: str | None = None,
    created_by: uuid.UUID | None = None,
) -> RecurringBlock:
    """Block the given weekdays (0=Sunday) from ``start_date`` until ``end_date`` or forever."""
    days = _validate_days_of_week(days_of_week)
    if end_date is not None:
        start_date, end_date = _normalize_range(start_date, end_date)
    else:
        start_date = to_utc_date(start_date)
    await get_listing(session, listing_kind=listing_kind, listing_id=listing_id)
    pattern = RecurringBlock(
        listing_kind=listing_kind,
        listing_id=listing_id,
        days_of_week=days,
        start_date=start_date,
        end_date=end_date,
        reason=reason,
        created_by=created_by,
    )
    session.add(pattern)
    with store_errors():
        await session.commit()
        await session.refresh(pattern)
    return pattern


_UNSET = object()


async def update_recurring_block(
    session: AsyncSession,
    *,
    block_id: uuid.UUID,
    days_of_week: Iterable[int] | None = None,
    start_date: date | None = None,
    end_date: date | None | object = _UNSET,
    reason: str | None = None,
) -> RecurringBlock:
    """Change a recurring pattern. Pass ``end_date=None`` to make it open-ended."""
    with store_errors():
        pattern = await session.get(RecurringBlock, block_id)
    if pattern is None:
        raise NotFoundError("RECURRING_BLOCK_NOT_FOUND")

    days = pattern.days_of_week if days_of_week is None else _validate_days_of_week(days_of_week)
    new_start = pattern.start_date if start_date is None else to_utc_date(start_date)
    new_end = pattern.end_date
    if end_date is not _UNSET:
        new_end = None if end_date is None else to_utc_date(end_date)  # type: ignore[arg-type]
    if new_end is not None:
        _normalize_range(new_start, new_end)

    pattern.days_of_week = days
    pattern.start_date = new_start
    pattern.end_date = new_end
    if reason is not None:
        pattern.reason = reason

    with store_errors():
        await session.commit()
        await session.refresh(pattern)
    return pattern


async def delete_recurring_block(session: AsyncSession, *, block_id: uuid.UUID) -> None:
    with store_errors():
        pattern = await session.get(RecurringBlock, block_id)
        if pattern is None:
            raise NotFoundError("RECURRING_BLOCK_NOT_FOUND")
        await session.delete(pattern)
        await session.commit()
