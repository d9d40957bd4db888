"""Closed date-interval and weekly-recurrence helpers.

Every availability date is a UTC calendar date and every interval is closed
on both ends. Bookings, one-off blocks and recurring blocks all go through
these helpers so the three sources agree on what "overlap" means.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator
from datetime import UTC, date, datetime, timedelta
from typing import Any, Protocol

from sqlalchemy import ColumnElement, and_, or_


class RecurrencePattern(Protocol):
    days_of_week: Collection[int]
    start_date: date
    end_date: date | None


def to_utc_date(value: date | datetime) -> date:
    """Normalize a date or datetime to its UTC calendar date (naive means UTC)."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(UTC).date()
    return value


def overlaps(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True when the closed intervals ``[a_start, a_end]`` and ``[b_start, b_end]`` intersect."""
    return a_start <= b_end and b_start <= a_end


def overlap_clause(
    start_column: Any,
    end_column: Any,
    start: date,
    end: date,
    *,
    open_ended: bool = False,
) -> ColumnElement[bool]:
    """SQL form of :func:`overlaps` for a stored ``[start_column, end_column]`` span.

    With ``open_ended`` a NULL ``end_column`` is treated as extending forever.
    """
    ends_after = end_column >= start
    if open_ended:
        ends_after = or_(end_column.is_(None), ends_after)
    return and_(start_column <= end, ends_after)


def weekday_index(day: date) -> int:
    """Weekday number with 0 for Sunday through 6 for Saturday."""
    return day.isoweekday() % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def clamp(pattern: RecurrencePattern, start: date, end: date) -> tuple[date, date] | None:
    """Intersect the pattern's active span with ``[start, end]``; None when disjoint."""
    effective_start = max(pattern.start_date, start)
    effective_end = end if pattern.end_date is None else min(pattern.end_date, end)
    if effective_start > effective_end:
        return None
    return effective_start, effective_end


def recurs(pattern: RecurrencePattern, start: date, end: date) -> bool:
    """Return True if the pattern blocks at least one day inside ``[start, end]``.

    Only the clamped span is walked, and at most one week of it is needed to
    see every weekday, so open-ended patterns terminate quickly.
    """
    days = set(pattern.days_of_week)
    if not days:
        return False
    window = clamp(pattern, start, end)
    if window is None:
        return False
    effective_start, effective_end = window
    last = min(effective_end, effective_start + timedelta(days=6))
    return any(weekday_index(day) in days for day in iter_days(effective_start, last))


def occurrences(pattern: RecurrencePattern, start: date, end: date) -> list[date]:
    """List every blocked date the pattern produces inside ``[start, end]``."""
    days = set(pattern.days_of_week)
    window = clamp(pattern, start, end)
    if not days or window is None:
        return []
    return [day for day in iter_days(*window) if weekday_index(day) in days]


__all__ = [
    "RecurrencePattern",
    "clamp",
    "iter_days",
    "occurrences",
    "overlap_clause",
    "overlaps",
    "recurs",
    "to_utc_date",
    "weekday_index",
]
