"""Listing creation, updates and publication lifecycle."""
from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import NotFoundError, StateTransitionError, ValidationError, store_errors
from app.models.availability import AvailabilityBlock, RecurringBlock
from app.models.booking import OPEN_BOOKING_STATUSES, Booking
from app.models.company import Company
from app.models.listing import (
    LISTING_MODELS,
    DriverListing,
    Listing,
    ListingKind,
    ListingStatus,
    VehicleListing,
)

_ALLOWED_STATUS_TRANSITIONS: dict[ListingStatus, set[ListingStatus]] = {
    ListingStatus.ACTIVE: {ListingStatus.SUSPENDED, ListingStatus.REMOVED},
    ListingStatus.SUSPENDED: {ListingStatus.ACTIVE, ListingStatus.REMOVED},
    ListingStatus.REMOVED: set(),
}

_VEHICLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "vehicle_type",
        "capacity",
        "fuel_type",
        "city",
        "fylke",
        "kommune",
        "latitude",
        "longitude",
        "hourly_rate",
        "daily_rate",
        "deposit",
        "currency",
        "with_driver",
        "with_driver_cost",
        "without_driver",
        "photos",
        "tags",
    }
)

_DRIVER_FIELDS = frozenset(
    {
        "name",
        "license_class",
        "languages",
        "background_summary",
        "hourly_rate",
        "daily_rate",
        "currency",
        "license_document_path",
        "tags",
    }
)

# Columns the validators do not cover that must never be written as NULL.
_NOT_NULL_FIELDS = frozenset({"with_driver", "without_driver", "photos", "tags"})


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _validate_rates(hourly_rate: Decimal | None, daily_rate: Decimal | None) -> None:
    if not hourly_rate and not daily_rate:
        raise ValidationError("AT_LEAST_ONE_RATE_REQUIRED", "hourly or daily rate is required")


def _validate_vehicle(data: Mapping[str, Any]) -> None:
    if _blank(data.get("title")):
        raise ValidationError("TITLE_REQUIRED")
    if _blank(data.get("description")):
        raise ValidationError("DESCRIPTION_REQUIRED")
    if data.get("vehicle_type") is None:
        raise ValidationError("VEHICLE_TYPE_REQUIRED")
    capacity = data.get("capacity")
    if capacity is None or capacity <= 0:
        raise ValidationError("CAPACITY_MUST_BE_POSITIVE")
    if data.get("fuel_type") is None:
        raise ValidationError("FUEL_TYPE_REQUIRED")
    if _blank(data.get("city")):
        raise ValidationError("CITY_REQUIRED")
    if _blank(data.get("fylke")):
        raise ValidationError("FYLKE_REQUIRED")
    if _blank(data.get("kommune")):
        raise ValidationError("KOMMUNE_REQUIRED")

    with_driver = bool(data.get("with_driver"))
    if not with_driver and not data.get("without_driver"):
        raise ValidationError(
            "AT_LEAST_ONE_SERVICE_OFFERING_REQUIRED",
            "offer the vehicle with a driver, without a driver, or both",
        )
    if with_driver and data.get("with_driver_cost") is None:
        raise ValidationError("WITH_DRIVER_COST_REQUIRED")
    if not with_driver and data.get("with_driver_cost") is not None:
        raise ValidationError("WITH_DRIVER_COST_NOT_ALLOWED")

    _validate_rates(data.get("hourly_rate"), data.get("daily_rate"))


def _validate_driver(data: Mapping[str, Any]) -> None:
    if _blank(data.get("name")):
        raise ValidationError("NAME_REQUIRED")
    if _blank(data.get("license_class")):
        raise ValidationError("LICENSE_CLASS_REQUIRED")
    if not data.get("languages"):
        raise ValidationError("AT_LEAST_ONE_LANGUAGE_REQUIRED")
    _validate_rates(data.get("hourly_rate"), data.get("daily_rate"))


def _reject_unknown(changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError("UNKNOWN_FIELDS", f"cannot update: {', '.join(unknown)}")


def _reject_nulls(changes: Mapping[str, Any]) -> None:
    for name in sorted(_NOT_NULL_FIELDS & set(changes)):
        if changes[name] is None:
            raise ValidationError("FIELD_CANNOT_BE_NULL", f"{name} cannot be null")


async def _ensure_company(session: AsyncSession, company_id: uuid.UUID) -> Company:
    with store_errors():
        company = await session.get(Company, company_id)
    if company is None:
        raise NotFoundError("COMPANY_NOT_FOUND")
    return company


async def _commit(session: AsyncSession, listing: Listing) -> None:
    with store_errors():
        await session.commit()
        await session.refresh(listing)


async def get_listing(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    for_update: bool = False,
) -> Listing:
    """Load a listing of the given kind or raise ``NotFoundError``.

    ``for_update`` takes a row lock (where the store supports one) and
    refreshes any instance already in the session.
    """
    model = LISTING_MODELS[listing_kind]
    stmt = select(model).where(model.id == listing_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    with store_errors():
        listing = (await session.execute(stmt)).scalar_one_or_none()
    if listing is None:
        raise NotFoundError("LISTING_NOT_FOUND", f"{listing_kind.value} listing not found")
    return listing


async def list_company_listings(
    session: AsyncSession,
    *,
    company_id: uuid.UUID,
) -> tuple[list[VehicleListing], list[DriverListing]]:
    """Every listing a company owns regardless of status, newest first."""
    await _ensure_company(session, company_id)
    with store_errors():
        vehicles = await session.execute(
            select(VehicleListing)
            .where(VehicleListing.company_id == company_id)
            .order_by(VehicleListing.created_at.desc(), VehicleListing.id)
        )
        drivers = await session.execute(
            select(DriverListing)
            .where(DriverListing.company_id == company_id)
            .order_by(DriverListing.created_at.desc(), DriverListing.id)
        )
    return list(vehicles.scalars().all()), list(drivers.scalars().all())


async def create_vehicle_listing(
    session: AsyncSession,
    *,
    company_id: uuid.UUID,
    **data: Any,
) -> VehicleListing:
    """Validate and publish a vehicle listing. New vehicle listings start ACTIVE."""
    _reject_unknown(data, _VEHICLE_FIELDS)
    _validate_vehicle(data)
    await _ensure_company(session, company_id)

    fields = {key: value for key, value in data.items() if value is not None}
    fields["currency"] = data.get("currency") or get_settings().default_currency
    listing = VehicleListing(
        company_id=company_id,
        status=ListingStatus.ACTIVE,
        **fields,
    )
    session.add(listing)
    await _commit(session, listing)
    return listing


async def update_vehicle_listing(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    changes: Mapping[str, Any],
) -> VehicleListing:
    """Apply a partial update; the merged listing must still pass creation rules."""
    _reject_unknown(changes, _VEHICLE_FIELDS)
    _reject_nulls(changes)
    listing = cast(
        VehicleListing,
        await get_listing(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing_id, for_update=True
        ),
    )
    if listing.status == ListingStatus.REMOVED:
        raise StateTransitionError("LISTING_REMOVED")

    merged = {name: getattr(listing, name) for name in _VEHICLE_FIELDS}
    merged.update(changes)
    if changes.get("with_driver") is False and "with_driver_cost" not in changes:
        merged["with_driver_cost"] = None
    _validate_vehicle(merged)

    for name in _VEHICLE_FIELDS:
        if name in changes or name == "with_driver_cost":
            setattr(listing, name, merged[name])
    if not listing.currency:
        listing.currency = get_settings().default_currency
    await _commit(session, listing)
    return listing


async def create_driver_listing(
    session: AsyncSession,
    *,
    company_id: uuid.UUID,
    **data: Any,
) -> DriverListing:
    """Validate and publish a driver listing.

    Without a license document the listing starts SUSPENDED. Every new driver
    listing starts unverified.
    """
    _reject_unknown(data, _DRIVER_FIELDS)
    _validate_driver(data)
    await _ensure_company(session, company_id)

    status = (
        ListingStatus.ACTIVE
        if not _blank(data.get("license_document_path"))
        else ListingStatus.SUSPENDED
    )
    fields = {key: value for key, value in data.items() if value is not None}
    fields["currency"] = data.get("currency") or get_settings().default_currency
    listing = DriverListing(
        company_id=company_id,
        status=status,
        verified=False,
        verified_at=None,
        verified_by=None,
        **fields,
    )
    session.add(listing)
    await _commit(session, listing)
    return listing


async def update_driver_listing(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    changes: Mapping[str, Any],
) -> DriverListing:
    """Apply a partial update. Attaching a license document never activates the listing."""
    _reject_unknown(changes, _DRIVER_FIELDS)
    _reject_nulls(changes)
    listing = cast(
        DriverListing,
        await get_listing(
            session, listing_kind=ListingKind.DRIVER, listing_id=listing_id, for_update=True
        ),
    )
    if listing.status == ListingStatus.REMOVED:
        raise StateTransitionError("LISTING_REMOVED")

    merged = {name: getattr(listing, name) for name in _DRIVER_FIELDS}
    merged.update(changes)
    _validate_driver(merged)
    if _blank(merged["license_document_path"]) and (
        listing.verified or listing.status == ListingStatus.ACTIVE
    ):
        raise ValidationError(
            "LICENSE_DOCUMENT_REQUIRED",
            "an active or verified driver listing must keep its license document",
        )

    for name, value in changes.items():
        setattr(listing, name, value)
    if not listing.currency:
        listing.currency = get_settings().default_currency
    await _commit(session, listing)
    return listing


def _validate_status_transition(listing: Listing, target: ListingStatus) -> None:
    current = listing.status
    if current == ListingStatus.REMOVED:
        raise StateTransitionError("LISTING_REMOVED", "removed listings cannot change status")
    if target not in _ALLOWED_STATUS_TRANSITIONS[current]:
        raise StateTransitionError(
            "INVALID_STATUS_TRANSITION", f"cannot move from {current.value} to {target.value}"
        )
    if target == ListingStatus.ACTIVE and isinstance(listing, DriverListing):
        if _blank(listing.license_document_path):
            raise StateTransitionError("CANNOT_ACTIVATE_WITHOUT_LICENSE_DOCUMENT")
        if not listing.verified:
            raise StateTransitionError("CANNOT_ACTIVATE_UNVERIFIED_DRIVER")


async def update_listing_status(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
    status: ListingStatus,
    reason: str | None,
    actor_id: uuid.UUID | None = None,
    now: datetime | None = None,
) -> Listing:
    """Admin transition between ACTIVE and SUSPENDED, or to the terminal REMOVED."""
    if _blank(reason):
        raise ValidationError("STATUS_REASON_REQUIRED", "a reason is required")
    listing = await get_listing(
        session, listing_kind=listing_kind, listing_id=listing_id, for_update=True
    )
    if listing.status == status:
        return listing
    _validate_status_transition(listing, status)

    listing.status = status
    listing.status_reason = reason
    listing.status_changed_by = actor_id
    listing.status_changed_at = now or _utcnow()
    await _commit(session, listing)
    return listing


async def verify_driver_listing(
    session: AsyncSession,
    *,
    listing_id: uuid.UUID,
    admin_id: uuid.UUID,
    now: datetime | None = None,
) -> DriverListing:
    """Mark a driver verified and, if it was suspended, publish it.

    The verification fields and the status change are committed together.
    """
    listing = cast(
        DriverListing,
        await get_listing(
            session, listing_kind=ListingKind.DRIVER, listing_id=listing_id, for_update=True
        ),
    )
    if listing.status == ListingStatus.REMOVED:
        raise StateTransitionError("LISTING_REMOVED")
    if _blank(listing.license_document_path):
        raise StateTransitionError("LICENSE_DOCUMENT_REQUIRED_FOR_VERIFICATION")

    verified_at = now or _utcnow()
    listing.verified = True
    listing.verified_at = verified_at
    listing.verified_by = admin_id
    if listing.status == ListingStatus.SUSPENDED:
        listing.status = ListingStatus.ACTIVE
        listing.status_reason = "driver verified"
        listing.status_changed_by = admin_id
        listing.status_changed_at = verified_at
    await _commit(session, listing)
    return listing


async def delete_listing(
    session: AsyncSession,
    *,
    listing_kind: ListingKind,
    listing_id: uuid.UUID,
) -> None:
    """Hard-delete a listing and its blocks when it has no open bookings."""
    listing = await get_listing(
        session, listing_kind=listing_kind, listing_id=listing_id, for_update=True
    )
    booking_column = (
        Booking.vehicle_listing_id
        if listing_kind == ListingKind.VEHICLE
        else Booking.driver_listing_id
    )
    with store_errors():
        open_bookings = (
            await session.execute(
                select(func.count())
                .select_from(Booking)
                .where(booking_column == listing_id, Booking.status.in_(OPEN_BOOKING_STATUSES))
            )
        ).scalar_one()
    if open_bookings:
        raise StateTransitionError("CANNOT_DELETE_LISTING_WITH_ACTIVE_BOOKINGS")

    with store_errors():
        for model in (AvailabilityBlock, RecurringBlock):
            await session.execute(
                delete(model).where(
                    model.listing_kind == listing_kind, model.listing_id == listing_id
                )
            )
        await session.delete(listing)
        await session.commit()
