"""Tests for manual blocks, recurring blocks and availability checks."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.db.session import get_sessionmaker
from app.models import Booking, BookingStatus, FuelType, ListingKind, VehicleType
from app.services import availability_service, listing_service

pytestmark = pytest.mark.asyncio


async def _vehicle(session, company_id: uuid.UUID):
    return await listing_service.create_vehicle_listing(
        session,
        company_id=company_id,
        title="Box van",
        description="3.5t box van with tail lift",
        vehicle_type=VehicleType.VAN,
        capacity=8,
        fuel_type=FuelType.DIESEL,
        city="Oslo",
        fylke="Oslo",
        kommune="Oslo",
        daily_rate=Decimal("1800.00"),
        without_driver=True,
    )


async def test_block_round_trip(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        block = await availability_service.create_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start_date=date(2030, 3, 1),
            end_date=date(2030, 3, 4),
            reason="EU control",
        )
        blocks = await availability_service.list_blocks(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing.id
        )
        assert [item.id for item in blocks] == [block.id]

        outside = await availability_service.list_blocks(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start=date(2030, 3, 5),
            end=date(2030, 3, 9),
        )
        assert outside == []

        await availability_service.delete_block(session, block_id=block.id)
        with pytest.raises(NotFoundError) as excinfo:
            await availability_service.delete_block(session, block_id=block.id)
    assert excinfo.value.code == "BLOCK_NOT_FOUND"


async def test_block_rejects_reversed_range(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        with pytest.raises(ValidationError) as excinfo:
            await availability_service.create_block(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=listing.id,
                start_date=date(2030, 3, 4),
                end_date=date(2030, 3, 1),
            )
    assert excinfo.value.code == "INVALID_DATE_RANGE"


async def test_block_on_unknown_listing(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        with pytest.raises(NotFoundError) as excinfo:
            await availability_service.create_block(
                session,
                listing_kind=ListingKind.DRIVER,
                listing_id=uuid.uuid4(),
                start_date=date(2030, 3, 1),
                end_date=date(2030, 3, 1),
            )
    assert excinfo.value.code == "LISTING_NOT_FOUND"


async def test_bulk_blocks(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        first = await _vehicle(session, marketplace["oslo_company_id"])
        second = await _vehicle(session, marketplace["oslo_company_id"])

        with pytest.raises(ValidationError) as excinfo:
            await availability_service.create_bulk_blocks(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_ids=[],
                start_date=date(2030, 5, 1),
                end_date=date(2030, 5, 2),
            )
        assert excinfo.value.code == "AT_LEAST_ONE_LISTING_REQUIRED"

        blocks = await availability_service.create_bulk_blocks(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_ids=[first.id, second.id, first.id],
            start_date=date(2030, 5, 1),
            end_date=date(2030, 5, 2),
            reason="Holiday",
        )
        assert {block.listing_id for block in blocks} == {first.id, second.id}
        assert len(blocks) == 2


async def test_bulk_blocks_are_all_or_nothing(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        listing_id = listing.id
        with pytest.raises(NotFoundError):
            await availability_service.create_bulk_blocks(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_ids=[listing_id, uuid.uuid4()],
                start_date=date(2030, 5, 1),
                end_date=date(2030, 5, 2),
            )
        await session.rollback()
        blocks = await availability_service.list_blocks(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing_id
        )
    assert blocks == []


async def test_recurring_block_validation(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        with pytest.raises(ValidationError) as excinfo:
            await availability_service.create_recurring_block(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=listing.id,
                days_of_week=[1, 7],
                start_date=date(2030, 1, 1),
            )
        assert excinfo.value.code == "INVALID_DAYS_OF_WEEK"

        with pytest.raises(ValidationError) as excinfo:
            await availability_service.create_recurring_block(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=listing.id,
                days_of_week=[1],
                start_date=date(2030, 2, 1),
                end_date=date(2030, 1, 1),
            )
        assert excinfo.value.code == "INVALID_DATE_RANGE"


async def test_recurring_block_can_become_open_ended(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        pattern = await availability_service.create_recurring_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            days_of_week=[6, 0, 6],
            start_date=date(2030, 1, 1),
            end_date=date(2030, 1, 31),
            reason="Weekends off",
        )
        assert pattern.days_of_week == [0, 6]

        # 2030-06-01 is a Saturday
        before = await availability_service.is_unavailable(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start=date(2030, 6, 1),
            end=date(2030, 6, 1),
        )
        assert before is False

        updated = await availability_service.update_recurring_block(
            session, block_id=pattern.id, end_date=None
        )
        assert updated.end_date is None
        assert updated.reason == "Weekends off"

        after = await availability_service.is_unavailable(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start=date(2030, 6, 1),
            end=date(2030, 6, 1),
        )
        assert after is True

        await availability_service.delete_recurring_block(session, block_id=pattern.id)
        with pytest.raises(NotFoundError) as excinfo:
            await availability_service.update_recurring_block(session, block_id=pattern.id)
    assert excinfo.value.code == "RECURRING_BLOCK_NOT_FOUND"


async def test_empty_and_full_week_patterns(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        never = await _vehicle(session, marketplace["oslo_company_id"])
        always = await _vehicle(session, marketplace["oslo_company_id"])
        await availability_service.create_recurring_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=never.id,
            days_of_week=[],
            start_date=date(2030, 1, 1),
        )
        await availability_service.create_recurring_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=always.id,
            days_of_week=list(range(7)),
            start_date=date(2030, 1, 1),
        )
        unavailable = await availability_service.find_unavailable_listing_ids(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_ids=[never.id, always.id],
            start=date(2030, 4, 10),
            end=date(2030, 4, 10),
        )
    assert unavailable == {always.id}


async def test_check_availability_lists_every_conflict(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await _vehicle(session, marketplace["oslo_company_id"])
        block = await availability_service.create_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start_date=date(2030, 1, 10),
            end_date=date(2030, 1, 12),
            reason="Workshop",
        )
        # 2030-01-07 and 2030-01-14 are Mondays
        pattern = await availability_service.create_recurring_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            days_of_week=[1],
            start_date=date(2030, 1, 1),
        )
        accepted = Booking(
            booking_number="BK-AVAIL-1",
            renter_company_id=marketplace["renter_company_id"],
            provider_company_id=marketplace["oslo_company_id"],
            vehicle_listing_id=listing.id,
            status=BookingStatus.ACCEPTED,
            start_date=date(2030, 1, 15),
            end_date=date(2030, 1, 16),
            duration_days=2,
        )
        pending = Booking(
            booking_number="BK-AVAIL-2",
            renter_company_id=marketplace["renter_company_id"],
            provider_company_id=marketplace["oslo_company_id"],
            vehicle_listing_id=listing.id,
            status=BookingStatus.PENDING,
            start_date=date(2030, 1, 8),
            end_date=date(2030, 1, 8),
            duration_days=1,
        )
        session.add_all([accepted, pending])
        await session.commit()

        check = await availability_service.check_availability(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start=date(2030, 1, 6),
            end=date(2030, 1, 16),
        )
        free = await availability_service.check_availability(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start=date(2030, 1, 8),
            end=date(2030, 1, 9),
        )

    assert not check.available
    assert [(c.kind, c.start_date, c.reference_id) for c in check.conflicts] == [
        ("recurring", date(2030, 1, 7), pattern.id),
        ("block", date(2030, 1, 10), block.id),
        ("recurring", date(2030, 1, 14), pattern.id),
        ("booking", date(2030, 1, 15), accepted.id),
    ]
    assert free.available
    assert free.conflicts == []
