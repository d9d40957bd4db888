"""Tests for listing creation, updates and moderation."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from app.core.errors import NotFoundError, StateTransitionError, ValidationError
from app.db.session import get_sessionmaker
from app.models import (
    Booking,
    BookingStatus,
    FuelType,
    ListingKind,
    ListingStatus,
    VehicleType,
)
from app.services import availability_service, listing_service

pytestmark = pytest.mark.asyncio

ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-0000000000ad")


def vehicle_payload(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {
        "title": "Electric 18-pallet truck",
        "description": "Tail lift, reefer unit",
        "vehicle_type": VehicleType.PALLET_18,
        "capacity": 18,
        "fuel_type": FuelType.ELECTRIC,
        "city": "Oslo",
        "fylke": "Oslo",
        "kommune": "Oslo",
        "hourly_rate": Decimal("500.00"),
        "daily_rate": Decimal("3000.00"),
        "without_driver": True,
    }
    payload.update(overrides)
    return payload


def driver_payload(**overrides) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": "Kari Nordmann",
        "license_class": "CE",
        "languages": ["no", "en"],
        "hourly_rate": Decimal("450.00"),
    }
    payload.update(overrides)
    return payload


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"title": "  "}, "TITLE_REQUIRED"),
        ({"description": None}, "DESCRIPTION_REQUIRED"),
        ({"vehicle_type": None}, "VEHICLE_TYPE_REQUIRED"),
        ({"capacity": 0}, "CAPACITY_MUST_BE_POSITIVE"),
        ({"fuel_type": None}, "FUEL_TYPE_REQUIRED"),
        ({"city": ""}, "CITY_REQUIRED"),
        ({"fylke": ""}, "FYLKE_REQUIRED"),
        ({"kommune": None}, "KOMMUNE_REQUIRED"),
        ({"without_driver": False, "with_driver": False}, "AT_LEAST_ONE_SERVICE_OFFERING_REQUIRED"),
        ({"with_driver": True}, "WITH_DRIVER_COST_REQUIRED"),
        ({"with_driver_cost": Decimal("200")}, "WITH_DRIVER_COST_NOT_ALLOWED"),
        ({"hourly_rate": None, "daily_rate": None}, "AT_LEAST_ONE_RATE_REQUIRED"),
    ],
)
async def test_vehicle_validation_codes(marketplace, db_url: str, overrides, code) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.create_vehicle_listing(
                session,
                company_id=marketplace["oslo_company_id"],
                **vehicle_payload(**overrides),
            )
    assert excinfo.value.code == code


async def test_vehicle_listing_starts_active_with_default_currency(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session, company_id=marketplace["oslo_company_id"], **vehicle_payload()
        )
    assert listing.status == ListingStatus.ACTIVE
    assert listing.currency == "NOK"


async def test_unknown_company_is_rejected(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        with pytest.raises(NotFoundError) as excinfo:
            await listing_service.create_vehicle_listing(
                session, company_id=uuid.uuid4(), **vehicle_payload()
            )
    assert excinfo.value.code == "COMPANY_NOT_FOUND"


async def test_vehicle_update_validates_merged_state(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session,
            company_id=marketplace["oslo_company_id"],
            **vehicle_payload(with_driver=True, with_driver_cost=Decimal("250")),
        )
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.update_vehicle_listing(
                session, listing_id=listing.id, changes={"without_driver": False, "with_driver": False}
            )
        assert excinfo.value.code == "AT_LEAST_ONE_SERVICE_OFFERING_REQUIRED"

        updated = await listing_service.update_vehicle_listing(
            session, listing_id=listing.id, changes={"with_driver": False, "capacity": 21}
        )
    assert updated.with_driver is False
    assert updated.with_driver_cost is None
    assert updated.capacity == 21


@pytest.mark.parametrize(
    ("overrides", "code"),
    [
        ({"name": ""}, "NAME_REQUIRED"),
        ({"license_class": None}, "LICENSE_CLASS_REQUIRED"),
        ({"languages": []}, "AT_LEAST_ONE_LANGUAGE_REQUIRED"),
        ({"hourly_rate": None}, "AT_LEAST_ONE_RATE_REQUIRED"),
    ],
)
async def test_driver_validation_codes(marketplace, db_url: str, overrides, code) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.create_driver_listing(
                session,
                company_id=marketplace["oslo_company_id"],
                **driver_payload(**overrides),
            )
    assert excinfo.value.code == code


async def test_driver_without_license_starts_suspended_and_unverified(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        without_doc = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        with_doc = await listing_service.create_driver_listing(
            session,
            company_id=marketplace["oslo_company_id"],
            **driver_payload(license_document_path="licenses/kari.pdf"),
        )
    assert without_doc.status == ListingStatus.SUSPENDED
    assert with_doc.status == ListingStatus.ACTIVE
    assert not without_doc.verified and not with_doc.verified
    assert with_doc.verified_at is None and with_doc.verified_by is None


async def test_attaching_license_does_not_activate(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        updated = await listing_service.update_driver_listing(
            session,
            listing_id=listing.id,
            changes={"license_document_path": "licenses/kari.pdf"},
        )
    assert updated.status == ListingStatus.SUSPENDED
    assert updated.verified is False


async def test_verify_requires_license_document(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        with pytest.raises(StateTransitionError) as excinfo:
            await listing_service.verify_driver_listing(
                session, listing_id=listing.id, admin_id=ADMIN_ID
            )
    assert excinfo.value.code == "LICENSE_DOCUMENT_REQUIRED_FOR_VERIFICATION"


async def test_verify_activates_suspended_driver(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        await listing_service.update_driver_listing(
            session,
            listing_id=listing.id,
            changes={"license_document_path": "licenses/kari.pdf"},
        )
        verified = await listing_service.verify_driver_listing(
            session, listing_id=listing.id, admin_id=ADMIN_ID
        )
    assert verified.verified is True
    assert verified.verified_by == ADMIN_ID
    assert verified.verified_at is not None
    assert verified.status == ListingStatus.ACTIVE


async def test_driver_activation_requires_verification(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        no_doc = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        with pytest.raises(StateTransitionError) as excinfo:
            await listing_service.update_listing_status(
                session,
                listing_kind=ListingKind.DRIVER,
                listing_id=no_doc.id,
                status=ListingStatus.ACTIVE,
                reason="reinstate",
                actor_id=ADMIN_ID,
            )
        assert excinfo.value.code == "CANNOT_ACTIVATE_WITHOUT_LICENSE_DOCUMENT"

        await listing_service.update_driver_listing(
            session,
            listing_id=no_doc.id,
            changes={"license_document_path": "licenses/kari.pdf"},
        )
        with pytest.raises(StateTransitionError) as excinfo:
            await listing_service.update_listing_status(
                session,
                listing_kind=ListingKind.DRIVER,
                listing_id=no_doc.id,
                status=ListingStatus.ACTIVE,
                reason="reinstate",
                actor_id=ADMIN_ID,
            )
        assert excinfo.value.code == "CANNOT_ACTIVATE_UNVERIFIED_DRIVER"


async def test_active_or_verified_driver_keeps_license_document(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session,
            company_id=marketplace["oslo_company_id"],
            **driver_payload(license_document_path="licenses/k.pdf"),
        )
        listing_id = listing.id
        await listing_service.verify_driver_listing(
            session, listing_id=listing_id, admin_id=ADMIN_ID
        )
        for cleared in (None, "  "):
            with pytest.raises(ValidationError) as excinfo:
                await listing_service.update_driver_listing(
                    session,
                    listing_id=listing_id,
                    changes={"license_document_path": cleared},
                )
            assert excinfo.value.code == "LICENSE_DOCUMENT_REQUIRED"

        stored = await listing_service.get_listing(
            session, listing_kind=ListingKind.DRIVER, listing_id=listing_id
        )
    assert stored.status == ListingStatus.ACTIVE
    assert stored.verified is True
    assert stored.license_document_path == "licenses/k.pdf"


async def test_suspended_unverified_driver_may_drop_license_document(
    marketplace, db_url: str
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        await listing_service.update_driver_listing(
            session,
            listing_id=listing.id,
            changes={"license_document_path": "licenses/kari.pdf"},
        )
        updated = await listing_service.update_driver_listing(
            session, listing_id=listing.id, changes={"license_document_path": None}
        )
    assert updated.license_document_path is None
    assert updated.status == ListingStatus.SUSPENDED
    assert updated.verified is False


@pytest.mark.parametrize(
    "changes",
    [
        {"with_driver": None},
        {"without_driver": None},
        {"photos": None},
        {"tags": None},
    ],
)
async def test_vehicle_update_rejects_null_for_required_columns(
    marketplace, db_url: str, changes
) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session,
            company_id=marketplace["oslo_company_id"],
            **vehicle_payload(tags=["adr"], photos=["photos/truck.jpg"]),
        )
        listing_id = listing.id
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.update_vehicle_listing(
                session, listing_id=listing_id, changes=changes
            )
        assert excinfo.value.code == "FIELD_CANNOT_BE_NULL"

        stored = await listing_service.get_listing(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing_id
        )
    assert stored.tags == ["adr"]
    assert stored.photos == ["photos/truck.jpg"]
    assert stored.without_driver is True
    assert stored.with_driver is False


async def test_driver_update_rejects_null_tags(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload(tags=["adr"])
        )
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.update_driver_listing(
                session, listing_id=listing.id, changes={"tags": None}
            )
    assert excinfo.value.code == "FIELD_CANNOT_BE_NULL"


async def test_status_transitions_and_removed_is_terminal(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session, company_id=marketplace["oslo_company_id"], **vehicle_payload()
        )
        with pytest.raises(ValidationError) as excinfo:
            await listing_service.update_listing_status(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=listing.id,
                status=ListingStatus.SUSPENDED,
                reason=" ",
            )
        assert excinfo.value.code == "STATUS_REASON_REQUIRED"

        suspended = await listing_service.update_listing_status(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            status=ListingStatus.SUSPENDED,
            reason="Reported damage",
            actor_id=ADMIN_ID,
        )
        assert suspended.status == ListingStatus.SUSPENDED
        assert suspended.status_reason == "Reported damage"
        assert suspended.status_changed_by == ADMIN_ID

        removed = await listing_service.update_listing_status(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            status=ListingStatus.REMOVED,
            reason="Sold",
            actor_id=ADMIN_ID,
        )
        assert removed.status == ListingStatus.REMOVED

        with pytest.raises(StateTransitionError) as excinfo:
            await listing_service.update_listing_status(
                session,
                listing_kind=ListingKind.VEHICLE,
                listing_id=listing.id,
                status=ListingStatus.ACTIVE,
                reason="Mistake",
                actor_id=ADMIN_ID,
            )
        assert excinfo.value.code == "LISTING_REMOVED"


async def test_delete_listing_removes_blocks(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session, company_id=marketplace["oslo_company_id"], **vehicle_payload()
        )
        await availability_service.create_block(
            session,
            listing_kind=ListingKind.VEHICLE,
            listing_id=listing.id,
            start_date=listing.created_at.date(),
            end_date=listing.created_at.date(),
            reason="Service",
        )
        await listing_service.delete_listing(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing.id
        )
        remaining = await availability_service.list_blocks(
            session, listing_kind=ListingKind.VEHICLE, listing_id=listing.id
        )
        assert remaining == []
        with pytest.raises(NotFoundError):
            await listing_service.get_listing(
                session, listing_kind=ListingKind.VEHICLE, listing_id=listing.id
            )


async def test_delete_listing_with_open_booking_is_rejected(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        listing = await listing_service.create_vehicle_listing(
            session, company_id=marketplace["oslo_company_id"], **vehicle_payload()
        )
        session.add(
            Booking(
                booking_number="BK-TEST-1",
                renter_company_id=marketplace["renter_company_id"],
                provider_company_id=marketplace["oslo_company_id"],
                vehicle_listing_id=listing.id,
                status=BookingStatus.PENDING,
                start_date=listing.created_at.date(),
                end_date=listing.created_at.date(),
                duration_days=1,
            )
        )
        await session.commit()

        with pytest.raises(StateTransitionError) as excinfo:
            await listing_service.delete_listing(
                session, listing_kind=ListingKind.VEHICLE, listing_id=listing.id
            )
    assert excinfo.value.code == "CANNOT_DELETE_LISTING_WITH_ACTIVE_BOOKINGS"


async def test_company_listings_include_every_status(marketplace, db_url: str) -> None:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        await listing_service.create_vehicle_listing(
            session, company_id=marketplace["oslo_company_id"], **vehicle_payload()
        )
        await listing_service.create_driver_listing(
            session, company_id=marketplace["oslo_company_id"], **driver_payload()
        )
        await listing_service.create_vehicle_listing(
            session, company_id=marketplace["bergen_company_id"], **vehicle_payload()
        )
        vehicles, drivers = await listing_service.list_company_listings(
            session, company_id=marketplace["oslo_company_id"]
        )
    assert len(vehicles) == 1
    assert len(drivers) == 1
    assert drivers[0].status == ListingStatus.SUSPENDED
