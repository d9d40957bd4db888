"""Administrative listing moderation API."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.listing import DriverListing
from app.schemas.listing import DriverListingRead, ListingStatusUpdate, VehicleListingRead
from app.services import listing_service

router = APIRouter()

logger = logging.getLogger("app.api.admin")


@router.post(
    "/listings/{listing_path}/{listing_id}/status",
    response_model=VehicleListingRead | DriverListingRead,
    summary="Change listing status",
)
async def update_listing_status(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    payload: ListingStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID, Depends(deps.require_actor_id)],
) -> VehicleListingRead | DriverListingRead:
    listing = await listing_service.update_listing_status(
        session,
        listing_kind=listing_path.kind,
        listing_id=listing_id,
        status=payload.status,
        reason=payload.reason,
        actor_id=actor_id,
    )
    logger.info(
        "Listing status changed",
        extra={
            "listing_kind": listing_path.kind.value,
            "listing_id": str(listing_id),
            "status": listing.status.value,
            "actor_id": str(actor_id),
        },
    )
    if isinstance(listing, DriverListing):
        return DriverListingRead.from_listing(listing)
    return VehicleListingRead.model_validate(listing)


@router.post(
    "/listings/drivers/{listing_id}/verify",
    response_model=DriverListingRead,
    summary="Verify driver listing",
)
async def verify_driver_listing(
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID, Depends(deps.require_actor_id)],
) -> DriverListingRead:
    listing = await listing_service.verify_driver_listing(
        session, listing_id=listing_id, admin_id=actor_id
    )
    logger.info(
        "Driver listing verified",
        extra={
            "listing_id": str(listing_id),
            "status": listing.status.value,
            "actor_id": str(actor_id),
        },
    )
    return DriverListingRead.from_listing(listing)
