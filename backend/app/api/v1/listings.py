"""Listing search and management API."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.listing import ListingKind
from app.schemas.listing import (
    CompanyListingsRead,
    DriverListingCreate,
    DriverListingRead,
    DriverListingUpdate,
    VehicleListingCreate,
    VehicleListingRead,
    VehicleListingUpdate,
)
from app.schemas.search import SearchFilters, SearchResponse
from app.services import listing_service, search_service

router = APIRouter()

logger = logging.getLogger("app.api.listings")


@router.post("/listings/search", response_model=SearchResponse, summary="Search listings")
async def search_listings(
    filters: SearchFilters,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SearchResponse:
    result = await search_service.search_listings(session, filters)
    logger.info(
        "Listing search served",
        extra={
            "listing_type": filters.listing_type.value if filters.listing_type else "all",
            "has_date_range": filters.date_range is not None,
            "total": result.total,
            "page": result.page,
        },
    )
    return SearchResponse(
        vehicle_listings=[VehicleListingRead.model_validate(obj) for obj in result.vehicle_listings],
        driver_listings=[DriverListingRead.from_listing(obj) for obj in result.driver_listings],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.post(
    "/listings/vehicles",
    response_model=VehicleListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Publish vehicle listing",
)
async def create_vehicle_listing(
    payload: VehicleListingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VehicleListingRead:
    listing = await listing_service.create_vehicle_listing(
        session,
        company_id=payload.company_id,
        **payload.model_dump(exclude={"company_id"}),
    )
    return VehicleListingRead.model_validate(listing)


@router.get(
    "/listings/vehicles/{listing_id}",
    response_model=VehicleListingRead,
    summary="Get vehicle listing",
)
async def get_vehicle_listing(
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VehicleListingRead:
    listing = await listing_service.get_listing(
        session, listing_kind=ListingKind.VEHICLE, listing_id=listing_id
    )
    return VehicleListingRead.model_validate(listing)


@router.patch(
    "/listings/vehicles/{listing_id}",
    response_model=VehicleListingRead,
    summary="Update vehicle listing",
)
async def update_vehicle_listing(
    listing_id: uuid.UUID,
    payload: VehicleListingUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> VehicleListingRead:
    listing = await listing_service.update_vehicle_listing(
        session,
        listing_id=listing_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return VehicleListingRead.model_validate(listing)


@router.delete(
    "/listings/vehicles/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete vehicle listing",
)
async def delete_vehicle_listing(
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    await listing_service.delete_listing(
        session, listing_kind=ListingKind.VEHICLE, listing_id=listing_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/listings/drivers",
    response_model=DriverListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Publish driver listing",
)
async def create_driver_listing(
    payload: DriverListingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> DriverListingRead:
    listing = await listing_service.create_driver_listing(
        session,
        company_id=payload.company_id,
        **payload.model_dump(exclude={"company_id"}),
    )
    return DriverListingRead.from_listing(listing)


@router.get(
    "/listings/drivers/{listing_id}",
    response_model=DriverListingRead,
    summary="Get driver listing",
)
async def get_driver_listing(
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> DriverListingRead:
    listing = await listing_service.get_listing(
        session, listing_kind=ListingKind.DRIVER, listing_id=listing_id
    )
    return DriverListingRead.from_listing(listing)


@router.patch(
    "/listings/drivers/{listing_id}",
    response_model=DriverListingRead,
    summary="Update driver listing",
)
async def update_driver_listing(
    listing_id: uuid.UUID,
    payload: DriverListingUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> DriverListingRead:
    listing = await listing_service.update_driver_listing(
        session,
        listing_id=listing_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return DriverListingRead.from_listing(listing)


@router.delete(
    "/listings/drivers/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete driver listing",
)
async def delete_driver_listing(
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    await listing_service.delete_listing(
        session, listing_kind=ListingKind.DRIVER, listing_id=listing_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/companies/{company_id}/listings",
    response_model=CompanyListingsRead,
    summary="List a company's listings",
)
async def list_company_listings(
    company_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> CompanyListingsRead:
    vehicles, drivers = await listing_service.list_company_listings(
        session, company_id=company_id
    )
    return CompanyListingsRead(
        vehicle_listings=[VehicleListingRead.model_validate(obj) for obj in vehicles],
        driver_listings=[DriverListingRead.from_listing(obj) for obj in drivers],
    )
