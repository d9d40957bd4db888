"""Availability blocks and availability checks."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.schemas.availability import (
    AvailabilityBlockCreate,
    AvailabilityBlockRead,
    AvailabilityRead,
    BulkBlockCreate,
    RecurringBlockCreate,
    RecurringBlockRead,
    RecurringBlockUpdate,
)
from app.services import availability_service

router = APIRouter()


@router.get(
    "/listings/{listing_path}/{listing_id}/blocks",
    response_model=list[AvailabilityBlockRead],
    summary="List availability blocks",
)
async def list_blocks(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
) -> list[AvailabilityBlockRead]:
    blocks = await availability_service.list_blocks(
        session,
        listing_kind=listing_path.kind,
        listing_id=listing_id,
        start=start_date,
        end=end_date,
    )
    return [AvailabilityBlockRead.model_validate(obj) for obj in blocks]


@router.post(
    "/listings/{listing_path}/{listing_id}/blocks",
    response_model=AvailabilityBlockRead,
    status_code=status.HTTP_201_CREATED,
    summary="Block a listing for a date range",
)
async def create_block(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    payload: AvailabilityBlockCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID | None, Depends(deps.get_actor_id)],
) -> AvailabilityBlockRead:
    block = await availability_service.create_block(
        session,
        listing_kind=listing_path.kind,
        listing_id=listing_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        created_by=actor_id,
    )
    return AvailabilityBlockRead.model_validate(block)


@router.post(
    "/blocks/bulk",
    response_model=list[AvailabilityBlockRead],
    status_code=status.HTTP_201_CREATED,
    summary="Block several listings at once",
)
async def create_bulk_blocks(
    payload: BulkBlockCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID | None, Depends(deps.get_actor_id)],
) -> list[AvailabilityBlockRead]:
    blocks = await availability_service.create_bulk_blocks(
        session,
        listing_kind=payload.listing_kind,
        listing_ids=payload.listing_ids,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        created_by=actor_id,
    )
    return [AvailabilityBlockRead.model_validate(obj) for obj in blocks]


@router.delete(
    "/blocks/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete availability block",
)
async def delete_block(
    block_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    await availability_service.delete_block(session, block_id=block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/listings/{listing_path}/{listing_id}/recurring-blocks",
    response_model=list[RecurringBlockRead],
    summary="List recurring blocks",
)
async def list_recurring_blocks(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[RecurringBlockRead]:
    patterns = await availability_service.list_recurring_blocks(
        session, listing_kind=listing_path.kind, listing_id=listing_id
    )
    return [RecurringBlockRead.model_validate(obj) for obj in patterns]


@router.post(
    "/listings/{listing_path}/{listing_id}/recurring-blocks",
    response_model=RecurringBlockRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create recurring block",
)
async def create_recurring_block(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    payload: RecurringBlockCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID | None, Depends(deps.get_actor_id)],
) -> RecurringBlockRead:
    pattern = await availability_service.create_recurring_block(
        session,
        listing_kind=listing_path.kind,
        listing_id=listing_id,
        days_of_week=payload.days_of_week,
        start_date=payload.start_date,
        end_date=payload.end_date,
        reason=payload.reason,
        created_by=actor_id,
    )
    return RecurringBlockRead.model_validate(pattern)


@router.patch(
    "/recurring-blocks/{block_id}",
    response_model=RecurringBlockRead,
    summary="Update recurring block",
)
async def update_recurring_block(
    block_id: uuid.UUID,
    payload: RecurringBlockUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> RecurringBlockRead:
    changes: dict[str, Any] = payload.model_dump(exclude_unset=True)
    pattern = await availability_service.update_recurring_block(
        session, block_id=block_id, **changes
    )
    return RecurringBlockRead.model_validate(pattern)


@router.delete(
    "/recurring-blocks/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete recurring block",
)
async def delete_recurring_block(
    block_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    await availability_service.delete_recurring_block(session, block_id=block_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/listings/{listing_path}/{listing_id}/availability",
    response_model=AvailabilityRead,
    summary="Check listing availability",
)
async def check_availability(
    listing_path: deps.ListingPath,
    listing_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: date = Query(...),
    end_date: date = Query(...),
) -> AvailabilityRead:
    check = await availability_service.check_availability(
        session,
        listing_kind=listing_path.kind,
        listing_id=listing_id,
        start=start_date,
        end=end_date,
    )
    return AvailabilityRead.model_validate(check)
