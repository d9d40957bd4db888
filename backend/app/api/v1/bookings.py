"""Booking request API."""

from __future__ import annotations

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.schemas.booking import BookingCreate, BookingRead, BookingStatusUpdate
from app.services import booking_service

router = APIRouter()

logger = logging.getLogger("app.api.bookings")


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
)
async def create_booking(
    payload: BookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> BookingRead:
    booking = await booking_service.create_booking_request(session, **payload.model_dump())
    logger.info(
        "Booking requested",
        extra={"booking_number": booking.booking_number, "booking_id": str(booking.id)},
    )
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking")
async def get_booking(
    booking_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> BookingRead:
    booking = await booking_service.get_booking(session, booking_id=booking_id)
    return BookingRead.model_validate(booking)


@router.post(
    "/{booking_id}/status",
    response_model=BookingRead,
    summary="Move a booking to another status",
)
async def transition_booking_status(
    booking_id: uuid.UUID,
    payload: BookingStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor_id: Annotated[uuid.UUID | None, Depends(deps.get_actor_id)],
) -> BookingRead:
    booking = await booking_service.transition_booking_status(
        session, booking_id=booking_id, status=payload.status
    )
    logger.info(
        "Booking status changed",
        extra={
            "booking_id": str(booking_id),
            "status": booking.status.value,
            "actor_id": str(actor_id) if actor_id else None,
        },
    )
    return BookingRead.model_validate(booking)
