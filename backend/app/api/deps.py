"""Common API dependencies."""

from __future__ import annotations

import enum
import uuid
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session
from app.models.listing import ListingKind

ACTOR_HEADER = "X-Actor-Id"


class ListingPath(str, enum.Enum):
    """Plural URL segment naming a listing kind."""

    VEHICLES = "vehicles"
    DRIVERS = "drivers"

    @property
    def kind(self) -> ListingKind:
        return ListingKind.VEHICLE if self is ListingPath.VEHICLES else ListingKind.DRIVER


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


async def get_actor_id(
    x_actor_id: Annotated[str | None, Header(alias=ACTOR_HEADER)] = None,
) -> uuid.UUID | None:
    """Identify the acting user from the ``X-Actor-Id`` header, if supplied."""
    if x_actor_id is None:
        return None
    try:
        return uuid.UUID(x_actor_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{ACTOR_HEADER} must be a UUID",
        ) from exc


async def require_actor_id(
    x_actor_id: Annotated[str | None, Header(alias=ACTOR_HEADER)] = None,
) -> uuid.UUID:
    """Like ``get_actor_id`` but the header is mandatory (admin endpoints)."""
    actor_id = await get_actor_id(x_actor_id)
    if actor_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{ACTOR_HEADER} header is required",
        )
    return actor_id
