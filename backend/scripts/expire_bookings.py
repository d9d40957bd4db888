"""Expire pending booking requests whose response window has passed."""
from __future__ import annotations

import asyncio
import logging

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import dispose_engine, get_sessionmaker
from app.services.booking_service import expire_pending_bookings

logger = logging.getLogger("app.scripts.expire_bookings")


async def expire_bookings() -> int:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        expired = await expire_pending_bookings(session)
    await dispose_engine()
    return expired


def main() -> None:
    configure_logging(get_settings().log_level)
    expired = asyncio.run(expire_bookings())
    logger.info("Expired pending bookings", extra={"expired": expired})
    print(f"Expired {expired} pending booking(s).")


if __name__ == "__main__":
    main()
