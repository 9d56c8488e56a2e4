"""Run the pickup expiration sweep once.

Usage: ``python -m storefront.jobs.expire``
"""

import asyncio

import structlog

from storefront.database import SessionLocal, engine
from storefront.log import configure_logging
from storefront.services.notifications import enqueue_notification
from storefront.services.reservations import expire_stale_reservations

logger = structlog.get_logger()


async def main() -> int:
    try:
        async with SessionLocal() as db:
            count = await expire_stale_reservations(db, notify=enqueue_notification)
    finally:
        await engine.dispose()

    if count:
        print(f"Cancelled {count} expired reservation(s).")
    else:
        print("No expired reservations found.")
    return count


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
