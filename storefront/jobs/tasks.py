"""Background job tasks"""

import asyncio
import structlog

from storefront.jobs.celery_app import celery_app

logger = structlog.get_logger()

_loop = None


def run_async(coro):
    """Run a coroutine on the worker's long-lived event loop"""
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
        asyncio.set_event_loop(_loop)
    return _loop.run_until_complete(coro)


async def deliver_reservation_email(kind: str, reservation_id: int) -> bool:
    """Render and send one reservation e-mail; False if there is no recipient"""
    from storefront.database import SessionLocal
    from storefront.models.reservation import Reservation
    from storefront.services.notifications import build_context, render_notification, send_email
    from sqlalchemy import select
    from sqlalchemy.orm import selectinload

    async with SessionLocal() as db:
        result = await db.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id)
            .options(selectinload(Reservation.items), selectinload(Reservation.customer))
        )
        reservation = result.scalar_one_or_none()

        if reservation is None or reservation.customer is None or not reservation.customer.email:
            logger.warning("No recipient for reservation e-mail", kind=kind, reservation_id=reservation_id)
            return False

        context = build_context(reservation, reservation.items, reservation.customer.name)
        to_email = reservation.customer.email

    message = render_notification(kind, context)
    send_email(to_email=to_email, subject=message["subject"], body=message["body"])
    return True


@celery_app.task(name="send_reservation_email")
def send_reservation_email(kind: str, reservation_id: int):
    """Send a customer e-mail for a reservation event"""
    logger.info("Sending reservation e-mail", kind=kind, reservation_id=reservation_id)

    try:
        sent = run_async(deliver_reservation_email(kind, reservation_id))
    except Exception as e:
        logger.error(
            "Failed to send reservation e-mail",
            kind=kind,
            reservation_id=reservation_id,
            error=str(e),
        )
        return {"sent": False}

    if sent:
        logger.info("Reservation e-mail sent", kind=kind, reservation_id=reservation_id)
    return {"sent": sent}


@celery_app.task(name="cancel_expired_reservations")
def cancel_expired_reservations():
    """Cancel reservations not picked up within the pickup window"""
    logger.info("Checking for expired reservations")

    async def _expire():
        from storefront.database import SessionLocal
        from storefront.services.notifications import enqueue_notification
        from storefront.services.reservations import expire_stale_reservations

        async with SessionLocal() as db:
            return await expire_stale_reservations(db, notify=enqueue_notification)

    count = run_async(_expire())
    logger.info("Expiration sweep complete", cancelled=count)
    return {"cancelled": count}
