"""Reservation status transitions and the pickup expiration sweep"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Set, Tuple

import structlog
from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.config import settings
from storefront.exceptions import IllegalTransitionError, InvalidStatusError, NotFoundError
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.reservation import (
    CancellationReason,
    Reservation,
    ReservationItem,
    ReservationStatus,
)
from storefront.services.customers import refresh_customer_stats
from storefront.services.notifications import Notifier, kind_for_status, notify_safely

logger = structlog.get_logger()

ASSIGNABLE_STATUSES = (
    ReservationStatus.PENDING,
    ReservationStatus.READY,
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED,
)

ALLOWED_TRANSITIONS: Dict[ReservationStatus, Set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.READY,
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.READY: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
    },
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.EXPIRED: set(),
}


@dataclass
class TransitionResult:
    """Outcome of a status change request"""
    reservation: Reservation
    previous_status: ReservationStatus
    changed: bool
    restored: Dict[int, int]


def parse_status(value) -> ReservationStatus:
    """Accept only statuses an operator may assign"""
    try:
        status = ReservationStatus(value)
    except ValueError:
        raise InvalidStatusError(str(value))
    if status not in ASSIGNABLE_STATUSES:
        raise InvalidStatusError(status.value)
    return status


async def load_reservation(db: AsyncSession, reservation_id: int) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .options(selectinload(Reservation.items), selectinload(Reservation.customer))
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation


async def restore_stock(db: AsyncSession, items: List[ReservationItem]) -> Dict[int, int]:
    """Put ordered quantities back on tracked products that still exist"""
    restored: Dict[int, int] = {}
    for item in items:
        if item.product_id is None:
            continue
        result = await db.execute(
            update(Product)
            .where(Product.id == item.product_id, Product.track_inventory == True)  # noqa: E712
            .values(stock=Product.stock + item.quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            restored[item.product_id] = restored.get(item.product_id, 0) + item.quantity
    return restored


async def _sync_products(db: AsyncSession, product_ids) -> None:
    """Reload stock of products the session may hold stale copies of"""
    for product_id in product_ids:
        await db.get(Product, product_id, populate_existing=True)


async def change_status(
    db: AsyncSession,
    reservation: Reservation,
    new_status,
    actor_id: Optional[int] = None,
    notes: Optional[str] = None,
    reason: CancellationReason = CancellationReason.ADMIN_CANCELLED,
    notify: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Move a reservation to ``new_status`` and apply its side effects.

    ``reservation`` must have its items loaded. The update, stock restore
    and customer statistics commit together; the customer e-mail goes out
    afterwards.
    """
    target = parse_status(new_status)
    previous = reservation.status

    if previous == target:
        return TransitionResult(reservation=reservation, previous_status=previous, changed=False, restored={})
    if target not in ALLOWED_TRANSITIONS.get(previous, set()):
        raise IllegalTransitionError(previous.value, target.value)

    now = now or datetime.utcnow()
    items = list(reservation.items)
    restored: Dict[int, int] = {}

    try:
        reservation.status = target
        reservation.processed_by = actor_id
        reservation.processed_at = now
        if notes is not None:
            reservation.notes = notes

        if target == ReservationStatus.READY:
            reservation.ready_at = now

        if target == ReservationStatus.CANCELLED:
            reservation.cancelled_at = now
            reservation.cancellation_reason = reason
            if previous != ReservationStatus.CANCELLED:
                restored = await restore_stock(db, items)

        if target == ReservationStatus.COMPLETED:
            customer = await db.get(Customer, reservation.customer_id)
            if customer is not None:
                await refresh_customer_stats(db, customer)

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await _sync_products(db, restored)

    logger.info(
        "Reservation status changed",
        confirmation_number=reservation.confirmation_number,
        reservation_id=reservation.id,
        old_status=previous.value,
        new_status=target.value,
        actor_id=actor_id,
        restored=restored or None,
    )

    if await notification_email(db, reservation):
        notify_safely(notify, kind_for_status(target), reservation.id)

    return TransitionResult(reservation=reservation, previous_status=previous, changed=True, restored=restored)


async def notification_email(db: AsyncSession, reservation: Reservation) -> Optional[str]:
    """E-mail address the reservation's notifications go to, if any"""
    result = await db.execute(select(Customer.email).where(Customer.id == reservation.customer_id))
    return result.scalar_one_or_none() or None


def expired_pickup_cutoff(now: Optional[datetime] = None, window_hours: Optional[int] = None) -> datetime:
    window_hours = settings.pickup_window_hours if window_hours is None else window_hours
    return (now or datetime.utcnow()) - timedelta(hours=window_hours)


async def expire_stale_reservations(
    db: AsyncSession,
    notify: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> int:
    """Cancel reservations left in ``ready`` past the pickup window.

    Each reservation is re-read and cancelled in its own transaction, so one
    that was moved on by an operator in the meantime is skipped and a
    failure on one does not stop the rest. Returns the number cancelled.
    """
    now = now or datetime.utcnow()
    cutoff = expired_pickup_cutoff(now)

    result = await db.execute(
        select(Reservation.id).where(
            Reservation.status == ReservationStatus.READY,
            Reservation.ready_at.is_not(None),
            Reservation.ready_at <= cutoff,
        ).order_by(Reservation.ready_at)
    )
    candidate_ids = [row[0] for row in result.all()]

    if not candidate_ids:
        logger.info("No expired reservations found")
        return 0

    count = 0
    for reservation_id in candidate_ids:
        try:
            result = await db.execute(
                select(Reservation)
                .where(
                    Reservation.id == reservation_id,
                    Reservation.status == ReservationStatus.READY,
                    Reservation.ready_at <= cutoff,
                )
                .options(selectinload(Reservation.items))
                .execution_options(populate_existing=True)
            )
            reservation = result.scalar_one_or_none()
            if reservation is None:
                continue

            await change_status(
                db,
                reservation,
                ReservationStatus.CANCELLED,
                reason=CancellationReason.AUTO_EXPIRED,
                notify=notify,
                now=now,
            )
            count += 1
            logger.info(
                "Auto-cancelled expired reservation",
                confirmation_number=reservation.confirmation_number,
                reservation_id=reservation.id,
                ready_at=reservation.ready_at.isoformat(),
            )
        except Exception as e:
            await db.rollback()
            logger.error(
                "Failed to expire reservation",
                reservation_id=reservation_id,
                error=str(e),
            )

    logger.info("Expired reservations cancelled", count=count)
    return count


async def list_reservations(
    db: AsyncSession,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
) -> Tuple[List[Reservation], int]:
    """Back office listing, newest first"""
    query = select(Reservation).join(Customer, Customer.id == Reservation.customer_id)
    if status:
        query = query.where(Reservation.status == parse_status(status))
    if on_date:
        start = datetime.combine(on_date, time.min)
        query = query.where(Reservation.created_at >= start, Reservation.created_at < start + timedelta(days=1))
    if search:
        like = f"%{search}%"
        query = query.where(or_(
            Reservation.confirmation_number.ilike(like),
            Customer.name.ilike(like),
            Customer.email.ilike(like),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await db.execute(
        query.options(selectinload(Reservation.customer))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def customer_history(db: AsyncSession, reservation: Reservation, limit: int = 5) -> List[Reservation]:
    """The customer's other latest reservations"""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == reservation.customer_id, Reservation.id != reservation.id)
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
