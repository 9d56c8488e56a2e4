"""Back office dashboard statistics"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.reservation import Reservation, ReservationStatus
from storefront.services.catalog import low_stock_filter
from storefront.services.pricing import round_money

PERIODS = ("today", "week", "month", "year", "custom")


@dataclass
class Period:
    name: str
    label: str
    start: datetime
    end: datetime


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def resolve_period(
    period: str = "today",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Period:
    """Datetime range ``[start, end)`` for a dashboard period.

    Weeks start on Monday. A custom period without both dates falls back
    to today.
    """
    today = today or date.today()
    tomorrow = day_bounds(today)[1]

    if period == "week":
        start = today - timedelta(days=today.weekday())
        return Period("week", "This Week", datetime.combine(start, time.min), tomorrow)
    if period == "month":
        return Period("month", "This Month", datetime.combine(today.replace(day=1), time.min), tomorrow)
    if period == "year":
        return Period("year", "This Year", datetime.combine(date(today.year, 1, 1), time.min), tomorrow)
    if period == "custom" and start_date and end_date:
        label = f"{start_date.strftime('%b %d')} - {end_date.strftime('%b %d, %Y')}"
        return Period("custom", label, datetime.combine(start_date, time.min), day_bounds(end_date)[1])

    start, end = day_bounds(today)
    return Period("today", "Today", start, end)


async def period_stats(db: AsyncSession, period: Period) -> Dict:
    in_period = (Reservation.created_at >= period.start, Reservation.created_at < period.end)
    completed = Reservation.status == ReservationStatus.COMPLETED

    total = (await db.execute(select(func.count(Reservation.id)).where(*in_period))).scalar() or 0
    pending = (await db.execute(
        select(func.count(Reservation.id)).where(*in_period, Reservation.status == ReservationStatus.PENDING)
    )).scalar() or 0
    result = await db.execute(
        select(
            func.count(Reservation.id),
            func.coalesce(func.sum(Reservation.total_price), 0),
            func.coalesce(func.sum(Reservation.item_count), 0),
        ).where(*in_period, completed)
    )
    completed_count, revenue, items_sold = result.one()

    revenue = round_money(Decimal(str(revenue)))
    average = round_money(revenue / completed_count) if completed_count else Decimal("0.00")
    return {
        "total_reservations": total,
        "completed_reservations": completed_count,
        "pending_reservations": pending,
        "total_revenue": revenue,
        "total_items_sold": int(items_sold),
        "average_order_value": average,
    }


async def status_counts(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(select(Reservation.status, func.count(Reservation.id)).group_by(Reservation.status))
    counts = {status.value: 0 for status in ReservationStatus if status != ReservationStatus.EXPIRED}
    for status, count in result.all():
        counts[ReservationStatus(status).value] = count
    return counts


async def daily_revenue(db: AsyncSession, days: int = 7, today: Optional[date] = None) -> List[Dict]:
    """Completed revenue per day, oldest first"""
    today = today or date.today()
    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        start, end = day_bounds(day)
        revenue = (await db.execute(
            select(func.coalesce(func.sum(Reservation.total_price), 0)).where(
                Reservation.created_at >= start,
                Reservation.created_at < end,
                Reservation.status == ReservationStatus.COMPLETED,
            )
        )).scalar()
        series.append({"date": day.strftime("%b %d"), "revenue": round_money(Decimal(str(revenue)))})
    return series


async def quick_stats(db: AsyncSession, today: Optional[date] = None) -> Dict[str, int]:
    today = today or date.today()
    month_start = datetime.combine(today.replace(day=1), time.min)
    return {
        "total_customers": (await db.execute(select(func.count(Customer.id)))).scalar() or 0,
        "new_customers_this_month": (await db.execute(
            select(func.count(Customer.id)).where(Customer.created_at >= month_start)
        )).scalar() or 0,
        "low_stock_products": (await db.execute(
            select(func.count(Product.id)).where(low_stock_filter())
        )).scalar() or 0,
    }


async def recent_reservations(db: AsyncSession, limit: int = 10) -> List[Reservation]:
    result = await db.execute(
        select(Reservation)
        .options(selectinload(Reservation.customer))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def build_dashboard(
    db: AsyncSession,
    period: str = "today",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    today: Optional[date] = None,
) -> Dict:
    resolved = resolve_period(period, start_date, end_date, today)
    return {
        "period": resolved.name,
        "period_label": resolved.label,
        "stats": await period_stats(db, resolved),
        "status_counts": await status_counts(db),
        "daily_revenue": await daily_revenue(db, today=today),
        "quick_stats": await quick_stats(db, today=today),
        "recent_reservations": await recent_reservations(db),
    }
