"""Customer records: lookup by e-mail, cached statistics, age checks and CSV export"""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.exceptions import NotFoundError, UnderageError, ValidationFailed
from storefront.models.customer import Customer
from storefront.models.reservation import Reservation, ReservationStatus

EXPORT_HEADER = ["Name", "Email", "Phone", "Subscribed", "Total Orders", "Total Spent", "Created"]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28"""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def ensure_minimum_age(dob: Optional[date], minimum_age: Optional[int] = None, today: Optional[date] = None) -> None:
    """Require a date of birth on or before ``today`` minus ``minimum_age`` years"""
    minimum_age = settings.age_requirement if minimum_age is None else minimum_age
    if dob is None:
        raise ValidationFailed("The date of birth field is required.", field="customer_dob")
    today = today or date.today()
    if dob > years_before(today, minimum_age):
        raise UnderageError(minimum_age)


async def get_customer_by_email(db: AsyncSession, email: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def find_or_create_customer(
    db: AsyncSession,
    email: str,
    name: str,
    phone: Optional[str] = None,
    dob: Optional[date] = None,
    source: str = "website",
) -> Customer:
    """Resolve a customer by e-mail, creating one on first checkout"""
    customer = await get_customer_by_email(db, email)
    if customer is None:
        customer = Customer(
            email=normalize_email(email),
            name=name,
            phone=phone,
            dob=dob,
            source=source,
            is_subscribed=False,
            total_reservations=0,
            total_spent=Decimal("0.00"),
        )
        db.add(customer)
        await db.flush()
    elif customer.dob is None and dob is not None:
        customer.dob = dob
    return customer


async def refresh_customer_stats(db: AsyncSession, customer: Customer) -> Customer:
    """Recompute reservation count, completed spend and last reservation time"""
    await db.flush()
    result = await db.execute(
        select(
            func.count(Reservation.id),
            func.max(Reservation.created_at),
        ).where(Reservation.customer_id == customer.id)
    )
    count, last_at = result.one()

    spent_result = await db.execute(
        select(func.coalesce(func.sum(Reservation.total_price), 0)).where(
            Reservation.customer_id == customer.id,
            Reservation.status == ReservationStatus.COMPLETED,
        )
    )
    spent = spent_result.scalar()

    customer.total_reservations = count or 0
    customer.total_spent = Decimal(str(spent or 0)).quantize(Decimal("0.01"))
    customer.last_reservation_at = last_at
    return customer


def export_customers_csv(customers: Iterable[Customer]) -> str:
    """Render customers as CSV; text columns quoted, spend to two decimals"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    quoted = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="")
    for customer in customers:
        created = customer.created_at.strftime("%Y-%m-%d") if customer.created_at else ""
        quoted.writerow([customer.name or "", customer.email or "", customer.phone or ""])
        buffer.write(",{},{},{:.2f},".format(
            "Yes" if customer.is_subscribed else "No",
            customer.total_reservations or 0,
            Decimal(str(customer.total_spent or 0)),
        ))
        quoted.writerow([created])
        buffer.write("\n")
    return buffer.getvalue()


def _customer_filters(search: Optional[str] = None, subscribed: Optional[bool] = None) -> list:
    filters = []
    if search:
        like = f"%{search}%"
        filters.append(or_(Customer.name.ilike(like), Customer.email.ilike(like), Customer.phone.ilike(like)))
    if subscribed is not None:
        filters.append(Customer.is_subscribed == subscribed)
    return filters


async def list_customers(
    db: AsyncSession,
    search: Optional[str] = None,
    subscribed: Optional[bool] = None,
    page: int = 1,
    page_size: int = 25,
) -> Tuple[List[Customer], int]:
    filters = _customer_filters(search, subscribed)
    total = (await db.execute(select(func.count(Customer.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Customer)
        .where(*filters)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def customer_stats(db: AsyncSession) -> dict:
    total = (await db.execute(select(func.count(Customer.id)))).scalar() or 0
    subscribed = (await db.execute(
        select(func.count(Customer.id)).where(Customer.is_subscribed == True)  # noqa: E712
    )).scalar() or 0
    return {"total": total, "subscribed": subscribed}


async def get_customer(db: AsyncSession, customer_id: int) -> Customer:
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    return customer


async def latest_reservations(db: AsyncSession, customer: Customer, limit: int = 20) -> List[Reservation]:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == customer.id)
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def customers_for_export(db: AsyncSession, subscribed_only: bool = False) -> List[Customer]:
    query = select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc())
    if subscribed_only:
        query = query.where(Customer.is_subscribed == True)  # noqa: E712
    result = await db.execute(query)
    return list(result.scalars().all())
