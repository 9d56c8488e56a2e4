"""Customer accounts: registration, profile, order history and reorder"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.exceptions import DuplicateFieldError, ForbiddenError, NotFoundError, ValidationFailed
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.reservation import Reservation, ReservationStatus
from storefront.models.user import User, UserRole
from storefront.security import get_password_hash, verify_password
from storefront.services.cart import Cart
from storefront.services.customers import get_customer_by_email, normalize_email

logger = structlog.get_logger()

OPEN_STATUSES = (ReservationStatus.PENDING, ReservationStatus.READY)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def link_or_create_customer(db: AsyncSession, user: User, phone: Optional[str] = None) -> Customer:
    """Attach the guest customer with the user's e-mail, or create one"""
    customer = await get_customer_by_email(db, user.email)
    if customer is None:
        customer = Customer(
            email=normalize_email(user.email),
            name=user.full_name or user.email,
            phone=phone,
            is_subscribed=False,
        )
        db.add(customer)
        await db.flush()
    else:
        customer.name = user.full_name or customer.name
        if phone:
            customer.phone = phone
    user.customer_id = customer.id
    return customer


async def register_customer(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
) -> User:
    """Create a customer login, keeping earlier guest reservations"""
    if await get_user_by_email(db, email) is not None:
        raise DuplicateFieldError("The email has already been taken.", field="email")

    user = User(
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        full_name=name,
        role=UserRole.CUSTOMER,
        is_active=True,
    )
    db.add(user)
    try:
        await db.flush()
        customer = await link_or_create_customer(db, user, phone)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Customer registered", user_id=user.id, customer_id=customer.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_account_customer(db: AsyncSession, user: User) -> Optional[Customer]:
    if user.customer_id is None:
        return None
    return await db.get(Customer, user.customer_id)


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str,
    email: str,
    phone: Optional[str] = None,
    is_subscribed: bool = False,
    dob: Optional[date] = None,
) -> Optional[Customer]:
    """Update login and customer record together; the date of birth is set once"""
    email = normalize_email(email)
    if email != user.email:
        existing = await get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise DuplicateFieldError("The email has already been taken.", field="email")

    customer = await get_account_customer(db, user)
    if customer is not None and email != customer.email:
        other = await get_customer_by_email(db, email)
        if other is not None and other.id != customer.id:
            raise DuplicateFieldError("The email has already been taken.", field="email")

    user.full_name = name
    user.email = email
    if customer is not None:
        customer.name = name
        customer.email = email
        customer.phone = phone
        customer.is_subscribed = is_subscribed
        if dob is not None and customer.dob is None:
            customer.dob = dob

    await db.commit()
    return customer


async def change_password(db: AsyncSession, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationFailed("The password is incorrect.", field="current_password")
    user.hashed_password = get_password_hash(new_password)
    user.refresh_token = None
    await db.commit()


async def account_summary(db: AsyncSession, customer: Optional[Customer]) -> Dict:
    if customer is None:
        return {"recent_orders": [], "total_orders": 0, "total_spent": 0, "pending_orders": 0}

    recent = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == customer.id)
        .options(selectinload(Reservation.items))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .limit(5)
    )
    pending = await db.execute(
        select(func.count(Reservation.id)).where(
            Reservation.customer_id == customer.id,
            Reservation.status.in_(OPEN_STATUSES),
        )
    )
    return {
        "recent_orders": list(recent.scalars().all()),
        "total_orders": customer.total_reservations or 0,
        "total_spent": customer.total_spent or 0,
        "pending_orders": pending.scalar() or 0,
    }


async def list_orders(
    db: AsyncSession, customer: Optional[Customer], page: int = 1, page_size: int = 10
) -> Tuple[List[Reservation], int]:
    if customer is None:
        return [], 0
    total = (await db.execute(
        select(func.count(Reservation.id)).where(Reservation.customer_id == customer.id)
    )).scalar() or 0
    result = await db.execute(
        select(Reservation)
        .where(Reservation.customer_id == customer.id)
        .options(selectinload(Reservation.items))
        .order_by(Reservation.created_at.desc(), Reservation.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def get_owned_order(db: AsyncSession, customer: Optional[Customer], reservation_id: int) -> Reservation:
    result = await db.execute(
        select(Reservation)
        .where(Reservation.id == reservation_id)
        .options(selectinload(Reservation.items))
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise NotFoundError("Reservation not found")
    if customer is None or reservation.customer_id != customer.id:
        raise ForbiddenError("This order does not belong to you.")
    return reservation


@dataclass
class ReorderResult:
    added: int = 0
    unavailable: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        message = f"{self.added} item(s) added to your cart."
        if self.unavailable:
            message += " Some items were unavailable: " + ", ".join(self.unavailable)
        return message


async def reorder(db: AsyncSession, cart: Cart, reservation: Reservation) -> ReorderResult:
    """Add a past reservation's items to the cart, capped at what is in stock"""
    outcome = ReorderResult()
    for item in reservation.items:
        product = await db.get(Product, item.product_id) if item.product_id else None
        if product is None or not product.is_active:
            outcome.unavailable.append(item.product_name)
            continue

        in_cart = cart.quantity_of(product.id)
        available = cart.max_quantity - in_cart
        if product.track_inventory:
            available = min(available, (product.stock or 0) - in_cart)
        if available <= 0:
            outcome.unavailable.append(f"{product.name} (out of stock)")
            continue

        cart.update(product.id, in_cart + min(item.quantity, available))
        outcome.added += 1
    return outcome
