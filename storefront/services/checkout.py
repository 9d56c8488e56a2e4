"""Checkout: turn a cart into a pending pickup reservation"""

import secrets
import string
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.config import settings
from storefront.exceptions import (
    EmptyCartError,
    HoneypotTriggered,
    NotFoundError,
    StockShortageError,
    ValidationFailed,
)
from storefront.models.customer import Customer
from storefront.models.product import Product
from storefront.models.reservation import Reservation, ReservationItem, ReservationStatus
from storefront.services.cart import Cart
from storefront.services.customers import ensure_minimum_age, find_or_create_customer, refresh_customer_stats
from storefront.services.notifications import NotificationKind, Notifier, notify_safely
from storefront.services.pricing import price_product

logger = structlog.get_logger()

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


@dataclass
class CheckoutDetails:
    """Customer fields submitted with the checkout form"""
    name: str
    email: str
    phone: str
    dob: Optional[date] = None
    is_subscribed: bool = False
    # Signed in; identity comes from the account profile
    account_holder: bool = False


def checkout_details(
    phone: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    dob: Optional[date] = None,
    is_subscribed: bool = False,
    customer: Optional[Customer] = None,
) -> CheckoutDetails:
    """Checkout identity: the signed-in customer's profile, or the guest's form fields"""
    if customer is not None:
        return CheckoutDetails(
            name=customer.name,
            email=customer.email,
            phone=phone,
            dob=customer.dob or dob,
            is_subscribed=is_subscribed,
            account_holder=True,
        )

    for field, value in (("customer_name", name), ("customer_email", email)):
        if not value:
            raise ValidationFailed(f"The {field.replace('_', ' ')} field is required.", field=field)
    return CheckoutDetails(name=name, email=email, phone=phone, dob=dob, is_subscribed=is_subscribed)


def random_confirmation_code(prefix: Optional[str] = None) -> str:
    prefix = settings.confirmation_prefix if prefix is None else prefix
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


async def generate_confirmation_code(db: AsyncSession, prefix: Optional[str] = None) -> str:
    """Draw codes until one is not already in use"""
    while True:
        code = random_confirmation_code(prefix)
        result = await db.execute(
            select(Reservation.id).where(Reservation.confirmation_number == code)
        )
        if result.first() is None:
            return code
        logger.info("Confirmation code collision, regenerating", code=code)


def check_honeypot(value: Optional[str]) -> None:
    if value:
        raise HoneypotTriggered()


async def reserve_stock(db: AsyncSession, product: Product, quantity: int) -> None:
    """Decrement stock only if enough remains, as a single statement"""
    if not product.track_inventory:
        return
    result = await db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise StockShortageError(product.name)
    await db.refresh(product, attribute_names=["stock"])


async def place_reservation(
    db: AsyncSession,
    cart: Cart,
    details: CheckoutDetails,
    notify: Optional[Notifier] = None,
    tax_rate=None,
    today: Optional[date] = None,
) -> Reservation:
    """Create a pending reservation from the cart in one transaction.

    Nothing is persisted if any line fails its stock check. The cart is
    cleared and the confirmation e-mail queued only after the commit.
    """
    if cart.is_empty():
        raise EmptyCartError()
    # An account without a date of birth on file has no age to check
    if details.dob is not None or not details.account_holder:
        ensure_minimum_age(details.dob, today=today)

    try:
        customer = await find_or_create_customer(
            db,
            email=details.email,
            name=details.name,
            phone=details.phone,
            dob=details.dob,
        )
        customer.phone = details.phone
        customer.is_subscribed = details.is_subscribed

        reservation = Reservation(
            confirmation_number=await generate_confirmation_code(db),
            customer_id=customer.id,
            status=ReservationStatus.PENDING,
        )
        db.add(reservation)
        await db.flush()

        items: List[ReservationItem] = []
        for product_id, quantity in cart:
            result = await db.execute(
                select(Product)
                .where(Product.id == product_id)
                .execution_options(populate_existing=True)
            )
            product = result.scalar_one_or_none()
            if product is None:
                continue

            if product.track_inventory and (product.stock or 0) < quantity:
                raise StockShortageError(product.name)

            pricing = price_product(product, quantity, tax_rate)
            item = ReservationItem(
                reservation_id=reservation.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=pricing.unit_price,
                subtotal=pricing.subtotal,
                tax_rate=pricing.tax_rate,
                tax_amount=pricing.tax_amount,
                total_price=pricing.total_price,
                product_name=product.name,
                product_sku=product.sku,
            )
            db.add(item)
            items.append(item)

            await reserve_stock(db, product, quantity)

        if not items:
            raise EmptyCartError("None of the products in your cart are available.")

        reservation.recalculate_totals(items)
        await refresh_customer_stats(db, customer)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    cart.clear()
    logger.info(
        "Reservation placed",
        confirmation_number=reservation.confirmation_number,
        reservation_id=reservation.id,
        customer_id=customer.id,
        item_count=reservation.item_count,
        total_price=str(reservation.total_price),
    )
    notify_safely(notify, NotificationKind.RECEIVED, reservation.id)
    return reservation


async def get_reservation_by_code(db: AsyncSession, confirmation_number: str) -> Reservation:
    """Reservation with customer and items, or NotFoundError"""
    result = await db.execute(
        select(Reservation)
        .where(Reservation.confirmation_number == confirmation_number)
        .options(selectinload(Reservation.items), selectinload(Reservation.customer))
        .execution_options(populate_existing=True)
    )
    reservation = result.scalar_one_or_none()
    if reservation is None:
        raise NotFoundError("Reservation not found")
    return reservation
