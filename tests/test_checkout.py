"""Tests for checkout and reservation creation"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select, func

from storefront.exceptions import EmptyCartError, StockShortageError, UnderageError, ValidationFailed
from storefront.models import Customer, Product, Reservation, ReservationItem, ReservationStatus
from storefront.services.cart import Cart
from storefront.services.checkout import (
    CheckoutDetails,
    checkout_details,
    generate_confirmation_code,
    place_reservation,
    random_confirmation_code,
)
from storefront.services.customers import ensure_minimum_age, years_before
from storefront.services.notifications import NotificationKind

TODAY = date(2026, 3, 15)


def details(**overrides) -> CheckoutDetails:
    values = {
        "name": "Jane Doe",
        "email": "Jane@Example.com",
        "phone": "555-0100",
        "dob": date(1990, 5, 1),
    }
    values.update(overrides)
    return CheckoutDetails(**values)


async def count(db, model) -> int:
    return (await db.execute(select(func.count(model.id)))).scalar()


def test_age_boundary():
    """21 years and a day passes; one day short of 21 fails"""
    cutoff = years_before(TODAY, 21)

    ensure_minimum_age(cutoff - timedelta(days=1), today=TODAY)
    ensure_minimum_age(cutoff, today=TODAY)

    with pytest.raises(UnderageError):
        ensure_minimum_age(cutoff + timedelta(days=1), today=TODAY)


def test_missing_dob_is_a_validation_error():
    with pytest.raises(ValidationFailed) as exc_info:
        ensure_minimum_age(None, today=TODAY)
    assert exc_info.value.field == "customer_dob"


def test_leap_day_birthday_cutoff():
    assert years_before(date(2028, 2, 29), 21) == date(2007, 2, 28)


def test_confirmation_code_format():
    code = random_confirmation_code()
    assert code.startswith("PCV-")
    assert len(code) == 10
    assert code[4:].isalnum() and code[4:].upper() == code[4:]


@pytest.mark.asyncio
async def test_place_reservation(test_db, test_products, notifier, notifications):
    pod, papers = test_products["pod"], test_products["papers"]
    cart = Cart()
    cart.add(pod, 3)
    cart.add(papers, 1)

    reservation = await place_reservation(test_db, cart, details(), notify=notifier, today=TODAY)

    assert reservation.status == ReservationStatus.PENDING
    assert reservation.confirmation_number.startswith("PCV-")
    assert reservation.subtotal == Decimal("70.00")
    assert reservation.tax_amount == Decimal("3.15")
    assert reservation.total_price == Decimal("73.15")
    assert reservation.total_price == reservation.subtotal + reservation.tax_amount
    assert reservation.item_count == 4

    result = await test_db.execute(
        select(ReservationItem).where(ReservationItem.reservation_id == reservation.id).order_by(ReservationItem.id)
    )
    items = result.scalars().all()
    assert [(item.product_name, item.quantity) for item in items] == [("Pod Kit", 3), ("Rolling Papers", 1)]
    assert items[0].unit_price == Decimal("15.00")
    assert items[0].tax_amount == Decimal("3.15")
    assert items[1].tax_amount == Decimal("0.00")

    # Stock reserved
    assert (await test_db.get(Product, pod.id, populate_existing=True)).stock == 7
    assert (await test_db.get(Product, papers.id, populate_existing=True)).stock == 4

    # Customer created with normalized e-mail and stats
    customer = await test_db.get(Customer, reservation.customer_id)
    assert customer.email == "jane@example.com"
    assert customer.total_reservations == 1
    assert customer.total_spent == Decimal("0.00")

    assert cart.is_empty()
    assert notifications == [(NotificationKind.RECEIVED, reservation.id)]


@pytest.mark.asyncio
async def test_untracked_product_keeps_stock(test_db, test_products):
    lighter = test_products["lighter"]
    cart = Cart()
    cart.add(lighter, 4)

    await place_reservation(test_db, cart, details(), today=TODAY)

    assert (await test_db.get(Product, lighter.id, populate_existing=True)).stock == 0


@pytest.mark.asyncio
async def test_stock_shortage_rolls_back_everything(test_db, test_products, notifier, notifications):
    """One short line fails the whole checkout and leaves stock untouched"""
    pod_id = test_products["pod"].id
    limited_id = test_products["limited"].id

    cart = Cart()
    cart.add(test_products["pod"], 2)
    cart.add(test_products["limited"], 5)

    # Someone else bought most of the limited stock after it was carted
    test_products["limited"].stock = 2
    await test_db.commit()

    with pytest.raises(StockShortageError) as exc_info:
        await place_reservation(test_db, cart, details(), notify=notifier, today=TODAY)

    assert "Limited Edition" in exc_info.value.message
    assert await count(test_db, Reservation) == 0
    assert await count(test_db, ReservationItem) == 0
    assert await count(test_db, Customer) == 0
    assert (await test_db.get(Product, pod_id, populate_existing=True)).stock == 10
    assert (await test_db.get(Product, limited_id, populate_existing=True)).stock == 2
    assert cart.as_dict() == {pod_id: 2, limited_id: 5}
    assert notifications == []


@pytest.mark.asyncio
async def test_empty_cart_is_rejected(test_db):
    with pytest.raises(EmptyCartError):
        await place_reservation(test_db, Cart(), details(), today=TODAY)


@pytest.mark.asyncio
async def test_underage_customer_is_rejected(test_db, test_products):
    pod_id = test_products["pod"].id
    cart = Cart()
    cart.add(test_products["pod"], 1)

    with pytest.raises(UnderageError):
        await place_reservation(test_db, cart, details(dob=date(2010, 1, 1)), today=TODAY)

    assert await count(test_db, Reservation) == 0
    assert (await test_db.get(Product, pod_id, populate_existing=True)).stock == 10


@pytest.mark.asyncio
async def test_cart_with_only_deleted_products(test_db, test_products):
    cart = Cart({999: 1})

    with pytest.raises(EmptyCartError):
        await place_reservation(test_db, cart, details(), today=TODAY)

    assert await count(test_db, Reservation) == 0


@pytest.mark.asyncio
async def test_returning_customer_is_reused(test_db, test_products, test_customer):
    customer_id = test_customer.id

    for _ in range(2):
        cart = Cart()
        cart.add(test_products["juice"], 1)
        await place_reservation(test_db, cart, details(email="JANE@example.com "), today=TODAY)

    assert await count(test_db, Customer) == 1
    customer = await test_db.get(Customer, customer_id, populate_existing=True)
    assert customer.total_reservations == 2
    assert customer.dob == date(1990, 5, 1)


@pytest.mark.asyncio
async def test_confirmation_codes_are_unique(test_db, test_products):
    codes = set()
    for _ in range(5):
        cart = Cart()
        cart.add(test_products["lighter"], 1)
        reservation = await place_reservation(test_db, cart, details(), today=TODAY)
        codes.add(reservation.confirmation_number)

    assert len(codes) == 5


@pytest.mark.asyncio
async def test_generate_code_skips_codes_in_use(test_db, test_products, monkeypatch):
    cart = Cart()
    cart.add(test_products["lighter"], 1)
    existing = await place_reservation(test_db, cart, details(), today=TODAY)

    drawn = iter([existing.confirmation_number, "PCV-NEW001"])
    monkeypatch.setattr(
        "storefront.services.checkout.random_confirmation_code", lambda prefix=None: next(drawn)
    )

    assert await generate_confirmation_code(test_db) == "PCV-NEW001"


@pytest.mark.asyncio
async def test_items_keep_checkout_prices(test_db, test_products):
    """Later catalog edits never change what was reserved"""
    pod_id = test_products["pod"].id
    cart = Cart()
    cart.add(test_products["pod"], 2)
    reservation = await place_reservation(test_db, cart, details(), today=TODAY)
    reservation_id = reservation.id

    pod = await test_db.get(Product, pod_id)
    pod.price = Decimal("99.00")
    pod.is_taxable = False
    pod.name = "Pod Kit Renamed"
    await test_db.commit()

    result = await test_db.execute(
        select(ReservationItem)
        .where(ReservationItem.reservation_id == reservation_id)
        .execution_options(populate_existing=True)
    )
    item = result.scalar_one()
    assert item.unit_price == Decimal("15.00")
    assert item.tax_rate == Decimal("0.0700")
    assert item.tax_amount == Decimal("2.10")
    assert item.total_price == Decimal("32.10")
    assert item.product_name == "Pod Kit"
    assert item.product_sku == "01001"

    reservation = await test_db.get(Reservation, reservation_id, populate_existing=True)
    assert reservation.subtotal == Decimal("30.00")
    assert reservation.total_price == Decimal("32.10")


def test_guest_checkout_requires_name_and_email():
    with pytest.raises(ValidationFailed) as exc_info:
        checkout_details(phone="555-0100", name="Jane Doe", dob=date(1990, 5, 1))
    assert exc_info.value.field == "customer_email"


@pytest.mark.asyncio
async def test_account_holder_uses_profile(test_db, test_products, test_customer):
    cart = Cart()
    cart.add(test_products["juice"], 1)
    account_details = checkout_details(
        phone="555-0199", name="Someone Else", email="else@example.com", customer=test_customer
    )

    reservation = await place_reservation(test_db, cart, account_details, today=TODAY)

    assert reservation.customer_id == test_customer.id
    assert await count(test_db, Customer) == 1
    customer = await test_db.get(Customer, test_customer.id, populate_existing=True)
    assert customer.phone == "555-0199"
    assert customer.dob is None


@pytest.mark.asyncio
async def test_account_holder_profile_dob_is_still_checked(test_db, test_products, test_customer):
    test_customer.dob = date(2010, 1, 1)
    await test_db.commit()
    cart = Cart()
    cart.add(test_products["juice"], 1)

    with pytest.raises(UnderageError):
        await place_reservation(test_db, cart, checkout_details(phone="555-0100", customer=test_customer), today=TODAY)
