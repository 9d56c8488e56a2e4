"""Tests for the session cart"""

from decimal import Decimal

import pytest

from storefront.exceptions import StockShortageError, ValidationFailed
from storefront.services.cart import SESSION_KEY, Cart, summarize_cart


@pytest.mark.asyncio
async def test_add_more_than_stock_is_rejected(test_products):
    """Adding 10 of a tracked product with stock 5 leaves the cart unchanged"""
    cart = Cart()
    limited = test_products["limited"]

    with pytest.raises(StockShortageError):
        cart.add(limited, 10)

    assert cart.is_empty()
    assert cart.quantity_of(limited.id) == 0


@pytest.mark.asyncio
async def test_add_accumulates_quantity(test_products):
    cart = Cart()
    pod = test_products["pod"]

    cart.add(pod, 2)
    cart.add(pod, 3)

    assert cart.quantity_of(pod.id) == 5
    assert cart.count == 5


@pytest.mark.asyncio
async def test_untracked_product_ignores_stock(test_products):
    cart = Cart()
    lighter = test_products["lighter"]

    cart.add(lighter, 50)

    assert cart.quantity_of(lighter.id) == 50


@pytest.mark.asyncio
async def test_quantity_bounds(test_products):
    cart = Cart()
    pod = test_products["pod"]

    with pytest.raises(ValidationFailed):
        cart.add(pod, 0)
    with pytest.raises(ValidationFailed):
        cart.add(test_products["lighter"], 100)
    with pytest.raises(ValidationFailed):
        cart.update(pod.id, 100)


def test_update_to_zero_removes_line():
    cart = Cart({1: 3, 2: 1})

    cart.update(1, 0)

    assert 1 not in cart
    assert cart.items() == [(2, 1)]


def test_session_round_trip_uses_string_keys():
    session = {}
    cart = Cart({7: 2})

    cart.save(session)

    assert session[SESSION_KEY] == {"7": 2}
    assert Cart.from_session(session).as_dict() == {7: 2}


def test_saving_empty_cart_clears_session_key():
    session = {SESSION_KEY: {"7": 2}}

    Cart().save(session)

    assert SESSION_KEY not in session


@pytest.mark.asyncio
async def test_summary_totals_match_lines(test_db, test_products):
    cart = Cart()
    cart.add(test_products["pod"], 3)
    cart.add(test_products["papers"], 1)

    summary = await summarize_cart(test_db, cart)

    assert summary.totals.item_count == sum(line.quantity for line in summary.lines) == 4
    assert summary.totals.subtotal == sum(line.pricing.subtotal for line in summary.lines)
    assert summary.totals.subtotal == Decimal("70.00")
    assert summary.totals.tax_amount == Decimal("3.15")
    assert summary.totals.total_price == Decimal("73.15")


@pytest.mark.asyncio
async def test_summary_skips_inactive_products(test_db, test_products):
    retired = test_products["retired"]
    cart = Cart({test_products["pod"].id: 1, retired.id: 2})

    summary = await summarize_cart(test_db, cart)

    assert [line.product.id for line in summary.lines] == [test_products["pod"].id]
    assert retired.id in cart
