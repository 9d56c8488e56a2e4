"""Tests for line-item pricing and cart totals"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from storefront.services.pricing import calculate_item_pricing, price_product, sum_totals


def test_taxable_item_pricing():
    """$15.00 x 3 at 7% tax"""
    pricing = calculate_item_pricing(Decimal("15.00"), True, 3, Decimal("0.07"))

    assert pricing.subtotal == Decimal("45.00")
    assert pricing.tax_amount == Decimal("3.15")
    assert pricing.total_price == Decimal("48.15")
    assert pricing.tax_rate == Decimal("0.07")


def test_non_taxable_item_has_no_tax():
    pricing = calculate_item_pricing(Decimal("25.00"), False, 2, Decimal("0.07"))

    assert pricing.tax_rate == Decimal("0")
    assert pricing.tax_amount == Decimal("0")
    assert pricing.total_price == pricing.subtotal == Decimal("50.00")


def test_mixed_cart_totals():
    """2 x $10 taxable + 1 x $25 non-taxable at 6%"""
    lines = [
        calculate_item_pricing(Decimal("10.00"), True, 2, Decimal("0.06")),
        calculate_item_pricing(Decimal("25.00"), False, 1, Decimal("0.06")),
    ]
    totals = sum_totals(lines)

    assert totals.subtotal == Decimal("45.00")
    assert totals.tax_amount == Decimal("1.20")
    assert totals.total_price == Decimal("46.20")
    assert totals.item_count == 3


def test_tax_rounds_half_up_to_cents():
    # 0.35 * 0.07 = 0.0245 -> 0.02; 0.50 * 0.07 = 0.035 -> 0.04
    assert calculate_item_pricing("0.35", True, 1, "0.07").tax_amount == Decimal("0.02")
    assert calculate_item_pricing("0.50", True, 1, "0.07").tax_amount == Decimal("0.04")


@pytest.mark.parametrize("price,quantity,taxable", [
    ("19.99", 1, True),
    ("3.33", 7, True),
    ("0.01", 99, True),
    ("12.50", 4, False),
])
def test_total_is_subtotal_plus_tax(price, quantity, taxable):
    pricing = calculate_item_pricing(price, taxable, quantity, "0.07")
    assert pricing.total_price == pricing.subtotal + pricing.tax_amount


def test_price_product_uses_store_tax_rate_by_default():
    product = SimpleNamespace(price=Decimal("10.00"), is_taxable=True)

    pricing = price_product(product, 1)

    assert pricing.tax_rate == Decimal("0.07")
    assert pricing.tax_amount == Decimal("0.70")


def test_empty_totals():
    totals = sum_totals([])
    assert totals.subtotal == Decimal("0.00")
    assert totals.total_price == Decimal("0.00")
    assert totals.item_count == 0
