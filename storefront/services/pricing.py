"""Line-item pricing.

Amounts are ``Decimal``. The only rounding step is the tax amount
(half-up to cents); subtotal and total are exact sums so that reservation
totals match the cart totals shown to the customer.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from storefront.config import settings

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Coerce a stored or user-supplied amount to Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ItemPricing:
    """Pricing of one product at a given quantity"""
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_price: Decimal


@dataclass(frozen=True)
class OrderTotals:
    """Aggregate totals of a cart or reservation"""
    subtotal: Decimal
    tax_amount: Decimal
    total_price: Decimal
    item_count: int


def calculate_item_pricing(
    unit_price: Number,
    is_taxable: bool,
    quantity: int,
    tax_rate: Number,
) -> ItemPricing:
    """Price ``quantity`` units; non-taxable items carry a zero tax rate"""
    price = to_decimal(unit_price)
    subtotal = price * quantity
    rate = to_decimal(tax_rate) if is_taxable else Decimal("0")
    tax_amount = (subtotal * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    return ItemPricing(
        unit_price=price,
        quantity=quantity,
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total_price=subtotal + tax_amount,
    )


def price_product(product, quantity: int, tax_rate: Optional[Number] = None) -> ItemPricing:
    """Price a Product row using the configured store tax rate by default"""
    if tax_rate is None:
        tax_rate = settings.tax_rate
    return calculate_item_pricing(product.price, bool(product.is_taxable), quantity, tax_rate)


def sum_totals(lines: Iterable[ItemPricing]) -> OrderTotals:
    """Elementwise sum of line pricing, rounded to cents"""
    subtotal = ZERO
    tax_amount = ZERO
    item_count = 0
    for line in lines:
        subtotal += line.subtotal
        tax_amount += line.tax_amount
        item_count += line.quantity
    return OrderTotals(
        subtotal=round_money(subtotal),
        tax_amount=round_money(tax_amount),
        total_price=round_money(subtotal + tax_amount),
        item_count=item_count,
    )
