"""Session cart and cart pricing"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.exceptions import StockShortageError, ValidationFailed
from storefront.models.product import Product
from storefront.services.pricing import ItemPricing, OrderTotals, price_product, sum_totals

SESSION_KEY = "cart"


class Cart:
    """Product id to quantity mapping carried in the visitor's session.

    The cart holds no product data; prices and availability are resolved
    against the catalog every time it is summarised.
    """

    def __init__(self, items: Optional[Mapping[int, int]] = None, max_quantity: Optional[int] = None):
        self._items: Dict[int, int] = dict(items or {})
        self.max_quantity = max_quantity or settings.max_cart_quantity

    @classmethod
    def from_session(cls, session: Mapping) -> "Cart":
        """Load from a session dict; JSON turns the integer keys into strings"""
        raw = session.get(SESSION_KEY) or {}
        items = {}
        for product_id, quantity in raw.items():
            try:
                items[int(product_id)] = int(quantity)
            except (TypeError, ValueError):
                continue
        return cls(items)

    def save(self, session: dict) -> None:
        if self._items:
            session[SESSION_KEY] = {str(k): v for k, v in self._items.items()}
        else:
            session.pop(SESSION_KEY, None)

    def _check_quantity(self, quantity, minimum: int) -> int:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationFailed("The quantity must be an integer.", field="quantity")
        if quantity < minimum or quantity > self.max_quantity:
            raise ValidationFailed(
                f"The quantity must be between {minimum} and {self.max_quantity}.",
                field="quantity",
            )
        return quantity

    def add(self, product: Product, quantity: int) -> int:
        """Add ``quantity`` units; all-or-nothing against the product's stock"""
        self._check_quantity(quantity, 1)
        if product.track_inventory and quantity > (product.stock or 0):
            raise StockShortageError()
        self._items[product.id] = self._items.get(product.id, 0) + quantity
        return self._items[product.id]

    def update(self, product_id: int, quantity: int) -> None:
        """Set an absolute quantity; zero removes the line"""
        self._check_quantity(quantity, 0)
        if quantity <= 0:
            self._items.pop(product_id, None)
        else:
            self._items[product_id] = quantity

    def remove(self, product_id: int) -> None:
        self._items.pop(product_id, None)

    def clear(self) -> None:
        self._items.clear()

    def quantity_of(self, product_id: int) -> int:
        return self._items.get(product_id, 0)

    @property
    def count(self) -> int:
        return sum(self._items.values())

    @property
    def product_ids(self) -> List[int]:
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def items(self) -> List[Tuple[int, int]]:
        return list(self._items.items())

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return iter(self.items())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id) -> bool:
        return product_id in self._items

    def as_dict(self) -> Dict[int, int]:
        return dict(self._items)


@dataclass
class CartLine:
    product: Product
    quantity: int
    pricing: ItemPricing


@dataclass
class CartSummary:
    lines: List[CartLine] = field(default_factory=list)
    totals: OrderTotals = field(
        default_factory=lambda: OrderTotals(Decimal("0.00"), Decimal("0.00"), Decimal("0.00"), 0)
    )


async def load_active_products(db: AsyncSession, product_ids: List[int]) -> Dict[int, Product]:
    if not product_ids:
        return {}
    result = await db.execute(
        select(Product).where(Product.id.in_(product_ids), Product.is_active == True)  # noqa: E712
    )
    return {product.id: product for product in result.scalars().all()}


async def summarize_cart(db: AsyncSession, cart: Cart, tax_rate=None) -> CartSummary:
    """Price the cart against active products.

    Inactive or deleted products are left out of the summary but stay in
    the cart itself.
    """
    products = await load_active_products(db, cart.product_ids)
    lines = []
    for product_id, quantity in cart:
        product = products.get(product_id)
        if product is None:
            continue
        lines.append(CartLine(product=product, quantity=quantity, pricing=price_product(product, quantity, tax_rate)))
    return CartSummary(lines=lines, totals=sum_totals(line.pricing for line in lines))
