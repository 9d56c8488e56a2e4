"""Cart schemas"""

from decimal import Decimal
from typing import List
from pydantic import BaseModel

from storefront.schemas.catalog import ProductResponse


class CartAdd(BaseModel):
    """Add to cart request; quantity bounds are checked by the cart"""
    product_id: int
    quantity: int = 1


class CartUpdate(BaseModel):
    """Set line quantity request; zero removes the line"""
    quantity: int


class CartLineResponse(BaseModel):
    product: ProductResponse
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total_price: Decimal


class CartResponse(BaseModel):
    """Priced cart"""
    items: List[CartLineResponse]
    subtotal: Decimal
    tax_amount: Decimal
    total_price: Decimal
    item_count: int
    message: str = ""
