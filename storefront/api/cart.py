"""Session cart endpoints"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import get_cart, http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.schemas.cart import CartAdd, CartLineResponse, CartResponse, CartUpdate
from storefront.services.cart import Cart, CartSummary, summarize_cart
from storefront.services.catalog import get_active_product, get_product

router = APIRouter()


def cart_response(summary: CartSummary, message: str = "") -> CartResponse:
    return CartResponse(
        items=[
            CartLineResponse(
                product=line.product,
                quantity=line.quantity,
                unit_price=line.pricing.unit_price,
                subtotal=line.pricing.subtotal,
                tax_amount=line.pricing.tax_amount,
                total_price=line.pricing.total_price,
            )
            for line in summary.lines
        ],
        subtotal=summary.totals.subtotal,
        tax_amount=summary.totals.tax_amount,
        total_price=summary.totals.total_price,
        item_count=summary.totals.item_count,
        message=message,
    )


@router.get("", response_model=CartResponse)
async def view_cart(
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    """Cart priced against the current catalog"""
    return cart_response(await summarize_cart(db, cart))


@router.get("/count")
async def cart_count(cart: Cart = Depends(get_cart)):
    return {"count": cart.count}


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    data: CartAdd,
    request: Request,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    """Add a product; rejected whole when stock is short"""
    try:
        product = await get_active_product(db, data.product_id)
        cart.add(product, data.quantity)
    except StorefrontError as e:
        raise http_error(e)

    cart.save(request.session)
    return cart_response(await summarize_cart(db, cart), "Product added to cart!")


@router.patch("/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: int,
    data: CartUpdate,
    request: Request,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    """Set a line's quantity; zero removes it"""
    try:
        await get_product(db, product_id)
        cart.update(product_id, data.quantity)
    except StorefrontError as e:
        raise http_error(e)

    cart.save(request.session)
    return cart_response(await summarize_cart(db, cart), "Cart updated!")


@router.delete("/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: int,
    request: Request,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    cart.remove(product_id)
    cart.save(request.session)
    return cart_response(await summarize_cart(db, cart), "Item removed from cart.")


@router.delete("", response_model=CartResponse)
async def clear_cart(
    request: Request,
    cart: Cart = Depends(get_cart),
):
    cart.clear()
    cart.save(request.session)
    return cart_response(CartSummary(), "Cart cleared.")
