"""Checkout and confirmation endpoints"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import get_optional_customer
from storefront.api.cart import cart_response
from storefront.api.deps import client_ip, get_cart, get_notifier, get_redis, http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.customer import Customer
from storefront.schemas.cart import CartResponse
from storefront.schemas.reservation import CheckoutRequest, ReservationDetailResponse
from storefront.services.cart import Cart, summarize_cart
from storefront.services.checkout import (
    check_honeypot,
    checkout_details,
    get_reservation_by_code,
    place_reservation,
)
from storefront.services.notifications import Notifier
from storefront.services.rate_limit import CheckoutRateLimiter

router = APIRouter()
logger = structlog.get_logger()


@router.get("/checkout", response_model=CartResponse)
async def checkout_summary(
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    """Cart totals shown on the checkout page"""
    if cart.is_empty():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Your cart is empty.")
    return cart_response(await summarize_cart(db, cart))


@router.post("/checkout", response_model=ReservationDetailResponse, status_code=201)
async def checkout(
    data: CheckoutRequest,
    request: Request,
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
    notify: Notifier = Depends(get_notifier),
    customer: Optional[Customer] = Depends(get_optional_customer),
):
    """Place a pickup reservation for the cart"""
    ip = client_ip(request)
    limiter = CheckoutRateLimiter(redis)

    try:
        check_honeypot(data.website)
    except StorefrontError as e:
        logger.warning("Honeypot field filled", ip_address=ip)
        raise http_error(e)

    try:
        details = checkout_details(
            phone=data.customer_phone,
            name=data.customer_name,
            email=data.customer_email,
            dob=data.customer_dob,
            is_subscribed=data.is_subscribed,
            customer=customer,
        )
        await limiter.acquire(ip)
    except StorefrontError as e:
        raise http_error(e)

    try:
        reservation = await place_reservation(db, cart, details, notify=notify)
    except StorefrontError as e:
        await limiter.release(ip)
        raise http_error(e)
    except Exception:
        await limiter.release(ip)
        raise

    cart.save(request.session)
    return await get_reservation_by_code(db, reservation.confirmation_number)


@router.get("/confirmation/{confirmation_number}", response_model=ReservationDetailResponse)
async def confirmation(
    confirmation_number: str,
    db: AsyncSession = Depends(get_db),
):
    """Reservation looked up by its confirmation code"""
    try:
        return await get_reservation_by_code(db, confirmation_number)
    except StorefrontError as e:
        raise http_error(e)
