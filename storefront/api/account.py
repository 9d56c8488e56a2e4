"""Customer account endpoints"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import get_current_customer, issue_tokens, require_customer
from storefront.api.deps import get_cart, http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.customer import Customer
from storefront.models.user import User
from storefront.schemas.auth import LoginRequest, PasswordChange, RegisterRequest, Token
from storefront.schemas.customer import (
    AccountDashboard,
    CustomerResponse,
    OrderListResponse,
    ProfileUpdate,
)
from storefront.schemas.reservation import ReservationResponse
from storefront.services import accounts
from storefront.services.cart import Cart

router = APIRouter()


def _passwords_match(password: str, confirmation: str) -> None:
    if password != confirmation:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "The password confirmation does not match.",
                "errors": {"password": ["The password confirmation does not match."]},
            },
        )


@router.post("/register", response_model=Token, status_code=201)
async def register(data: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create a customer login and sign it in"""
    _passwords_match(data.password, data.password_confirmation)
    try:
        user = await accounts.register_customer(
            db, name=data.name, email=data.email, password=data.password, phone=data.phone
        )
    except StorefrontError as e:
        raise http_error(e)
    return await issue_tokens(db, user)


@router.post("/login", response_model=Token)
async def login(data: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Customer login; back office accounts are sent to their own login"""
    user = await accounts.get_user_by_email(db, data.email)
    if user is not None and user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please use the admin login page.",
        )

    user = await accounts.authenticate(db, data.email, data.password)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="The provided credentials do not match our records.",
        )

    if user.customer_id is None:
        await accounts.link_or_create_customer(db, user)
    user.last_login = datetime.utcnow()
    return await issue_tokens(db, user)


@router.get("", response_model=AccountDashboard)
async def dashboard(
    customer: Optional[Customer] = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    """Recent orders and totals"""
    summary = await accounts.account_summary(db, customer)
    return AccountDashboard(customer=customer, **summary)


@router.get("/profile", response_model=Optional[CustomerResponse])
async def get_profile(customer: Optional[Customer] = Depends(get_current_customer)):
    return customer


@router.put("/profile", response_model=Optional[CustomerResponse])
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await accounts.update_profile(
            db,
            current_user,
            name=data.name,
            email=data.email,
            phone=data.phone,
            is_subscribed=data.is_subscribed,
            dob=data.dob,
        )
    except StorefrontError as e:
        raise http_error(e)


@router.put("/password")
async def update_password(
    data: PasswordChange,
    current_user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    _passwords_match(data.password, data.password_confirmation)
    try:
        await accounts.change_password(db, current_user, data.current_password, data.password)
    except StorefrontError as e:
        raise http_error(e)
    return {"message": "Password updated successfully."}


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    customer: Optional[Customer] = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    """Order history, newest first"""
    page_size = 10
    orders, total = await accounts.list_orders(db, customer, page=page, page_size=page_size)
    return OrderListResponse(items=orders, total=total, page=page, page_size=page_size)


@router.get("/orders/{reservation_id}", response_model=ReservationResponse)
async def get_order(
    reservation_id: int,
    customer: Optional[Customer] = Depends(get_current_customer),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await accounts.get_owned_order(db, customer, reservation_id)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/orders/{reservation_id}/reorder")
async def reorder(
    reservation_id: int,
    request: Request,
    customer: Optional[Customer] = Depends(get_current_customer),
    cart: Cart = Depends(get_cart),
    db: AsyncSession = Depends(get_db),
):
    """Put a past order's items back in the cart"""
    try:
        reservation = await accounts.get_owned_order(db, customer, reservation_id)
    except StorefrontError as e:
        raise http_error(e)

    outcome = await accounts.reorder(db, cart, reservation)
    cart.save(request.session)
    return {
        "message": outcome.message,
        "added": outcome.added,
        "unavailable": outcome.unavailable,
        "cart_count": cart.count,
    }
