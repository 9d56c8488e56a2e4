"""Pydantic schemas for request/response validation"""

from storefront.schemas.auth import (
    Token,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    PasswordChange,
    UserResponse,
)
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ImportResponse,
)
from storefront.schemas.cart import CartAdd, CartUpdate, CartResponse
from storefront.schemas.reservation import (
    CheckoutRequest,
    ReservationResponse,
    ReservationDetailResponse,
    StatusUpdate,
)
from storefront.schemas.customer import CustomerResponse, CustomerUpdate, ProfileUpdate
from storefront.schemas.dashboard import DashboardResponse

__all__ = [
    "Token",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "PasswordChange",
    "UserResponse",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ImportResponse",
    "CartAdd",
    "CartUpdate",
    "CartResponse",
    "CheckoutRequest",
    "ReservationResponse",
    "ReservationDetailResponse",
    "StatusUpdate",
    "CustomerResponse",
    "CustomerUpdate",
    "ProfileUpdate",
    "DashboardResponse",
]
