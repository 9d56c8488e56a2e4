"""Customer schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field

from storefront.schemas.reservation import ReservationSummary


class CustomerResponse(BaseModel):
    """Customer response"""
    id: int
    email: str
    name: str
    phone: Optional[str]
    dob: Optional[date]
    is_subscribed: bool
    source: Optional[str]
    notes: Optional[str]
    total_reservations: int
    total_spent: Decimal
    last_reservation_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    """Paginated customer list"""
    items: List[CustomerResponse]
    total: int
    page: int
    page_size: int
    total_customers: int
    subscribed_customers: int


class CustomerDetail(BaseModel):
    customer: CustomerResponse
    reservations: List[ReservationSummary]


class CustomerUpdate(BaseModel):
    """Back office customer update"""
    notes: Optional[str] = None
    is_subscribed: Optional[bool] = None


class ProfileUpdate(BaseModel):
    """Customer profile update"""
    name: str = Field(..., max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    is_subscribed: bool = False
    dob: Optional[date] = None


class AccountDashboard(BaseModel):
    customer: Optional[CustomerResponse]
    recent_orders: List[ReservationSummary]
    total_orders: int
    total_spent: Decimal
    pending_orders: int


class OrderListResponse(BaseModel):
    items: List[ReservationSummary]
    total: int
    page: int
    page_size: int
