"""Reservation schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, EmailStr, Field

from storefront.models.reservation import CancellationReason, ReservationStatus


class CheckoutRequest(BaseModel):
    """Checkout form"""
    # Required for guests; signed-in customers use their profile
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: str = Field(..., max_length=20)
    customer_dob: Optional[date] = None
    is_subscribed: bool = False
    # Honeypot, hidden from humans
    website: Optional[str] = None


class ReservationItemResponse(BaseModel):
    """Reservation line"""
    id: int
    product_id: Optional[int]
    product_name: str
    product_sku: Optional[str]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_price: Decimal

    class Config:
        from_attributes = True


class CustomerSummary(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: int
    confirmation_number: str
    status: ReservationStatus
    status_label: str
    status_color: str
    subtotal: Decimal
    tax_amount: Decimal
    total_price: Decimal
    item_count: int
    notes: Optional[str]
    ready_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    cancellation_reason: Optional[CancellationReason]
    created_at: datetime
    items: List[ReservationItemResponse] = []

    class Config:
        from_attributes = True


class ReservationDetailResponse(ReservationResponse):
    """Reservation with customer"""
    customer: Optional[CustomerSummary] = None


class ReservationSummary(BaseModel):
    """Reservation row in lists"""
    id: int
    confirmation_number: str
    status: ReservationStatus
    status_label: str
    total_price: Decimal
    item_count: int
    created_at: datetime

    class Config:
        from_attributes = True


class AdminReservationSummary(ReservationSummary):
    customer: Optional[CustomerSummary] = None


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[AdminReservationSummary]
    total: int
    page: int
    page_size: int
    status_counts: Dict[str, int] = {}


class AdminReservationDetail(BaseModel):
    reservation: ReservationDetailResponse
    customer_history: List[ReservationSummary]


class StatusUpdate(BaseModel):
    """Status change request"""
    status: ReservationStatus
    notes: Optional[str] = None


class StatusUpdateResponse(BaseModel):
    message: str
    changed: bool
    reservation: ReservationDetailResponse
