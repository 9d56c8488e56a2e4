"""Database models"""

from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.customer import Customer
from storefront.models.reservation import (
    Reservation,
    ReservationItem,
    ReservationStatus,
    CancellationReason,
)
from storefront.models.user import User, UserRole
from storefront.models.age_verification import AgeVerification

__all__ = [
    "Category",
    "Product",
    "Customer",
    "Reservation",
    "ReservationItem",
    "ReservationStatus",
    "CancellationReason",
    "User",
    "UserRole",
    "AgeVerification",
]
