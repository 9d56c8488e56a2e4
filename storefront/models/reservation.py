"""Reservation models"""

import enum
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Text, Enum, Index
from sqlalchemy.orm import relationship

from storefront.database import Base


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Present in the stored enum only; expiry cancels with reason AUTO_EXPIRED.
    EXPIRED = "expired"


class CancellationReason(str, enum.Enum):
    """Why a reservation was cancelled"""
    ADMIN_CANCELLED = "admin_cancelled"
    AUTO_EXPIRED = "auto_expired"


# Display metadata, kept apart from the transition rules
STATUS_DISPLAY = {
    ReservationStatus.PENDING: {"label": "Pending", "color": "yellow"},
    ReservationStatus.READY: {"label": "Ready for Pickup", "color": "green"},
    ReservationStatus.COMPLETED: {"label": "Completed", "color": "gray"},
    ReservationStatus.CANCELLED: {"label": "Cancelled", "color": "red"},
    ReservationStatus.EXPIRED: {"label": "Expired", "color": "gray"},
}


def status_label(status: ReservationStatus) -> str:
    return STATUS_DISPLAY.get(status, {}).get("label", str(getattr(status, "value", status)).title())


def status_color(status: ReservationStatus) -> str:
    return STATUS_DISPLAY.get(status, {}).get("color", "gray")


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Reservation(Base):
    """In-store pickup reservations"""
    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_status_created_at", "status", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    confirmation_number = Column(String(20), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)

    # Totals, recalculated from items
    subtotal = Column(Numeric(10, 2), default=0)
    tax_amount = Column(Numeric(10, 2), default=0)
    total_price = Column(Numeric(10, 2), default=0)
    item_count = Column(Integer, default=0)

    status = Column(
        Enum(ReservationStatus, name="reservation_status", native_enum=False, length=20,
             values_callable=_enum_values),
        default=ReservationStatus.PENDING,
        nullable=False,
    )

    notes = Column(Text)

    # Processing
    processed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    processed_at = Column(DateTime)
    ready_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancellation_reason = Column(
        Enum(CancellationReason, name="cancellation_reason", native_enum=False, length=30,
             values_callable=_enum_values),
    )

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships (load explicitly with selectinload)
    customer = relationship("Customer")
    items = relationship(
        "ReservationItem",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationItem.id",
    )

    def recalculate_totals(self, items: Iterable["ReservationItem"]) -> None:
        """Cache reservation totals as the sum of its line items"""
        items = list(items)
        self.subtotal = sum((Decimal(item.subtotal) for item in items), Decimal("0.00"))
        self.tax_amount = sum((Decimal(item.tax_amount) for item in items), Decimal("0.00"))
        self.total_price = sum((Decimal(item.total_price) for item in items), Decimal("0.00"))
        self.item_count = sum(item.quantity for item in items)

    def pickup_deadline(self, window_hours: int = 24) -> Optional[datetime]:
        if self.ready_at is None:
            return None
        return self.ready_at + timedelta(hours=window_hours)

    def is_expired(self, now: Optional[datetime] = None, window_hours: int = 24) -> bool:
        """Ready for longer than the pickup window"""
        if self.status != ReservationStatus.READY or self.ready_at is None:
            return False
        now = now or datetime.utcnow()
        return now - self.ready_at >= timedelta(hours=window_hours)

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @property
    def status_color(self) -> str:
        return status_color(self.status)


class ReservationItem(Base):
    """Line items, priced and named as they were at checkout"""
    __tablename__ = "reservation_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    tax_rate = Column(Numeric(5, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Snapshot of the product at checkout time
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(100))

    created_at = Column(DateTime, default=datetime.utcnow)

    reservation = relationship("Reservation", back_populates="items")
