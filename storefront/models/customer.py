"""Customer model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Numeric, Text

from storefront.database import Base


class Customer(Base):
    """Shop customers, keyed by e-mail across guest checkouts and accounts"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(20))
    dob = Column(Date)
    is_subscribed = Column(Boolean, default=False)
    source = Column(String(50), default="website")
    notes = Column(Text)

    # Cached statistics, see services.customers.refresh_customer_stats
    total_reservations = Column(Integer, default=0)
    total_spent = Column(Numeric(10, 2), default=0)
    last_reservation_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
