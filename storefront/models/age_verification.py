"""Age gate audit model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text

from storefront.database import Base


class AgeVerification(Base):
    """Record of a visitor confirming the age requirement"""
    __tablename__ = "age_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(100))
    ip_address = Column(String(50))
    user_agent = Column(Text)
    verified = Column(Boolean, default=True)
    verified_at = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
