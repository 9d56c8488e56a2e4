"""Product model"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Numeric, Text

from storefront.database import Base


class Product(Base):
    """Catalog products"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(100))  # id column of the POS spreadsheet
    sku = Column(String(100), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    brand = Column(String(100))
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_taxable = Column(Boolean, default=True)
    track_inventory = Column(Boolean, default=True)
    stock = Column(Integer, default=0)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))
    is_active = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)
    age_restricted = Column(Boolean, default=True)
    image = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def in_stock(self) -> bool:
        """Untracked products are always available"""
        return not self.track_inventory or (self.stock or 0) > 0

    @property
    def formatted_price(self) -> str:
        return f"${self.price:,.2f}"
