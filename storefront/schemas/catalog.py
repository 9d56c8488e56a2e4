"""Product and category schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """Create category request"""
    code: str = Field(..., max_length=10)
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    """Update category request"""
    code: Optional[str] = Field(None, max_length=10)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryOrder(BaseModel):
    id: int
    sort_order: int


class CategoryReorder(BaseModel):
    """Reorder categories request"""
    categories: List[CategoryOrder]


class CategoryResponse(BaseModel):
    """Category response"""
    id: int
    code: str
    name: str
    slug: str
    description: Optional[str]
    image: Optional[str]
    sort_order: int
    is_active: bool
    products_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    """Paginated category list"""
    items: List[CategoryResponse]
    total: int
    page: int
    page_size: int


class ProductCreate(BaseModel):
    """Create product request"""
    sku: str = Field(..., max_length=100)
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=100)
    price: Decimal = Field(..., ge=0, decimal_places=2)
    is_taxable: bool = True
    track_inventory: bool = True
    stock: int = Field(0, ge=0)
    category_id: Optional[int] = None
    is_active: bool = True
    is_featured: bool = False
    age_restricted: bool = True
    image: Optional[str] = None


class ProductUpdate(BaseModel):
    """Update product request"""
    sku: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=100)
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_taxable: Optional[bool] = None
    track_inventory: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    age_restricted: Optional[bool] = None
    image: Optional[str] = None


class StockUpdate(BaseModel):
    """Set stock request"""
    stock: int = Field(..., ge=0)


class ProductResponse(BaseModel):
    """Product response"""
    id: int
    external_id: Optional[str]
    sku: str
    name: str
    description: Optional[str]
    brand: Optional[str]
    price: Decimal
    formatted_price: str
    is_taxable: bool
    track_inventory: bool
    stock: int
    in_stock: bool
    category_id: Optional[int]
    is_active: bool
    is_featured: bool
    age_restricted: bool
    image: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    """Paginated product list"""
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int


class ProductStats(BaseModel):
    total: int
    active: int
    featured: int
    low_stock: int
    out_of_stock: int


class AdminProductListResponse(ProductListResponse):
    """Back office product list with stock stats"""
    stats: ProductStats


class ImportResponse(BaseModel):
    """CSV import outcome"""
    message: str
    created: int
    updated: int
    skipped: int
    errors: List[str] = []
