"""Public catalog endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.deps import http_error
from storefront.database import get_db
from storefront.exceptions import NotFoundError
from storefront.schemas.catalog import CategoryResponse, ProductListResponse, ProductResponse
from storefront.services import catalog

router = APIRouter()

PAGE_SIZE = 24


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    in_stock: bool = False,
    sort: str = "name",
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Active products, filtered and sorted"""
    products, total = await catalog.list_shop_products(
        db,
        category=category,
        search=search,
        in_stock=in_stock,
        sort=sort,
        page=page,
        page_size=PAGE_SIZE,
    )
    return ProductListResponse(items=products, total=total, page=page, page_size=PAGE_SIZE)


@router.get("/products/featured", response_model=List[ProductResponse])
async def featured_products(db: AsyncSession = Depends(get_db)):
    return await catalog.list_featured_products(db)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await catalog.get_active_product(db, product_id)
    except NotFoundError as e:
        raise http_error(e)


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """Active categories with their active product counts"""
    rows = await catalog.list_shop_categories(db)
    return [
        CategoryResponse.model_validate(category).model_copy(update={"products_count": count})
        for category, count in rows
    ]
