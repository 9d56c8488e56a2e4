"""Back office category endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import require_admin
from storefront.api.deps import http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.user import User
from storefront.schemas.catalog import (
    CategoryCreate,
    CategoryListResponse,
    CategoryReorder,
    CategoryResponse,
    CategoryUpdate,
)
from storefront.services import catalog

router = APIRouter()


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await catalog.list_admin_categories(
        db, search=search, status=status, page=page, page_size=page_size
    )
    items = [
        CategoryResponse.model_validate(category).model_copy(update={"products_count": count})
        for category, count in rows
    ]
    return CategoryListResponse(items=items, total=total, page=page, page_size=page_size)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a category; its slug is derived from the name"""
    values = data.model_dump()
    if values["sort_order"] is None:
        values["sort_order"] = await catalog.next_sort_order(db)
    try:
        return await catalog.create_category(db, values)
    except StorefrontError as e:
        raise http_error(e)


@router.post("/reorder")
async def reorder_categories(
    data: CategoryReorder,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await catalog.reorder_categories(db, [(item.id, item.sort_order) for item in data.categories])
    return {"message": "Categories reordered successfully."}


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        category = await catalog.get_category(db, category_id)
        return await catalog.update_category(db, category, data.model_dump(exclude_unset=True))
    except StorefrontError as e:
        raise http_error(e)


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete a category that has no products"""
    try:
        category = await catalog.get_category(db, category_id)
        await catalog.delete_category(db, category)
    except StorefrontError as e:
        raise http_error(e)
    return {"message": "Category deleted successfully."}
