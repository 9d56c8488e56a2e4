"""Back office product endpoints"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import require_admin
from storefront.api.deps import http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.user import User
from storefront.schemas.catalog import (
    AdminProductListResponse,
    ImportResponse,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StockUpdate,
)
from storefront.services import catalog
from storefront.services.imports import TEMPLATE_CSV, import_products_csv

router = APIRouter()
logger = structlog.get_logger()

MAX_IMPORT_BYTES = 10 * 1024 * 1024


@router.get("", response_model=AdminProductListResponse)
async def list_products(
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List products with stock stats"""
    products, total = await catalog.list_admin_products(
        db, search=search, category_id=category_id, status=status, page=page, page_size=page_size
    )
    return AdminProductListResponse(
        items=products,
        total=total,
        page=page,
        page_size=page_size,
        stats=await catalog.product_stats(db),
    )


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        product = await catalog.create_product(db, data.model_dump())
    except StorefrontError as e:
        raise http_error(e)
    logger.info("Product created", product_id=product.id, sku=product.sku, user_id=current_user.id)
    return product


@router.get("/import/template")
async def download_template(current_user: User = Depends(require_admin)):
    """Example CSV for the product import"""
    return Response(
        content=TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="template.csv"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_products(
    file: UploadFile = File(...),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create or update products from a POS CSV export"""
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="The file must be a CSV file.")
    content = await file.read()
    if len(content) > MAX_IMPORT_BYTES:
        raise HTTPException(status_code=422, detail="The file may not be greater than 10MB.")

    try:
        report = await import_products_csv(db, content)
    except UnicodeDecodeError:
        raise HTTPException(status_code=422, detail="The file must be UTF-8 encoded.")

    return ImportResponse(
        message=report.message,
        created=report.created,
        updated=report.updated,
        skipped=report.skipped,
        errors=report.errors,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await catalog.get_product(db, product_id)
    except StorefrontError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        product = await catalog.get_product(db, product_id)
        return await catalog.update_product(db, product, data.model_dump(exclude_unset=True))
    except StorefrontError as e:
        raise http_error(e)


@router.put("/{product_id}/stock", response_model=ProductResponse)
async def set_stock(
    product_id: int,
    data: StockUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        product = await catalog.get_product(db, product_id)
    except StorefrontError as e:
        raise http_error(e)
    product = await catalog.set_product_stock(db, product, data.stock)
    logger.info("Stock set", product_id=product.id, stock=product.stock, user_id=current_user.id)
    return product


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        product = await catalog.get_product(db, product_id)
    except StorefrontError as e:
        raise http_error(e)
    await catalog.delete_product(db, product)
    logger.info("Product deleted", product_id=product_id, user_id=current_user.id)
