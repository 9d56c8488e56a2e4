"""Back office customer endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import require_admin
from storefront.api.deps import http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.user import User
from storefront.schemas.customer import CustomerDetail, CustomerListResponse, CustomerResponse, CustomerUpdate
from storefront.services import customers

router = APIRouter()


@router.get("", response_model=CustomerListResponse)
async def list_customers(
    search: Optional[str] = None,
    subscribed: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    items, total = await customers.list_customers(
        db, search=search, subscribed=subscribed, page=page, page_size=page_size
    )
    stats = await customers.customer_stats(db)
    return CustomerListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_customers=stats["total"],
        subscribed_customers=stats["subscribed"],
    )


@router.get("/export")
async def export_customers(
    subscribed_only: bool = False,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Download customers as CSV"""
    rows = await customers.customers_for_export(db, subscribed_only=subscribed_only)
    filename = f"customers-{date.today().isoformat()}.csv"
    return Response(
        content=customers.export_customers_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{customer_id}", response_model=CustomerDetail)
async def get_customer(
    customer_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Customer with their latest reservations"""
    try:
        customer = await customers.get_customer(db, customer_id)
    except StorefrontError as e:
        raise http_error(e)
    return CustomerDetail(
        customer=customer,
        reservations=await customers.latest_reservations(db, customer),
    )


@router.patch("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update notes and subscription"""
    try:
        customer = await customers.get_customer(db, customer_id)
    except StorefrontError as e:
        raise http_error(e)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    await db.commit()
    await db.refresh(customer)
    return customer
