"""Back office reservation endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import require_admin
from storefront.api.deps import get_notifier, http_error
from storefront.database import get_db
from storefront.exceptions import StorefrontError
from storefront.models.user import User
from storefront.schemas.reservation import (
    AdminReservationDetail,
    ReservationListResponse,
    StatusUpdate,
    StatusUpdateResponse,
)
from storefront.services import reservations
from storefront.services.dashboard import status_counts
from storefront.services.notifications import Notifier

router = APIRouter()


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    status: Optional[str] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(25, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List reservations with pagination"""
    try:
        items, total = await reservations.list_reservations(
            db, status=status, on_date=on_date, search=search, page=page, page_size=page_size
        )
    except StorefrontError as e:
        raise http_error(e)
    return ReservationListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        status_counts=await status_counts(db),
    )


@router.get("/{reservation_id}", response_model=AdminReservationDetail)
async def get_reservation(
    reservation_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Reservation with the customer's other recent reservations"""
    try:
        reservation = await reservations.load_reservation(db, reservation_id)
    except StorefrontError as e:
        raise http_error(e)
    return AdminReservationDetail(
        reservation=reservation,
        customer_history=await reservations.customer_history(db, reservation),
    )


@router.patch("/{reservation_id}/status", response_model=StatusUpdateResponse)
async def update_status(
    reservation_id: int,
    data: StatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    notify: Notifier = Depends(get_notifier),
):
    """Move a reservation through its lifecycle"""
    try:
        reservation = await reservations.load_reservation(db, reservation_id)
        result = await reservations.change_status(
            db,
            reservation,
            data.status,
            actor_id=current_user.id,
            notes=data.notes,
            notify=notify,
        )
    except StorefrontError as e:
        raise http_error(e)

    if result.changed:
        message = f"Reservation status updated to {result.reservation.status_label}."
    else:
        message = "Reservation status unchanged."
    return StatusUpdateResponse(
        message=message,
        changed=result.changed,
        reservation=await reservations.load_reservation(db, reservation_id),
    )
