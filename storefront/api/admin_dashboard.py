"""Back office dashboard endpoint"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.auth import require_admin
from storefront.database import get_db
from storefront.models.user import User
from storefront.schemas.dashboard import DashboardResponse
from storefront.services.dashboard import build_dashboard

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def dashboard(
    period: str = "today",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Sales for the period, status counts and weekly revenue"""
    return await build_dashboard(db, period=period, start_date=start_date, end_date=end_date)
