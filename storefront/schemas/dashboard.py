"""Back office dashboard schemas"""

from decimal import Decimal
from typing import List, Dict
from pydantic import BaseModel

from storefront.schemas.reservation import AdminReservationSummary


class PeriodStats(BaseModel):
    total_reservations: int
    completed_reservations: int
    pending_reservations: int
    total_revenue: Decimal
    total_items_sold: int
    average_order_value: Decimal


class DailyRevenue(BaseModel):
    date: str
    revenue: Decimal


class QuickStats(BaseModel):
    total_customers: int
    new_customers_this_month: int
    low_stock_products: int


class DashboardResponse(BaseModel):
    """Dashboard response"""
    period: str
    period_label: str
    stats: PeriodStats
    status_counts: Dict[str, int]
    daily_revenue: List[DailyRevenue]
    quick_stats: QuickStats
    recent_reservations: List[AdminReservationSummary]
