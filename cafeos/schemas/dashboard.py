from datetime import date, datetime

from pydantic import BaseModel


class RecentOrderOut(BaseModel):
    order_id: str
    total_amount: float
    order_date: datetime


class DashboardSummaryOut(BaseModel):
    total_revenue: float
    order_count: int
    average_order_value: float
    product_count: int
    low_stock_count: int
    recent_orders: list[RecentOrderOut]
    start_date: date | None = None
    end_date: date | None = None
