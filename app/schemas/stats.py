# app/schemas/stats.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel


class OrderStats(SQLModel):
    """
    Header numbers for the orders page.
    """
    model_config = ConfigDict(extra="forbid")

    total: int
    processing: int
    shipped: int
    delivered: int
    cancelled: int
    total_revenue: float


class OverviewCounts(SQLModel):
    model_config = ConfigDict(extra="forbid")

    orders: int
    products: int
    categories: int
    customers: int
    revenue: float


class MonthlySales(SQLModel):
    """
    Revenue per calendar month ("YYYY-MM"), cancelled orders excluded.
    """
    model_config = ConfigDict(extra="forbid")

    month: str
    total_revenue: float
    order_count: int
    customer_count: int
    avg_order_value: float


class LowStockProduct(SQLModel):
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    name: str
    stock: int


class LatestOrderSummary(SQLModel):
    """
    Lightweight info for last N orders.
    """
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    created_at: datetime
    user_id: str
    customer_name: str | None
    total_amount: float
    status: str
    item_count: int


class AdminOverview(SQLModel):
    """
    Full payload for the admin home page.
    """
    model_config = ConfigDict(extra="forbid")

    counts: OverviewCounts
    low_stock_threshold: int
    low_stock: list[LowStockProduct]
    orders_by_status: dict[str, int]
    monthly_sales: list[MonthlySales]
    recent_orders: list[LatestOrderSummary]
