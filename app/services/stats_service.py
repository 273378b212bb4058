# app/services/stats_service.py
from collections import OrderedDict

from sqlmodel import Session

from app.repositories.product_repo import ProductRepository
from app.repositories.stats_repo import StatsRepository
from app.schemas.stats import (
    AdminOverview,
    LatestOrderSummary,
    LowStockProduct,
    MonthlySales,
    OrderStats,
    OverviewCounts,
)


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository, product_repo: ProductRepository):
        self.repo = repo
        self.product_repo = product_repo

    def get_order_stats(self, session: Session) -> OrderStats:
        by_status = self.repo.orders_by_status(session)
        return OrderStats(
            total=self.repo.count_orders(session),
            processing=by_status.get("Processing", 0),
            shipped=by_status.get("Shipped", 0),
            delivered=by_status.get("Delivered", 0),
            cancelled=by_status.get("Cancelled", 0),
            total_revenue=self.repo.total_revenue(session),
        )

    def monthly_sales(self, session: Session) -> list[MonthlySales]:
        buckets: OrderedDict[str, dict] = OrderedDict()
        for created_at, amount, user_id in self.repo.order_amounts(session):
            month = created_at.strftime("%Y-%m")
            bucket = buckets.setdefault(
                month, {"revenue": 0.0, "orders": 0, "customers": set()}
            )
            bucket["revenue"] += float(amount or 0.0)
            bucket["orders"] += 1
            bucket["customers"].add(user_id)

        sales: list[MonthlySales] = []
        for month, bucket in buckets.items():
            sales.append(
                MonthlySales(
                    month=month,
                    total_revenue=round(bucket["revenue"], 2),
                    order_count=bucket["orders"],
                    customer_count=len(bucket["customers"]),
                    avg_order_value=round(bucket["revenue"] / bucket["orders"], 2),
                )
            )
        return sales

    def get_overview(
        self,
        session: Session,
        low_stock_threshold: int = 5,
        latest_n_orders: int = 5,
    ) -> AdminOverview:
        counts = OverviewCounts(
            orders=self.repo.count_orders(session),
            products=self.repo.count_products(session),
            categories=self.repo.count_categories(session),
            customers=self.repo.count_customers(session),
            revenue=self.repo.total_revenue(session),
        )

        low_stock = [
            LowStockProduct(id=p.id, name=p.name, stock=p.stock)
            for p in self.product_repo.list_low_stock(session, low_stock_threshold)
        ]

        recent_orders: list[LatestOrderSummary] = []
        for o in self.repo.latest_orders(session, limit=latest_n_orders):
            recent_orders.append(
                LatestOrderSummary(
                    id=o.id,
                    created_at=o.created_at,
                    user_id=o.user_id,
                    customer_name=(o.shipping_info or {}).get("name"),
                    total_amount=o.total_amount,
                    status=o.status,
                    item_count=len(o.items or []),
                )
            )

        return AdminOverview(
            counts=counts,
            low_stock_threshold=low_stock_threshold,
            low_stock=low_stock,
            orders_by_status=self.repo.orders_by_status(session),
            monthly_sales=self.monthly_sales(session),
            recent_orders=recent_orders,
        )
