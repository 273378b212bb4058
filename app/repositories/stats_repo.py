# app/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.category import Category
from app.models.order import Order
from app.models.product import Product


class StatsRepository:
    """
    Read-only aggregated queries for the admin dashboard.
    """

    def count_orders(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Order)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_products(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Product)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_categories(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Category)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_customers(self, session: Session) -> int:
        """
        Distinct customers that placed at least one order.
        """
        stmt = select(func.count(func.distinct(Order.user_id)))
        value = session.exec(stmt).one()
        return int(value or 0)

    def total_revenue(self, session: Session) -> float:
        """
        Sum of total_amount for all non-cancelled orders.
        """
        stmt = (
            select(func.coalesce(func.sum(Order.total_amount), 0.0))
            .where(Order.status != "Cancelled")
        )
        value = session.exec(stmt).one()
        return float(value or 0.0)

    def orders_by_status(self, session: Session) -> dict[str, int]:
        stmt = select(Order.status, func.count(Order.id)).group_by(Order.status)
        return {status: int(count) for status, count in session.exec(stmt).all()}

    def order_amounts(self, session: Session) -> list[tuple[datetime, float, str]]:
        """
        (created_at, total_amount, user_id) for every non-cancelled order,
        oldest first. Month bucketing happens in the service so it stays
        portable across SQLite and Postgres.
        """
        stmt = (
            select(Order.created_at, Order.total_amount, Order.user_id)
            .where(Order.status != "Cancelled")
            .order_by(Order.created_at)
        )
        return list(session.exec(stmt).all())

    def latest_orders(
        self,
        session: Session,
        limit: int = 5,
    ) -> list[Order]:
        """
        Latest N orders by created_at (any status).
        """
        stmt = (
            select(Order)
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return list(session.exec(stmt).all())
