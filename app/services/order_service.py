# app/services/order_service.py
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import NotFoundError, StoreUnavailableError, ValidationError
from app.models.order import Order
from app.repositories.order_repo import OrderRepository
from app.schemas.order import (
    ORDER_STATUSES,
    OrderRead,
    OrderStatusRead,
    OrderStatusResponse,
    OrderStatusUpdate,
)

logger = logging.getLogger(__name__)


class OrderService:
    """
    Business logic for orders on the admin side.

    Responsibilities:
      - list / read orders
      - change status, restricted to ORDER_STATUSES
    """

    def __init__(self, order_repo: OrderRepository):
        self.order_repo = order_repo

    @staticmethod
    def _parse_order_id(raw_id: str) -> uuid.UUID:
        try:
            return uuid.UUID(str(raw_id))
        except ValueError as e:
            raise ValidationError("Invalid order id") from e

    def _get_order(self, session: Session, raw_id: str) -> Order:
        order = self.order_repo.get_by_id(session, self._parse_order_id(raw_id))
        if not order:
            raise NotFoundError("Order not found")
        return order

    def list_orders(
        self,
        session: Session,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[OrderRead]:
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status. Allowed: {', '.join(ORDER_STATUSES)}"
            )
        orders = self.order_repo.list_all(session, status=status, skip=skip, limit=limit)
        return [OrderRead.model_validate(o) for o in orders]

    def get_order(self, session: Session, order_id: str) -> OrderRead:
        return OrderRead.model_validate(self._get_order(session, order_id))

    def update_status(
        self,
        session: Session,
        order_id: str,
        payload: OrderStatusUpdate,
    ) -> OrderStatusResponse:
        """
        Set the status of one order.

        Any value outside ORDER_STATUSES is rejected before the order is
        loaded for writing, so the stored status stays unchanged.
        """
        new_status = payload.status.strip()
        if new_status not in ORDER_STATUSES:
            raise ValidationError(
                f"Invalid status. Allowed: {', '.join(ORDER_STATUSES)}"
            )

        order = self._get_order(session, order_id)
        previous = order.status
        order.status = new_status

        try:
            order = self.order_repo.update(session, order)
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreUnavailableError("Failed to update order status") from e

        logger.info(f"Order {order.id} status {previous} -> {order.status}")
        return OrderStatusResponse(
            message="Order status updated successfully",
            order=OrderStatusRead(id=order.id, status=order.status),
        )
