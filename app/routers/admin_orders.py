# app/routers/admin_orders.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.repositories.order_repo import OrderRepository
from app.schemas.order import OrderRead, OrderStatusResponse, OrderStatusUpdate
from app.services.order_service import OrderService

router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])

order_repo = OrderRepository()
service = OrderService(order_repo)


@router.get("", response_model=list[OrderRead])
def list_orders(
    status: str | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    session: Session = Depends(get_session),
):
    """
    List orders, newest first. Optional `status` filter.
    """
    return service.list_orders(session, status=status, skip=skip, limit=limit)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: str,
    session: Session = Depends(get_session),
):
    return service.get_order(session, order_id)


@router.put("/{order_id}/status", response_model=OrderStatusResponse)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Set an order's status.

    Allowed values: Processing, Shipped, Delivered, Cancelled.
    Anything else is a 400 and the order is left unchanged.
    """
    return service.update_status(session, order_id, payload)
