# app/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal, get_args

from pydantic import ConfigDict
from sqlmodel import SQLModel

OrderStatus = Literal["Processing", "Shipped", "Delivered", "Cancelled"]
ORDER_STATUSES: tuple[str, ...] = get_args(OrderStatus)


class OrderItemRead(SQLModel):
    """
    Snapshot of a product at checkout time.
    """

    product_id: str
    quantity: int
    price: float
    name: str
    image_url: str | None = None
    color: str | None = None


class ShippingInfo(SQLModel):
    # Defaults tolerate older orders stored with partial shipping data.
    name: str = ""
    address: str = ""
    contact: str = ""
    city: str = ""
    postal_code: str = ""


class GiftOptions(SQLModel):
    wrapping: bool = False
    message: str = ""


class OrderRead(SQLModel):
    id: uuid.UUID
    user_id: str
    items: list[OrderItemRead]
    shipping_info: ShippingInfo
    delivery_type: str
    gift_options: GiftOptions
    order_notes: str | None
    total_amount: float
    status: str
    created_at: datetime


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status.

    `status` is checked against ORDER_STATUSES by the service so an
    unknown value gets a readable error.
    """

    model_config = ConfigDict(extra="forbid")

    status: str


class OrderStatusRead(SQLModel):
    id: uuid.UUID
    status: str


class OrderStatusResponse(SQLModel):
    message: str
    order: OrderStatusRead
