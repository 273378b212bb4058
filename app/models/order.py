# app/models/order.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    Orders are placed by the storefront; the admin panel reads them and
    moves them through the status lifecycle:
      Processing -> Shipped -> Delivered, or Cancelled.

    Line items are snapshots (product_id, quantity, price, name,
    image_url, color) taken at checkout, so they are stored as JSON
    rather than rows pointing at live products.
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: str = Field(
        index=True,
        description="Storefront customer id",
    )

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # name, address, contact, city, postal_code
    shipping_info: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    # normal | express
    delivery_type: str = Field(default="normal")

    # wrapping, message
    gift_options: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    order_notes: str | None = Field(default=None)

    total_amount: float = Field(
        ge=0,
        description="Final amount for this order",
    )

    status: str = Field(
        default="Processing",
        index=True,
        description="Order status lifecycle",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
