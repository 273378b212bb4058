# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Product catalog entry managed from the admin panel.

    Notes:
      - `category` is a plain string matched against Category.name;
        no foreign key is enforced.
      - `stock` and `available_quantity` are two names for the same
        quantity. The service layer keeps them equal.
      - `image_ref` is an opaque blob store reference, never a URL.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    price: float = Field(
        ge=0,
        description="Unit price",
    )

    category: str = Field(
        max_length=100,
        index=True,
        description="Category name (loose match, not a FK)",
    )

    rating: float = Field(
        default=0,
        ge=0,
        le=5,
    )

    colors: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    available_quantity: int = Field(default=1, ge=0)
    stock: int = Field(default=1, ge=0)

    sold: int = Field(
        default=0,
        ge=0,
        description="Units sold so far",
    )

    description: str = Field(
        description="Long description shown on the product page",
    )

    image_ref: str | None = Field(
        default=None,
        description="Blob store reference of the product image",
    )

    offer_ends: datetime | None = Field(
        default=None,
        description="End of a limited-time offer, if any",
    )

    date_added: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )
