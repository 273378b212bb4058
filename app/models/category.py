# app/models/category.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Product category. Names are unique after trimming.
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        unique=True,
        index=True,
    )

    image_ref: str | None = Field(default=None)

    date_added: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
