# app/models/stored_image.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, LargeBinary
from sqlmodel import SQLModel, Field


class StoredImage(SQLModel, table=True):
    """
    Image payload kept inside the database.

    Only used when IMAGE_STORAGE=database; the row id is the image reference.
    """

    __tablename__ = "stored_images"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    content_type: str = Field(max_length=100)

    size: int = Field(ge=0)

    data: bytes = Field(sa_column=Column(LargeBinary, nullable=False))

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
