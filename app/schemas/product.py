# app/schemas/product.py
import json
import uuid
from datetime import datetime, timezone

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


def _split_colors(v):
    """
    Accept colors as a list, a JSON array string, or a comma-separated
    string ("red, blue"). Blank entries are dropped.
    """
    if v is None:
        return v
    if isinstance(v, str):
        raw = v.strip()
        if raw.startswith("["):
            try:
                v = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError("colors must be a JSON array or comma-separated list") from e
        else:
            v = raw.split(",")
    if not isinstance(v, list):
        raise ValueError("colors must be a list of strings")
    return [str(c).strip() for c in v if str(c).strip()]


def _assume_utc(v: datetime | None) -> datetime | None:
    """
    Treat a datetime without an offset (what a `datetime-local` input
    sends) as UTC.
    """
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class ProductCreate(SQLModel):
    """
    Payload for creating a product.

    `stock` and `available_quantity` are aliases; either may be given.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    price: float = Field(ge=0)
    category: str = Field(max_length=100)
    description: str
    rating: float = Field(default=0, ge=0, le=5)
    colors: list[str] = Field(default_factory=list)
    available_quantity: int | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    sold: int = Field(default=0, ge=0)
    offer_ends: datetime | None = None

    @field_validator("name", "category", "description")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("colors", mode="before")
    @classmethod
    def parse_colors(cls, v):
        return _split_colors(v)

    @field_validator("offer_ends", mode="before")
    @classmethod
    def blank_offer_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("offer_ends")
    @classmethod
    def offer_in_utc(cls, v: datetime | None) -> datetime | None:
        return _assume_utc(v)


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional; only the ones sent are written.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    price: float | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, max_length=100)
    description: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    colors: list[str] | None = None
    available_quantity: int | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    sold: int | None = Field(default=None, ge=0)
    # Sending an empty value clears the offer.
    offer_ends: datetime | None = None

    @field_validator("name", "category", "description")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("colors", mode="before")
    @classmethod
    def parse_colors(cls, v):
        return _split_colors(v)

    @field_validator("offer_ends", mode="before")
    @classmethod
    def blank_offer_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("offer_ends")
    @classmethod
    def offer_in_utc(cls, v: datetime | None) -> datetime | None:
        return _assume_utc(v)


class ProductRead(SQLModel):
    """
    Product representation for clients, with the image reference
    rendered as a loadable URL ("" when there is no image).
    """

    id: uuid.UUID
    name: str
    price: float
    category: str
    rating: float
    colors: list[str]
    available_quantity: int
    stock: int
    sold: int
    description: str
    image_url: str
    offer_ends: datetime | None
    date_added: datetime


class ProductEnvelope(SQLModel):
    message: str
    product: ProductRead
