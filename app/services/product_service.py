# app/services/product_service.py
from typing import Any

from sqlmodel import Session

from app.core.errors import ValidationError
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate
from app.services.catalog_service import CatalogService


def mirror_stock(values: dict[str, Any]) -> dict[str, Any]:
    """
    Keep `stock` and `available_quantity` equal.

    Whichever alias was supplied is copied into the other. Supplying both
    with different values is rejected; supplying neither leaves both out
    so the column defaults apply.
    """
    values = dict(values)
    stock = values.pop("stock", None)
    available = values.pop("available_quantity", None)

    if stock is not None and available is not None and stock != available:
        raise ValidationError(
            "stock and available_quantity must be equal when both are given"
        )

    quantity = stock if stock is not None else available
    if quantity is not None:
        values["stock"] = quantity
        values["available_quantity"] = quantity
    return values


class ProductService(CatalogService[Product, ProductRead]):
    """
    Business logic for products.

    Responsibilities:
      - field validation (via ProductCreate / ProductUpdate)
      - stock alias mirroring
      - image upload/replace/delete orchestration (CatalogService)
    """

    entity_name = "Product"
    create_schema = ProductCreate
    update_schema = ProductUpdate
    read_schema = ProductRead
    nullable_fields = frozenset({"offer_ends"})

    def _prepare_create(self, session: Session, values: dict[str, Any]) -> dict[str, Any]:
        values = mirror_stock(values)
        if values.get("offer_ends") is None:
            values.pop("offer_ends", None)
        return values

    def _prepare_update(
        self,
        session: Session,
        record: Product,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        return mirror_stock(changes)
