# app/services/category_service.py
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.errors import DuplicateNameError
from app.models.category import Category
from app.repositories.category_repo import CategoryRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.category import (
    CategoryConsistencyReport,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
)
from app.services.catalog_service import CatalogService


class CategoryService(CatalogService[Category, CategoryRead]):
    """
    Business logic for categories.

    Names are unique after trimming. The check runs before the image is
    stored; the unique index on `categories.name` catches the race between
    two concurrent creates and is reported the same way.
    """

    entity_name = "Category"
    create_schema = CategoryCreate
    update_schema = CategoryUpdate
    read_schema = CategoryRead

    def _duplicate(self, name: str) -> DuplicateNameError:
        return DuplicateNameError(f"Category '{name}' already exists")

    def _integrity_error(self, exc: IntegrityError) -> Exception:
        return DuplicateNameError("Category name already exists")

    def _prepare_create(self, session: Session, values: dict[str, Any]) -> dict[str, Any]:
        if self.repo.get_by_name(session, values["name"]) is not None:
            raise self._duplicate(values["name"])
        return values

    def _prepare_update(
        self,
        session: Session,
        record: Category,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        name = changes.get("name")
        if name is not None and name != record.name:
            existing = self.repo.get_by_name(session, name)
            if existing is not None and existing.id != record.id:
                raise self._duplicate(name)
        return changes


def check_category_consistency(
    session: Session,
    category_repo: CategoryRepository,
    product_repo: ProductRepository,
) -> CategoryConsistencyReport:
    """
    Report product category strings with no matching Category name.

    Product.category is a denormalized string, so deleting or renaming a
    category can leave products pointing at nothing. Nothing is changed.
    """
    category_names = sorted(category_repo.list_names(session))
    product_categories = product_repo.distinct_categories(session)
    known = set(category_names)
    orphaned = [c for c in product_categories if c not in known]
    return CategoryConsistencyReport(
        category_names=category_names,
        product_categories=product_categories,
        orphaned=orphaned,
    )
