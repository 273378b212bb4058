# app/routers/categories.py
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    UploadFile,
    status,
)
from sqlmodel import Session

from app.core.config import get_settings
from app.core.storage import BlobStore, get_blob_store
from app.core.uploads import present_fields, read_image_upload
from app.database import get_session
from app.repositories.category_repo import CategoryRepository
from app.schemas.category import CategoryEnvelope, CategoryRead
from app.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

settings = get_settings()
repo = CategoryRepository()


def get_category_service(
    blob_store: BlobStore = Depends(get_blob_store),
) -> CategoryService:
    return CategoryService(repo, blob_store)


@router.get("", response_model=list[CategoryRead])
def list_categories(
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    List all categories, newest first.
    """
    return service.list_all(session)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(
    category_id: str,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    return service.get(session, category_id)


@router.post(
    "",
    response_model=CategoryEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    name: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    Create a category. Names are unique after trimming.
    """
    upload = read_image_upload(image, settings.MAX_UPLOAD_BYTES)
    category = service.create(session, present_fields(name=name), upload)
    return CategoryEnvelope(message="Category created successfully", category=category)


@router.put("/{category_id}", response_model=CategoryEnvelope)
def update_category(
    category_id: str,
    name: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
):
    """
    Rename a category and/or replace its image.

    Products keep their category string; renaming does not cascade.
    """
    upload = read_image_upload(image, settings.MAX_UPLOAD_BYTES)
    category = service.update(session, category_id, present_fields(name=name), upload)
    return CategoryEnvelope(message="Category updated successfully", category=category)


@router.delete("/{category_id}")
def delete_category(
    category_id: str,
    session: Session = Depends(get_session),
    service: CategoryService = Depends(get_category_service),
) -> dict[str, str]:
    """
    Delete a category and, best-effort, its image. Products are untouched.
    """
    service.delete(session, category_id)
    return {"message": "Category deleted successfully"}
