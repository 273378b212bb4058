# app/routers/products.py
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
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductEnvelope, ProductRead
from app.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

settings = get_settings()
repo = ProductRepository()


def get_product_service(
    blob_store: BlobStore = Depends(get_blob_store),
) -> ProductService:
    return ProductService(repo, blob_store)


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    List all products, newest first.
    """
    return service.list_all(session)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: str,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    return service.get(session, product_id)


@router.post(
    "",
    response_model=ProductEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    name: str | None = Form(None),
    price: str | None = Form(None),
    category: str | None = Form(None),
    description: str | None = Form(None),
    rating: str | None = Form(None),
    colors: str | None = Form(None),
    available_quantity: str | None = Form(None),
    stock: str | None = Form(None),
    sold: str | None = Form(None),
    offer_ends: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Create a product from a multipart form.

    - `image` is optional; JPEG, PNG or GIF up to MAX_UPLOAD_BYTES.
    - `colors` may be comma-separated or a JSON array.
    - `stock` and `available_quantity` are aliases.
    """
    upload = read_image_upload(image, settings.MAX_UPLOAD_BYTES)
    fields = present_fields(
        name=name,
        price=price,
        category=category,
        description=description,
        rating=rating,
        colors=colors,
        available_quantity=available_quantity,
        stock=stock,
        sold=sold,
        offer_ends=offer_ends,
    )
    product = service.create(session, fields, upload)
    return ProductEnvelope(message="Product added successfully", product=product)


@router.put("/{product_id}", response_model=ProductEnvelope)
def update_product(
    product_id: str,
    name: str | None = Form(None),
    price: str | None = Form(None),
    category: str | None = Form(None),
    description: str | None = Form(None),
    rating: str | None = Form(None),
    colors: str | None = Form(None),
    available_quantity: str | None = Form(None),
    stock: str | None = Form(None),
    sold: str | None = Form(None),
    offer_ends: str | None = Form(None),
    image: UploadFile | None = File(None),
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
):
    """
    Partially update a product.

    - Only the fields sent are changed.
    - A new `image` replaces the old one; the old file is removed.
    """
    upload = read_image_upload(image, settings.MAX_UPLOAD_BYTES)
    fields = present_fields(
        name=name,
        price=price,
        category=category,
        description=description,
        rating=rating,
        colors=colors,
        available_quantity=available_quantity,
        stock=stock,
        sold=sold,
        offer_ends=offer_ends,
    )
    product = service.update(session, product_id, fields, upload)
    return ProductEnvelope(message="Product updated successfully", product=product)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    session: Session = Depends(get_session),
    service: ProductService = Depends(get_product_service),
) -> dict[str, str]:
    """
    Delete a product and, best-effort, its image.
    """
    service.delete(session, product_id)
    return {"message": "Product deleted successfully"}
