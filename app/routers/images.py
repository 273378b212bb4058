# app/routers/images.py
from fastapi import APIRouter, Depends, Response

from app.core.storage import BlobStore, get_blob_store

router = APIRouter(prefix="/images", tags=["Images"])


@router.get("/{ref:path}")
def get_image(
    ref: str,
    blob_store: BlobStore = Depends(get_blob_store),
):
    """
    Stream a stored image with its stored content type.

    Works for every storage mode; 404 when the reference does not resolve.
    """
    data, content_type = blob_store.fetch(ref)
    return Response(content=data, media_type=content_type)
