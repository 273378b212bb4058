# app/core/uploads.py
from dataclasses import dataclass

from fastapi import UploadFile

from app.core.errors import (
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from app.core.storage import ALLOWED_IMAGE_CONTENT_TYPES


@dataclass(frozen=True)
class ImageUpload:
    """
    An image accepted by the HTTP layer, ready for BlobStore.store().
    """

    payload: bytes
    content_type: str
    filename: str | None = None


def _human_size(n: int) -> str:
    if n >= 1024 * 1024:
        return f"{n / (1024 * 1024):g}MB"
    if n >= 1024:
        return f"{n / 1024:g}KB"
    return f"{n} bytes"


def read_image_upload(file: UploadFile | None, max_bytes: int) -> ImageUpload | None:
    """
    Validate an optional multipart image field before any storage call.

    - No file (or an empty file input) -> None.
    - Content type must be JPEG, PNG or GIF.
    - At most `max_bytes + 1` bytes are read, so an oversized body is
      rejected without buffering all of it.

    Raises:
        UnsupportedMediaTypeError, ValidationError, PayloadTooLargeError
    """
    if file is None:
        return None

    if not file.filename and not file.size:
        return None

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise UnsupportedMediaTypeError(
            "Unsupported image type. Allowed: JPEG, PNG, GIF."
        )

    payload = file.file.read(max_bytes + 1)
    if not payload:
        raise ValidationError("Image file is empty.")
    if len(payload) > max_bytes:
        raise PayloadTooLargeError(
            f"Image too large (max {_human_size(max_bytes)})."
        )

    return ImageUpload(
        payload=payload,
        content_type=content_type,
        filename=file.filename,
    )


def present_fields(**fields) -> dict:
    """
    Keep only the form fields the client actually sent.

    Multipart forms have no null; an omitted field arrives as None and must
    not reach a partial update as an explicit value.
    """
    return {key: value for key, value in fields.items() if value is not None}
