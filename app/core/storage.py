# app/core/storage.py
"""
Image blob stores.

Every implementation speaks the same four operations:

    store(payload, content_type, filename=None) -> reference
    fetch(reference)                            -> (bytes, content_type)
    delete(reference)                           -> None (best-effort)
    public_url(reference | None)                -> str

Which implementation is active is a deployment setting (IMAGE_STORAGE);
services and routers only ever see a BlobStore.
"""
import logging
import mimetypes
import re
import time
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import Settings
from app.core.errors import (
    NotFoundError,
    StoreNotReadyError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from app.models.stored_image import StoredImage

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(name: str) -> str:
    content_type, _ = mimetypes.guess_type(name)
    return content_type or DEFAULT_CONTENT_TYPE


def safe_filename(filename: str | None, content_type: str) -> str:
    """
    Reduce a client-supplied filename to `[A-Za-z0-9._-]` and replace its
    extension with the one for the content type. The client's extension
    is never kept, so a stored file is always served as the image type
    it was accepted as.

    Example:
        ("My Photo (1).PNG", "image/png") -> "My-Photo-1-.png"
        ("evil.html", "image/png")        -> "evil.png"
        (None, "image/jpeg")              -> "image.jpg"
    """
    name = Path(filename or "").name
    stem = Path(name).stem if "." in name.lstrip(".") else name
    stem = re.sub(r"[^A-Za-z0-9._-]+", "-", stem).strip(".")
    if not stem:
        stem = "image"
    ext = ALLOWED_IMAGE_CONTENT_TYPES.get(content_type, "bin")
    return f"{stem}.{ext}"


class BlobStore(ABC):
    """
    Capability interface for image payload storage.
    """

    @abstractmethod
    def store(
        self,
        payload: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> str:
        """
        Persist `payload` and return a fresh reference.

        Never overwrites an existing payload.

        Raises:
            StoreUnavailableError: the backing store rejected the write.
        """

    @abstractmethod
    def fetch(self, ref: str) -> tuple[bytes, str]:
        """
        Raises:
            NotFoundError: `ref` does not resolve.
        """

    def delete(self, ref: str) -> None:
        """
        Best-effort removal: failures are logged, never raised.
        """
        try:
            self._remove(ref)
        except Exception as e:
            logger.warning(f"Failed to delete image {ref!r}: {e}")

    def public_url(self, ref: str | None) -> str:
        """
        URL the admin UI can load directly; "" when there is no image.
        """
        if not ref:
            return ""
        return self._url_for(ref)

    def close(self) -> None:
        """Release worker threads or clients held by the store."""

    @abstractmethod
    def _remove(self, ref: str) -> None:
        ...

    @abstractmethod
    def _url_for(self, ref: str) -> str:
        ...


class FilesystemBlobStore(BlobStore):
    """
    Images as files in a local directory served statically under /uploads.

    References are bare file names: "<epoch-millis>-<name stem>.<image ext>".
    """

    URL_PREFIX = "/uploads"

    def __init__(self, root: str | Path, base_url: str = ""):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, ref: str) -> Path:
        # References are single path segments; anything else cannot be ours.
        if not ref or ref != Path(ref).name or ref in (".", ".."):
            raise NotFoundError("Image not found")
        return self.root / ref

    def store(
        self,
        payload: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> str:
        name = safe_filename(filename, content_type)
        ref = f"{int(time.time() * 1000)}-{name}"
        try:
            try:
                with open(self.root / ref, "xb") as fh:
                    fh.write(payload)
            except FileExistsError:
                ref = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{name}"
                with open(self.root / ref, "xb") as fh:
                    fh.write(payload)
        except OSError as e:
            raise StoreUnavailableError(f"Failed to write image: {e}") from e
        return ref

    def fetch(self, ref: str) -> tuple[bytes, str]:
        path = self._path_for(ref)
        try:
            data = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError) as e:
            raise NotFoundError("Image not found") from e
        except OSError as e:
            raise StoreUnavailableError(f"Failed to read image: {e}") from e
        return data, guess_content_type(ref)

    def _remove(self, ref: str) -> None:
        self._path_for(ref).unlink()

    def _url_for(self, ref: str) -> str:
        return f"{self.base_url}{self.URL_PREFIX}/{ref}"


class DatabaseBlobStore(BlobStore):
    """
    Images as rows of `stored_images`, addressed by row id.

    Opens its own short sessions so a blob write is committed before
    the record that references it is written.
    """

    def __init__(self, engine, base_url: str = "", api_prefix: str = "/api"):
        self.engine = engine
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")

    @staticmethod
    def _parse_ref(ref: str) -> uuid.UUID:
        try:
            return uuid.UUID(ref)
        except (ValueError, TypeError, AttributeError) as e:
            raise NotFoundError("Image not found") from e

    def store(
        self,
        payload: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> str:
        image = StoredImage(
            content_type=content_type,
            size=len(payload),
            data=payload,
        )
        try:
            with Session(self.engine) as session:
                session.add(image)
                session.commit()
                return image.id.hex
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to store image: {e}") from e

    def fetch(self, ref: str) -> tuple[bytes, str]:
        image_id = self._parse_ref(ref)
        try:
            with Session(self.engine) as session:
                image = session.get(StoredImage, image_id)
                if image is None:
                    raise NotFoundError("Image not found")
                return image.data, image.content_type
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to read image: {e}") from e

    def _remove(self, ref: str) -> None:
        image_id = self._parse_ref(ref)
        with Session(self.engine) as session:
            image = session.get(StoredImage, image_id)
            if image is None:
                raise NotFoundError("Image not found")
            session.delete(image)
            session.commit()

    def _url_for(self, ref: str) -> str:
        return f"{self.base_url}{self.api_prefix}/images/{ref}"


class SupabaseBlobStore(BlobStore):
    """
    Images in a Supabase Storage bucket.

    References are object paths relative to the bucket:
        images/<uuid4>.<ext>
    """

    FOLDER = "images"

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def store(
        self,
        payload: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> str:
        ext = ALLOWED_IMAGE_CONTENT_TYPES.get(content_type, "bin")
        path = f"{self.FOLDER}/{uuid.uuid4()}.{ext}"
        try:
            self._bucket().upload(
                path,
                payload,
                {"content-type": content_type, "upsert": "false"},
            )
        except Exception as e:
            raise StoreUnavailableError(f"Failed to upload image: {e}") from e
        return path

    def fetch(self, ref: str) -> tuple[bytes, str]:
        if not ref.startswith(f"{self.FOLDER}/"):
            raise NotFoundError("Image not found")
        try:
            data = self._bucket().download(ref)
        except Exception as e:
            logger.info(f"Supabase download of {ref!r} failed: {e}")
            raise NotFoundError("Image not found") from e
        return data, guess_content_type(ref)

    def _remove(self, ref: str) -> None:
        # Supabase Python client expects a list of paths.
        self._bucket().remove([ref])

    def _url_for(self, ref: str) -> str:
        return self._bucket().get_public_url(ref)


class TimedBlobStore(BlobStore):
    """
    Bounds every call on the wrapped store.

    A call that exceeds `timeout` seconds raises StoreTimeoutError; the
    worker thread is left to finish on its own.
    """

    def __init__(self, inner: BlobStore, timeout: float, max_workers: int = 8):
        self.inner = inner
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="blob-store",
        )

    def _call(self, fn, *args):
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            logger.warning(f"Image storage {fn.__name__} exceeded {self.timeout:g}s")
            raise StoreTimeoutError(
                f"Image storage did not respond within {self.timeout:g}s"
            ) from e

    def store(
        self,
        payload: bytes,
        content_type: str,
        filename: str | None = None,
    ) -> str:
        try:
            return self._call(self.inner.store, payload, content_type, filename)
        except StoreTimeoutError:
            # The worker still finishes the write; nothing will reference it.
            logger.warning("Timed-out image store may leave an orphaned image")
            raise

    def fetch(self, ref: str) -> tuple[bytes, str]:
        return self._call(self.inner.fetch, ref)

    def _remove(self, ref: str) -> None:
        self._call(self.inner.delete, ref)

    def _url_for(self, ref: str) -> str:
        return self.inner.public_url(ref)

    def close(self) -> None:
        self._executor.shutdown(wait=False)
        self.inner.close()


def build_blob_store(settings: Settings, engine) -> BlobStore:
    """
    Build the blob store selected by IMAGE_STORAGE, wrapped in the timeout guard.
    """
    mode = settings.IMAGE_STORAGE
    if mode == "filesystem":
        inner: BlobStore = FilesystemBlobStore(
            settings.UPLOAD_DIR,
            base_url=settings.PUBLIC_BASE_URL,
        )
    elif mode == "database":
        inner = DatabaseBlobStore(
            engine,
            base_url=settings.PUBLIC_BASE_URL,
            api_prefix=settings.API_PREFIX,
        )
    elif mode == "supabase":
        from app.core.supabase_client import supabase_admin

        inner = SupabaseBlobStore(supabase_admin(), settings.SUPABASE_BUCKET)
    else:
        raise ValueError(f"Unknown IMAGE_STORAGE mode: {mode!r}")

    return TimedBlobStore(inner, timeout=settings.STORAGE_TIMEOUT_SECONDS)


def get_blob_store(request: Request) -> BlobStore:
    """
    FastAPI dependency returning the blob store built at startup.

    Raises:
        StoreNotReadyError(503): startup has not finished (or failed).
    """
    blob_store = getattr(request.app.state, "blob_store", None)
    if blob_store is None:
        raise StoreNotReadyError("Image storage is not ready yet")
    return blob_store
