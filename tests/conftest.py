import os
import shutil
import tempfile
import uuid

# Settings are read once at import time, so the test environment has to be
# in place before anything from `app` is imported.
TEST_UPLOAD_DIR = tempfile.mkdtemp(prefix="storefront-uploads-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IMAGE_STORAGE"] = "filesystem"
os.environ["UPLOAD_DIR"] = TEST_UPLOAD_DIR
os.environ["PUBLIC_BASE_URL"] = ""
os.environ["ENVIRONMENT"] = "local"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.core.errors import NotFoundError, StoreUnavailableError
from app.core.storage import BlobStore, FilesystemBlobStore
from app.database import engine as app_engine, get_session
from app.main import app

PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\xff"
    b"\xff?\x00\x05\xfe\x02\xfe\xa7\x35\x81\x84\x00\x00\x00\x00IEND\xaeB`\x82"
)
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x80\x00\x00\xff\xff\xff\x00\x00\x00!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"


class RecordingBlobStore(BlobStore):
    """
    In-memory blob store that remembers every call.

    `fail_deletes=True` makes removal raise, to exercise the best-effort path.
    `fail_stores=True` makes store raise StoreUnavailableError.
    """

    def __init__(self, fail_deletes: bool = False, fail_stores: bool = False):
        self.blobs: dict[str, tuple[bytes, str]] = {}
        self.stored: list[str] = []
        self.deleted: list[str] = []
        self.fail_deletes = fail_deletes
        self.fail_stores = fail_stores

    def store(self, payload, content_type, filename=None):
        if self.fail_stores:
            raise StoreUnavailableError("store is down")
        ref = uuid.uuid4().hex
        self.blobs[ref] = (payload, content_type)
        self.stored.append(ref)
        return ref

    def fetch(self, ref):
        if ref not in self.blobs:
            raise NotFoundError("Image not found")
        return self.blobs[ref]

    def _remove(self, ref):
        self.deleted.append(ref)
        if self.fail_deletes:
            raise OSError("disk on fire")
        if ref not in self.blobs:
            raise NotFoundError("Image not found")
        del self.blobs[ref]

    def _url_for(self, ref):
        return f"memory://{ref}"


@pytest.fixture
def engine():
    """
    The app's in-memory SQLite engine with fresh tables per test.
    """
    SQLModel.metadata.create_all(app_engine)
    yield app_engine
    SQLModel.metadata.drop_all(app_engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def upload_dir():
    yield TEST_UPLOAD_DIR
    for name in os.listdir(TEST_UPLOAD_DIR):
        path = os.path.join(TEST_UPLOAD_DIR, name)
        if os.path.isdir(path):
            shutil.rmtree(path)
        else:
            os.remove(path)


@pytest.fixture
def fs_store(upload_dir):
    return FilesystemBlobStore(upload_dir)


@pytest.fixture
def recording_store():
    return RecordingBlobStore()


@pytest.fixture
def make_recording_store():
    return RecordingBlobStore


@pytest.fixture
def client(engine, fs_store):
    """
    TestClient without lifespan: tables come from the `engine` fixture and
    the blob store is published on app.state by hand.
    """

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.state.blob_store = fs_store

    yield TestClient(app)

    app.dependency_overrides.clear()
    app.state.blob_store = None


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def gif_bytes():
    return GIF_BYTES
