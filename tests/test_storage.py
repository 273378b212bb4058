import logging
import time

import pytest

from app.core.config import Settings
from app.core.errors import NotFoundError, StoreTimeoutError, StoreUnavailableError
from app.core.storage import (
    BlobStore,
    DatabaseBlobStore,
    FilesystemBlobStore,
    SupabaseBlobStore,
    TimedBlobStore,
    build_blob_store,
    safe_filename,
)


# ----- Filesystem -----


def test_filesystem_store_then_fetch_returns_same_bytes(fs_store, png_bytes):
    ref = fs_store.store(png_bytes, "image/png", "hero.png")

    data, content_type = fs_store.fetch(ref)

    assert data == png_bytes
    assert content_type == "image/png"
    assert ref.endswith("-hero.png")
    assert ref.split("-", 1)[0].isdigit()


def test_filesystem_store_never_overwrites(fs_store):
    first = fs_store.store(b"one", "image/png", "same.png")
    second = fs_store.store(b"two", "image/png", "same.png")

    assert first != second
    assert fs_store.fetch(first)[0] == b"one"
    assert fs_store.fetch(second)[0] == b"two"


def test_filesystem_fetch_unknown_ref_is_not_found(fs_store):
    with pytest.raises(NotFoundError):
        fs_store.fetch("123-missing.png")


@pytest.mark.parametrize("ref", ["../etc/passwd", "a/b.png", "..", ""])
def test_filesystem_rejects_refs_outside_upload_dir(fs_store, ref):
    with pytest.raises(NotFoundError):
        fs_store.fetch(ref)


def test_filesystem_delete_removes_file(fs_store):
    ref = fs_store.store(b"bytes", "image/gif", "x.gif")

    fs_store.delete(ref)

    with pytest.raises(NotFoundError):
        fs_store.fetch(ref)


def test_filesystem_delete_of_missing_file_is_logged_not_raised(fs_store, caplog):
    with caplog.at_level(logging.WARNING, logger="app.core.storage"):
        fs_store.delete("123-already-gone.png")

    assert "123-already-gone.png" in caplog.text


def test_filesystem_public_url(upload_dir):
    store = FilesystemBlobStore(upload_dir, base_url="http://localhost:5001/")

    assert store.public_url(None) == ""
    assert store.public_url("") == ""
    assert store.public_url("1-a.png") == "http://localhost:5001/uploads/1-a.png"


@pytest.mark.parametrize(
    "filename, content_type, expected",
    [
        ("My Photo (1).PNG", "image/png", "My-Photo-1-.png"),
        ("evil.html", "image/png", "evil.png"),
        ("photo.jpeg", "image/gif", "photo.gif"),
        (".hidden", "image/png", "hidden.png"),
        (None, "image/jpeg", "image.jpg"),
        ("../../evil.gif", "image/gif", "evil.gif"),
        ("noext", "image/gif", "noext.gif"),
    ],
)
def test_safe_filename(filename, content_type, expected):
    assert safe_filename(filename, content_type) == expected


# ----- Database -----


def test_database_store_roundtrip_and_delete(engine, png_bytes):
    store = DatabaseBlobStore(engine, api_prefix="/api")

    ref = store.store(png_bytes, "image/png")
    assert store.fetch(ref) == (png_bytes, "image/png")
    assert store.public_url(ref) == f"/api/images/{ref}"

    store.delete(ref)
    with pytest.raises(NotFoundError):
        store.fetch(ref)


def test_database_store_each_call_gets_fresh_reference(engine):
    store = DatabaseBlobStore(engine)

    assert store.store(b"a", "image/png") != store.store(b"a", "image/png")


@pytest.mark.parametrize("ref", ["not-a-uuid", "0" * 32])
def test_database_fetch_unknown_is_not_found(engine, ref):
    store = DatabaseBlobStore(engine)

    with pytest.raises(NotFoundError):
        store.fetch(ref)


def test_database_delete_unknown_is_swallowed(engine):
    DatabaseBlobStore(engine).delete("0" * 32)


# ----- Supabase -----


class FakeBucket:
    def __init__(self, fail_remove=False):
        self.objects = {}
        self.upload_options = []
        self.removed = []
        self.fail_remove = fail_remove

    def upload(self, path, data, options):
        if path in self.objects:
            raise RuntimeError("Duplicate")
        self.objects[path] = data
        self.upload_options.append(options)

    def download(self, path):
        if path not in self.objects:
            raise RuntimeError("Object not found")
        return self.objects[path]

    def remove(self, paths):
        if self.fail_remove:
            raise RuntimeError("network down")
        self.removed.extend(paths)
        for p in paths:
            self.objects.pop(p, None)

    def get_public_url(self, path):
        return f"https://proj.supabase.co/storage/v1/object/public/assets/{path}"


class FakeStorage:
    def __init__(self, bucket):
        self.bucket = bucket
        self.requested = []

    def from_(self, name):
        self.requested.append(name)
        return self.bucket


class FakeSupabase:
    def __init__(self, bucket):
        self.storage = FakeStorage(bucket)


def test_supabase_store_fetch_delete(png_bytes):
    bucket = FakeBucket()
    client = FakeSupabase(bucket)
    store = SupabaseBlobStore(client, "assets")

    ref = store.store(png_bytes, "image/png", "ignored.png")

    assert ref.startswith("images/") and ref.endswith(".png")
    assert bucket.upload_options[0]["upsert"] == "false"
    assert client.storage.requested[0] == "assets"
    assert store.fetch(ref) == (png_bytes, "image/png")
    assert store.public_url(ref).endswith(f"/assets/{ref}")

    store.delete(ref)
    assert bucket.removed == [ref]
    with pytest.raises(NotFoundError):
        store.fetch(ref)


def test_supabase_upload_failure_is_store_unavailable():
    class BrokenBucket(FakeBucket):
        def upload(self, path, data, options):
            raise RuntimeError("503 from storage")

    store = SupabaseBlobStore(FakeSupabase(BrokenBucket()), "assets")

    with pytest.raises(StoreUnavailableError):
        store.store(b"x", "image/png")


def test_supabase_remove_failure_is_swallowed():
    store = SupabaseBlobStore(FakeSupabase(FakeBucket(fail_remove=True)), "assets")

    store.delete("images/whatever.png")


# ----- Timeout wrapper -----


class SlowStore(BlobStore):
    def __init__(self, delay):
        self.delay = delay

    def store(self, payload, content_type, filename=None):
        time.sleep(self.delay)
        return "ref"

    def fetch(self, ref):
        time.sleep(self.delay)
        return b"", "image/png"

    def _remove(self, ref):
        time.sleep(self.delay)

    def _url_for(self, ref):
        return f"/slow/{ref}"


def test_timed_store_passes_through_fast_calls(fs_store):
    store = TimedBlobStore(fs_store, timeout=5)
    try:
        ref = store.store(b"abc", "image/png", "a.png")
        assert store.fetch(ref)[0] == b"abc"
        assert store.public_url(ref) == fs_store.public_url(ref)
    finally:
        store.close()


def test_timed_store_raises_timeout_on_slow_store():
    store = TimedBlobStore(SlowStore(delay=0.5), timeout=0.05)
    try:
        with pytest.raises(StoreTimeoutError):
            store.store(b"abc", "image/png")
        with pytest.raises(StoreTimeoutError):
            store.fetch("ref")
    finally:
        store.close()


def test_timed_store_timeout_is_logged(caplog):
    store = TimedBlobStore(SlowStore(delay=0.5), timeout=0.05)
    try:
        with caplog.at_level(logging.WARNING, logger="app.core.storage"):
            with pytest.raises(StoreTimeoutError):
                store.store(b"abc", "image/png")
    finally:
        store.close()

    assert "store exceeded 0.05s" in caplog.text
    assert "orphaned image" in caplog.text


def test_timed_store_delete_timeout_is_swallowed():
    store = TimedBlobStore(SlowStore(delay=0.5), timeout=0.05)
    try:
        store.delete("ref")
    finally:
        store.close()


# ----- Factory -----


def test_build_blob_store_filesystem(upload_dir, engine):
    settings = Settings(IMAGE_STORAGE="filesystem", UPLOAD_DIR=upload_dir)

    store = build_blob_store(settings, engine)
    try:
        assert isinstance(store, TimedBlobStore)
        assert isinstance(store.inner, FilesystemBlobStore)
    finally:
        store.close()


def test_build_blob_store_database(engine):
    settings = Settings(IMAGE_STORAGE="database", API_PREFIX="/api")

    store = build_blob_store(settings, engine)
    try:
        assert isinstance(store.inner, DatabaseBlobStore)
        assert store.public_url("abc") == "/api/images/abc"
    finally:
        store.close()
