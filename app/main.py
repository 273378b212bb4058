# app/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.errors import add_exception_handlers
from app.core.logging import configure_logging
from app.core.storage import FilesystemBlobStore, build_blob_store
from app.database import create_db_and_tables, engine

# Import models so SQLModel metadata is populated before create_all()
from app.models import category as _category_models  # noqa: F401
from app.models import order as _order_models  # noqa: F401
from app.models import product as _product_models  # noqa: F401
from app.models import stored_image as _stored_image_models  # noqa: F401

# Routers
from app.routers.admin_orders import router as admin_orders_router
from app.routers.admin_stats import router as admin_stats_router
from app.routers.categories import router as categories_router
from app.routers.images import router as images_router
from app.routers.products import router as products_router

settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Build the configured blob store and publish it on app.state;
        until then image-aware endpoints answer 503.

    Shutdown:
      - Stop the blob store worker threads.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise

    try:
        app.state.blob_store = build_blob_store(settings, engine)
        logger.info(f"Startup: image storage ready (mode={settings.IMAGE_STORAGE}).")
    except Exception as e:
        logger.error(f"Startup: image storage FAILED: {e}")
        raise

    yield

    blob_store = getattr(app.state, "blob_store", None)
    app.state.blob_store = None
    if blob_store is not None:
        blob_store.close()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

# API prefix, e.g. /api
app.include_router(products_router, prefix=settings.API_PREFIX)
app.include_router(categories_router, prefix=settings.API_PREFIX)
app.include_router(images_router, prefix=settings.API_PREFIX)
app.include_router(admin_orders_router, prefix=settings.API_PREFIX)
app.include_router(admin_stats_router, prefix=settings.API_PREFIX)

# Filesystem mode serves the upload directory directly
if settings.IMAGE_STORAGE == "filesystem":
    app.mount(
        FilesystemBlobStore.URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )


@app.get("/")
def root():
    """Health check endpoint."""
    ready = getattr(app.state, "blob_store", None) is not None
    return {"status": "ok", "service": "storefront-admin", "storage_ready": ready}
