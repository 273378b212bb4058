# app/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Common env vars (.env):
      - DATABASE_URL (defaults to a local SQLite file)
      - IMAGE_STORAGE: filesystem | database | supabase
      - UPLOAD_DIR (filesystem mode)
      - PUBLIC_BASE_URL (optional host prefix for image URLs)

    Only needed when IMAGE_STORAGE=supabase:
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE_KEY
    """

    PROJECT_NAME: str = "Storefront Admin API"
    API_PREFIX: str = "/api"

    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # DB config
    DATABASE_URL: str = "sqlite:///./storefront_admin.db"

    # Image storage
    IMAGE_STORAGE: Literal["filesystem", "database", "supabase"] = "filesystem"
    UPLOAD_DIR: str = "uploads"
    PUBLIC_BASE_URL: str = ""
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024  # 5MB per image
    STORAGE_TIMEOUT_SECONDS: float = 10.0

    # Supabase storage (service role key bypasses RLS, backend only)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_BUCKET: str = "assets"

    # Dashboard
    LOW_STOCK_THRESHOLD: int = 5

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
