import os
import sys
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _should_load_env_file() -> str | None:
    """Determine if .env should be loaded.

    For local development, load `.env` automatically so `SECRET_KEY` and the
    Supabase credentials can be provided from `backend/.env`.

    Do NOT auto-load `.env` when running under pytest or in CI (so tests
    that validate missing secrets continue to fail fast).
    """
    if any("pytest" in str(x) for x in sys.argv if x):
        return None
    if os.environ.get("CI") in ("1", "true", "True"):
        return None
    return ".env"


class Settings(BaseSettings):
    # Environment configuration
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: 'development', 'staging', 'production' or 'test'",
    )

    DATABASE_URL: str = "sqlite:///./data/osyris.db"
    SECRET_KEY: str = Field(
        ...,  # Required, no default
        description="JWT secret key - must be set via SECRET_KEY environment variable",
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (comma-separated in env var)",
    )

    # Admin credentials for initial setup (used by init_db.py)
    ADMIN_EMAIL: str = Field(
        default="",
        description="Admin email created by init_db.py (skipped when empty)",
    )
    ADMIN_PASSWORD: str = Field(
        default="",
        description="Admin password created by init_db.py",
    )

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    DB_POOL_TIMEOUT: int = Field(default=30)
    DB_POOL_RECYCLE: int = Field(
        default=1800,
        description="Recycle connections after N seconds (30 min default)",
    )

    AUTO_CREATE_DB: bool = Field(
        default=False,
        description="When true (development only), call Base.metadata.create_all on startup",
    )

    SLOW_REQUEST_THRESHOLD: float = Field(
        default=1.0,
        description="Log warning for requests slower than this (seconds)",
    )

    # File storage
    STORAGE_BACKEND: str | None = Field(
        default=None,
        description="Storage backend: 'local' or 'supabase'. Derived from ENVIRONMENT if None.",
    )
    UPLOAD_DIR: str = Field(
        default="./data/uploads",
        description="Root directory for the local storage backend",
    )
    UPLOAD_BASE_URL: str = Field(
        default="http://localhost:8000/uploads",
        description="Public URL prefix under which UPLOAD_DIR is served",
    )
    UPLOAD_MAX_SIZE: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted upload size in bytes",
    )
    UPLOAD_SNIFF_CONTENT: bool = Field(
        default=True,
        description="Verify the declared MIME type against the file content (libmagic)",
    )
    UPLOAD_RATE_LIMIT: str = Field(
        default="30/minute",
        description="slowapi rate limit applied to the upload endpoint",
    )
    RATE_LIMIT_ENABLED: bool = Field(default=True)

    # Supabase Storage
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Service role key used by the backend storage client",
    )
    SUPABASE_BUCKET: str = Field(default="osyris-files")
    SUPABASE_CACHE_CONTROL: str = Field(default="3600")

    # Family notifications
    NOTIFICATION_DEFAULT_LIMIT: int = Field(default=50)
    NOTIFICATION_TIMEZONE: str = Field(
        default="Europe/Madrid",
        description="Time zone used to evaluate quiet hours",
    )
    NOTIFICATION_CLEANUP_HOUR: int = Field(
        default=3,
        description="Hour of day (0-23) at which expired notifications are purged",
    )

    # Calendar export
    CALENDAR_UID_DOMAIN: str = Field(default="grupoosyris.es")
    CALENDAR_PRODID: str = Field(
        default="-//Grupo Scout Osyris//Calendario de Actividades//ES"
    )

    def get_storage_backend(self) -> str:
        """Determine storage backend from config or ENVIRONMENT."""
        if self.STORAGE_BACKEND:
            return self.STORAGE_BACKEND
        if self.ENVIRONMENT == "production":
            return "supabase"
        return "local"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("STORAGE_BACKEND", mode="before")
    @classmethod
    def normalize_storage_backend(cls, v: str | None) -> str | None:
        """Lowercase the backend name; empty string means auto-detect."""
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    model_config = SettingsConfigDict(
        env_file=_should_load_env_file(),
        env_file_encoding="utf-8",
        extra="ignore",  # Allow extra env vars (e.g., SENTRY_DSN) without validation errors
    )


# Instantiating Settings() raises pydantic.ValidationError if SECRET_KEY isn't set.
settings = Settings()  # type: ignore[call-arg]


def get_settings() -> Settings:
    """Get the settings instance (for dependency injection)."""
    return settings
