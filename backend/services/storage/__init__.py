"""File storage backends and the factory that picks one at startup."""

from models.config import Settings
from services.storage.base_backend import StorageBackend
from services.storage.local_backend import LocalStorageBackend
from services.storage.supabase_backend import SupabaseStorageBackend

STORAGE_BACKENDS = ("local", "supabase")


def create_storage_backend(config: Settings, name: str | None = None) -> StorageBackend:
    """
    Build the storage backend named by ``name`` or by configuration.

    Args:
        config: Application settings
        name: Explicit backend name (used by the migration routine)

    Returns:
        A ready-to-use backend

    Raises:
        ValueError: If the name is unknown or Supabase credentials are missing.
    """
    backend_name = (name or config.get_storage_backend()).lower()

    if backend_name == "local":
        return LocalStorageBackend(config.UPLOAD_DIR, config.UPLOAD_BASE_URL)
    if backend_name == "supabase":
        return SupabaseStorageBackend(
            url=config.SUPABASE_URL,
            service_key=config.SUPABASE_SERVICE_KEY,
            bucket=config.SUPABASE_BUCKET,
            cache_control=config.SUPABASE_CACHE_CONTROL,
        )
    raise ValueError(
        f"Unknown storage backend '{backend_name}'. "
        f"Expected one of: {', '.join(STORAGE_BACKENDS)}"
    )


__all__ = [
    "STORAGE_BACKENDS",
    "LocalStorageBackend",
    "StorageBackend",
    "SupabaseStorageBackend",
    "create_storage_backend",
]
