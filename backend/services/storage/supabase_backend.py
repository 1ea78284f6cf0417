"""Supabase Storage backend (production)."""

from typing import Any

from loguru import logger

from models.exceptions import StorageException

from .base_backend import StorageBackend


class SupabaseStorageBackend(StorageBackend):
    """
    Stores files in a Supabase Storage bucket.

    Args:
        url: Supabase project URL
        service_key: Service role key
        bucket: Bucket name
        cache_control: Cache-Control max-age sent with uploads
        client: Pre-built Supabase client (tests pass a mock)
    """

    def __init__(
        self,
        url: str = "",
        service_key: str = "",
        bucket: str = "osyris-files",
        cache_control: str = "3600",
        client: Any = None,
    ):
        if client is None:
            if not url or not service_key:
                raise ValueError(
                    "SUPABASE_URL and SUPABASE_SERVICE_KEY are required for "
                    "the supabase storage backend"
                )
            from supabase import create_client

            client = create_client(url, service_key)
        self.client = client
        self.bucket = bucket
        self.cache_control = cache_control

    @property
    def backend_name(self) -> str:
        return "supabase"

    @property
    def features(self) -> dict[str, bool]:
        return {"cdn": True, "public_urls": True, "persistent": True}

    def _bucket(self) -> Any:
        return self.client.storage.from_(self.bucket)

    def save(self, key: str, content: bytes, content_type: str) -> str:
        try:
            self._bucket().upload(
                path=key,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": self.cache_control,
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"Supabase upload failed for {key}: {e}")
            raise StorageException(f"Could not upload file {key}: {e}") from e
        try:
            return self.public_url(key)
        except StorageException:
            # Uploaded bytes without a URL would be orphaned
            try:
                self._bucket().remove([key])
            except Exception as e:
                logger.error(f"Could not remove orphaned upload {key}: {e}")
            raise

    def read(self, key: str) -> bytes:
        try:
            return self._bucket().download(key)
        except Exception as e:
            raise StorageException(f"Could not download file {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._bucket().remove([key])
        except Exception as e:
            raise StorageException(f"Could not delete file {key}: {e}") from e

    def public_url(self, key: str) -> str:
        try:
            return self._bucket().get_public_url(key)
        except Exception as e:
            raise StorageException(f"Could not build public URL for {key}: {e}") from e

    def list_folders(self) -> list[str]:
        try:
            entries = self._bucket().list()
        except Exception as e:
            raise StorageException(f"Could not list bucket {self.bucket}: {e}") from e
        # Folder placeholders come back without an id
        return sorted(
            entry["name"] for entry in entries if entry.get("id") is None
        )
