"""Local filesystem storage backend (development and self-hosted setups)."""

from pathlib import Path

from loguru import logger

from models.exceptions import StorageException

from .base_backend import StorageBackend


class LocalStorageBackend(StorageBackend):
    """
    Stores files under ``root/folder/uuid.ext``.

    ``root`` is served by the API as static files under ``base_url``.
    """

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def backend_name(self) -> str:
        return "local"

    @property
    def features(self) -> dict[str, bool]:
        return {"cdn": False, "public_urls": True, "persistent": True}

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise StorageException(f"Invalid storage key: {key}")
        return path

    def save(self, key: str, content: bytes, content_type: str) -> str:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            raise StorageException(f"Could not write file {key}: {e}") from e
        logger.debug(f"Stored {len(content)} bytes at {path}")
        return self.public_url(key)

    def read(self, key: str) -> bytes:
        try:
            return self._path_for(key).read_bytes()
        except OSError as e:
            raise StorageException(f"Could not read file {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageException(f"Could not delete file {key}: {e}") from e

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    def list_folders(self) -> list[str]:
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())
