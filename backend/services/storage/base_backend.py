"""Abstract base class for file storage backends."""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """
    Abstract interface for where uploaded file bytes live.

    Keys are backend-relative paths of the form ``folder/uuid.ext``.
    Implementations raise ``StorageException`` when the provider fails.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of this backend ('local' or 'supabase')."""

    @property
    @abstractmethod
    def features(self) -> dict[str, bool]:
        """Capabilities reported by the storage config endpoint."""

    @abstractmethod
    def save(self, key: str, content: bytes, content_type: str) -> str:
        """
        Store bytes under ``key``.

        Args:
            key: Backend-relative path
            content: File bytes
            content_type: MIME type sent to the provider

        Returns:
            Public URL of the stored file
        """

    @abstractmethod
    def read(self, key: str) -> bytes:
        """Return the bytes stored under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the bytes stored under ``key``."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Public URL for ``key`` (no existence check)."""

    @abstractmethod
    def list_folders(self) -> list[str]:
        """Top-level folders that currently hold files."""
