"""Python client for the family portal notification API."""

from clients.cache_store import (
    CacheEntry,
    CacheStore,
    FileCacheStore,
    MemoryCacheStore,
)
from clients.notification_client import (
    FamilyNotificationClient,
    FetchResult,
    NotificationClientError,
)

__all__ = [
    "CacheEntry",
    "CacheStore",
    "FamilyNotificationClient",
    "FetchResult",
    "FileCacheStore",
    "MemoryCacheStore",
    "NotificationClientError",
]
