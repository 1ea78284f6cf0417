"""
Cache stores for the notification client.

An entry is a JSON object ``{"data": [...], "timestamp": <epoch millis>}``.
Unreadable or malformed entries read as a miss.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from loguru import logger


@dataclass
class CacheEntry:
    notifications: list[dict[str, Any]]
    timestamp_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.notifications, "timestamp": self.timestamp_ms}

    @classmethod
    def from_dict(cls, raw: Any) -> Optional["CacheEntry"]:
        """Parse a stored entry, returning None when it is malformed."""
        if not isinstance(raw, dict):
            return None
        data = raw.get("data")
        timestamp = raw.get("timestamp")
        if not isinstance(data, list) or not isinstance(timestamp, (int, float)):
            return None
        return cls(notifications=data, timestamp_ms=int(timestamp))


class CacheStore(ABC):
    """Key/value store holding cache entries."""

    @abstractmethod
    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for ``key`` or None on a miss."""

    @abstractmethod
    def set(self, key: str, entry: CacheEntry) -> None:
        """Store ``entry`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class MemoryCacheStore(CacheStore):
    """Process-local store. Entries are kept serialized so callers never share lists."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get(self, key: str) -> Optional[CacheEntry]:
        raw = self._entries.get(key)
        if raw is None:
            return None
        return CacheEntry.from_dict(json.loads(raw))

    def set(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = json.dumps(entry.to_dict())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class FileCacheStore(CacheStore):
    """
    Persistent store backed by a single JSON file.

    Writes go to a temporary file that replaces the original, so a reader
    never sees a half-written file. Concurrent writers: last write wins.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable notification cache {self.path}: {e}")
            return {}
        return raw if isinstance(raw, dict) else {}

    def _save(self, entries: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(entries, tmp)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[CacheEntry]:
        return CacheEntry.from_dict(self._load().get(key))

    def set(self, key: str, entry: CacheEntry) -> None:
        entries = self._load()
        entries[key] = entry.to_dict()
        self._save(entries)

    def delete(self, key: str) -> None:
        entries = self._load()
        if entries.pop(key, None) is not None:
            self._save(entries)
