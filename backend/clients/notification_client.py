"""
Family portal notification client.

Keeps a local view of the current family member's notifications fresh while
avoiding redundant requests:

- unfiltered fetches are served from the cache while it is younger than the
  TTL and written back to it after a network fetch;
- filtered fetches (unread only, kind, category, priority, limit) and forced
  fetches always hit the network and never touch the cache;
- mutations call the API, update the in-memory list optimistically and then
  drop the cache entry so the next fetch goes to the network;
- network problems never raise: they are logged, stored in ``error`` and the
  stale cache is used when there is one.

The client is meant to be driven from a single event loop. Overlapping
fetches are not cancelled; the last one to finish wins.
"""

import asyncio
import contextlib
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional

import httpx
from loguru import logger

from clients.cache_store import CacheEntry, CacheStore, MemoryCacheStore

API_PREFIX = "/api/family-notifications"
DEFAULT_CACHE_PREFIX = "family-notifications"
DEFAULT_CACHE_VERSION = "1"
DEFAULT_TTL_SECONDS = 120.0


class NotificationClientError(Exception):
    """The API answered with ``success: false`` or a malformed ``data``."""


CLIENT_ERRORS = (httpx.HTTPError, ValueError, NotificationClientError)


@dataclass
class FetchResult:
    notifications: list[dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    from_cache: bool = False
    stale: bool = False


def _notification_list(data: Any) -> list[dict[str, Any]]:
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(n, dict) for n in data):
        raise NotificationClientError("Malformed notification list in response")
    return data


def _affected_count(data: Any) -> int:
    if data is None:
        return 0
    if not isinstance(data, dict):
        raise NotificationClientError("Malformed read-all response")
    try:
        return int(data.get("affected", 0))
    except (TypeError, ValueError) as e:
        raise NotificationClientError("Malformed read-all response") from e


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code} from {error.request.url.path}"
    if isinstance(error, httpx.TimeoutException):
        return "Request timed out"
    return str(error) or type(error).__name__


class FamilyNotificationClient:
    """
    Async client for ``/api/family-notifications`` with a TTL cache.

    Args:
        base_url: API origin, e.g. "https://api.grupoosyris.es"
        token: Bearer token of the family member
        scout_id: Only notifications about this scout
        cache: Cache store (process-local by default)
        cache_prefix: First part of the cache key
        cache_version: Bumped to invalidate every client's cache at once
        ttl: Cache lifetime and polling interval in seconds
        clock: Returns the current time in seconds
        http_client: Pre-configured client (tests pass one with a MockTransport)
        timeout: Request timeout when the client builds its own httpx client
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        scout_id: Optional[int] = None,
        cache: Optional[CacheStore] = None,
        cache_prefix: str = DEFAULT_CACHE_PREFIX,
        cache_version: str = DEFAULT_CACHE_VERSION,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.scout_id = scout_id
        self.cache = cache or MemoryCacheStore()
        self.cache_prefix = cache_prefix
        self.cache_version = cache_version
        self.ttl = ttl
        self.clock = clock
        self.timeout = timeout
        self._http = http_client
        self._owns_http = http_client is None

        self.notifications: list[dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None
        self.last_fetch_at: Optional[float] = None

        self._poll_task: Optional[asyncio.Task] = None
        self._visible = True

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #

    @property
    def cache_key(self) -> str:
        key = f"{self.cache_prefix}:v{self.cache_version}"
        if self.scout_id is not None:
            key = f"{key}:{self.scout_id}"
        return key

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._http

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Call the API and unwrap the ``{success, data}`` envelope.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx status
            ValueError: Body is not JSON
            NotificationClientError: ``success`` is false
        """
        headers = {"Authorization": f"Bearer {self.token}"}
        response = await self._client().request(
            method, f"{API_PREFIX}{path}", headers=headers, **kwargs
        )
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, dict):
            if payload.get("success") is False:
                raise NotificationClientError(
                    payload.get("message") or payload.get("detail") or "Request failed"
                )
            return payload.get("data")
        return payload

    def _scout_params(self) -> dict[str, Any]:
        return {} if self.scout_id is None else {"scout_id": self.scout_id}

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _now_iso(self) -> str:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat()

    def _fail(self, operation: str, error: Exception) -> str:
        message = _describe(error)
        logger.warning(f"Notification client {operation} failed: {message}")
        self.error = message
        return message

    # ------------------------------------------------------------------ #
    # Cache
    # ------------------------------------------------------------------ #

    def _entry_is_fresh(self, entry: CacheEntry) -> bool:
        return self._now_ms() - entry.timestamp_ms < self.ttl * 1000

    def is_cache_fresh(self) -> bool:
        entry = self.cache.get(self.cache_key)
        return entry is not None and self._entry_is_fresh(entry)

    def invalidate_cache(self) -> None:
        self.cache.delete(self.cache_key)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def fetch(
        self,
        unread_only: bool = False,
        kind: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        limit: Optional[int] = None,
        skip_cache: bool = False,
        silent: bool = False,
    ) -> FetchResult:
        """
        Fetch notifications, from the cache when fresh.

        Args:
            unread_only: Only unread notifications (always from the network)
            kind: Filter by kind
            category: Filter by category
            priority: Filter by priority
            limit: Maximum notifications
            skip_cache: Force a network fetch
            silent: Leave ``loading`` untouched (background polling)

        Returns:
            FetchResult; ``error`` is set when the network failed
        """
        filtered = bool(unread_only or kind or category or priority or limit)

        if not (filtered or skip_cache):
            entry = self.cache.get(self.cache_key)
            if entry is not None and self._entry_is_fresh(entry):
                self.notifications = entry.notifications
                self.error = None
                self.last_fetch_at = entry.timestamp_ms / 1000
                return FetchResult(entry.notifications, from_cache=True)

        params: dict[str, Any] = self._scout_params()
        if unread_only:
            params["unread_only"] = "true"
        if kind:
            params["kind"] = kind
        if category:
            params["category"] = category
        if priority:
            params["priority"] = priority
        if limit:
            params["limit"] = limit

        if not silent:
            self.loading = True
        try:
            data = await self._request("GET", "/", params=params)
            notifications = _notification_list(data)
        except CLIENT_ERRORS as e:
            message = self._fail("fetch", e)
            entry = self.cache.get(self.cache_key)
            if entry is not None:
                self.notifications = entry.notifications
                return FetchResult(
                    entry.notifications,
                    error=message,
                    from_cache=True,
                    stale=not self._entry_is_fresh(entry),
                )
            self.notifications = []
            return FetchResult([], error=message)
        finally:
            if not silent:
                self.loading = False

        if not filtered:
            self.cache.set(self.cache_key, CacheEntry(notifications, self._now_ms()))
        self.notifications = notifications
        self.error = None
        self.last_fetch_at = self.clock()
        return FetchResult(notifications)

    async def refetch(self) -> FetchResult:
        return await self.fetch(skip_cache=True)

    async def unread_count(self) -> int:
        """Server-side unread counter, or the local count when the call fails."""
        try:
            data = await self._request(
                "GET", "/unread-count", params=self._scout_params()
            )
            return int(data["unread"])
        except (*CLIENT_ERRORS, KeyError, TypeError) as e:
            self._fail("unread_count", e)
            return sum(1 for n in self.notifications if n.get("state") == "unread")

    async def fetch_preferences(self) -> Optional[dict[str, Any]]:
        try:
            return await self._request("GET", "/preferences")
        except CLIENT_ERRORS as e:
            self._fail("fetch_preferences", e)
            return None

    async def update_preferences(
        self, changes: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        try:
            return await self._request("PUT", "/preferences", json=changes)
        except CLIENT_ERRORS as e:
            self._fail("update_preferences", e)
            return None

    # ------------------------------------------------------------------ #
    # Mutations
    # ------------------------------------------------------------------ #

    def _find(self, notification_id: int) -> Optional[dict[str, Any]]:
        for notification in self.notifications:
            if notification.get("id") == notification_id:
                return notification
        return None

    async def mark_read(self, notification_id: int) -> bool:
        try:
            await self._request("POST", f"/{notification_id}/read")
        except CLIENT_ERRORS as e:
            self._fail("mark_read", e)
            return False

        notification = self._find(notification_id)
        if notification is not None:
            if notification.get("state") != "archived":
                notification["state"] = "read"
            notification["read_at"] = notification.get("read_at") or self._now_iso()
        self.invalidate_cache()
        return True

    async def mark_all_read(self) -> int | Literal[False]:
        """
        Mark every unread notification as read.

        Returns:
            Number of notifications the server updated, or False on failure
        """
        try:
            data = await self._request(
                "POST", "/read-all", params=self._scout_params()
            )
            affected = _affected_count(data)
        except CLIENT_ERRORS as e:
            self._fail("mark_all_read", e)
            return False

        now = self._now_iso()
        for notification in self.notifications:
            if notification.get("state") == "unread":
                notification["state"] = "read"
                notification["read_at"] = now
        self.invalidate_cache()
        return affected

    async def archive(self, notification_id: int) -> bool:
        try:
            await self._request("POST", f"/{notification_id}/archive")
        except CLIENT_ERRORS as e:
            self._fail("archive", e)
            return False

        notification = self._find(notification_id)
        if notification is not None:
            notification["state"] = "archived"
            notification["archived_at"] = self._now_iso()
        self.invalidate_cache()
        return True

    async def delete(self, notification_id: int) -> bool:
        try:
            await self._request("DELETE", f"/{notification_id}")
        except CLIENT_ERRORS as e:
            self._fail("delete", e)
            return False

        self.notifications = [
            n for n in self.notifications if n.get("id") != notification_id
        ]
        self.invalidate_cache()
        return True

    async def send_message_to_monitor(
        self,
        scout_id: int,
        subject: str,
        body: str,
        category: str = "general",
        urgency: str = "normal",
    ) -> bool:
        """Send a message to the scout's monitors, then refresh the list."""
        try:
            await self._request(
                "POST",
                "/messages",
                json={
                    "scout_id": scout_id,
                    "subject": subject,
                    "body": body,
                    "category": category,
                    "urgency": urgency,
                },
            )
        except CLIENT_ERRORS as e:
            self._fail("send_message_to_monitor", e)
            return False

        await self.refetch()
        return True

    # ------------------------------------------------------------------ #
    # Background refresh
    # ------------------------------------------------------------------ #

    async def _poll(self, is_visible: Callable[[], bool]) -> None:
        while True:
            await asyncio.sleep(self.ttl)
            if is_visible():
                await self.fetch(unread_only=True, silent=True)

    def start_polling(self, is_visible: Callable[[], bool]) -> asyncio.Task:
        """
        Refetch the unread subset every TTL seconds while ``is_visible()``.

        Calling it again replaces the running poller.
        """
        if self._poll_task is not None and not self._poll_task.done():
            self._poll_task.cancel()
        self._poll_task = asyncio.get_running_loop().create_task(
            self._poll(is_visible)
        )
        return self._poll_task

    async def stop_polling(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def on_visibility_change(self, visible: bool) -> bool:
        """
        React to the page becoming visible or hidden.

        Returns:
            True when a forced refetch was issued
        """
        became_visible = visible and not self._visible
        self._visible = visible
        if not became_visible:
            return False
        if self.last_fetch_at is not None and self.clock() - self.last_fetch_at <= self.ttl:
            return False
        await self.refetch()
        return True

    # ------------------------------------------------------------------ #
    # Summaries
    # ------------------------------------------------------------------ #

    def stats(self) -> dict[str, Any]:
        """Totals per state, kind, category and priority of the in-memory list."""
        by_state = Counter(n.get("state") for n in self.notifications)
        return {
            "total": len(self.notifications),
            "unread": by_state.get("unread", 0),
            "read": by_state.get("read", 0),
            "archived": by_state.get("archived", 0),
            "by_kind": dict(Counter(n.get("kind") for n in self.notifications)),
            "by_category": dict(
                Counter(n.get("category") or "general" for n in self.notifications)
            ),
            "by_priority": dict(
                Counter(n.get("priority") for n in self.notifications)
            ),
        }

    async def aclose(self) -> None:
        await self.stop_polling()
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "FamilyNotificationClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
