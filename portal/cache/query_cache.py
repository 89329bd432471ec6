"""Process-wide keyed cache of remote resource results.

Entries are fresh for ``stale_ms`` after a successful fetch and retained
(marked stale) until ``cache_ms`` has elapsed, then evicted. A failed fetch
records the error but keeps the last good value, so views can keep showing
prior data while the next read retries.

Concurrent readers of the same key share one in-flight fetch.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple

import structlog

from portal.models.session import Role

logger = structlog.get_logger()

Fetcher = Callable[[], Awaitable[Any]]


class QueryKey(NamedTuple):
    """Structured cache key: ``(resource, role, page, filters)``.

    ``filters`` is a sorted tuple of ``(name, value)`` pairs so that keys
    built from equal filter dicts compare equal.
    """

    resource: str
    role: Role | None = None
    page: int | None = None
    filters: tuple[tuple[str, Any], ...] = ()

    @classmethod
    def build(
        cls,
        resource: str,
        role: Role | None = None,
        page: int | None = None,
        **filters: Any,
    ) -> "QueryKey":
        """Build a key, normalizing filters into sorted pairs."""
        return cls(resource, role, page, tuple(sorted(filters.items())))


@dataclass(frozen=True)
class QueryOptions:
    """Per-query cache policy."""

    stale_ms: int = 0
    cache_ms: int = 300_000
    enabled: bool = True


class QueryStatus(str, Enum):
    """Outcome of a cache read."""

    IDLE = "idle"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryResult:
    """Value returned to readers.

    ``data`` holds the last good value even when ``status`` is ERROR.
    """

    status: QueryStatus
    data: Any = None
    error: Exception | None = None
    is_stale: bool = False

    @property
    def has_data(self) -> bool:
        """Check if a value (fresh or stale) is available."""
        return self.data is not None


@dataclass
class _Entry:
    data: Any = None
    error: Exception | None = None
    fetched_at: float | None = None
    failed_at: float | None = None
    invalidated: bool = False
    generation: int = 0
    in_flight: asyncio.Task | None = field(default=None, repr=False)


class QueryCache:
    """Keyed cache with staleness windows and in-flight de-duplication.

    Features:
    - One fetch per key at a time; late callers await the same task
    - Stale-while-revalidate on failure
    - Explicit invalidation by key or by resource name
    - Injectable monotonic clock for tests
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        """Initialize empty cache.

        Args:
            clock: Monotonic clock returning seconds. Defaults to time.monotonic.
        """
        self._entries: dict[QueryKey, _Entry] = {}
        self._clock = clock or time.monotonic
        self._cache_ms: dict[QueryKey, int] = {}

    async def get(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        options: QueryOptions | None = None,
    ) -> QueryResult:
        """Read a key, fetching when missing, stale or invalidated.

        Args:
            key: Structured cache key
            fetcher: Coroutine factory producing the fresh value
            options: Cache policy for this query

        Returns:
            QueryResult with current value, error state, or IDLE if disabled
        """
        options = options or QueryOptions()
        if not options.enabled:
            return QueryResult(status=QueryStatus.IDLE)

        self._evict_expired()
        self._cache_ms[key] = options.cache_ms
        entry = self._entries.setdefault(key, _Entry())

        if entry.in_flight is None and not self._is_fresh(entry, options):
            logger.debug("query cache miss", resource=key.resource, page=key.page)
            entry.in_flight = asyncio.create_task(self._run_fetch(key, entry, fetcher))
        elif entry.in_flight is not None:
            logger.debug("query joined in-flight fetch", resource=key.resource)

        if entry.in_flight is not None:
            await asyncio.shield(entry.in_flight)

        return self._result(entry, options)

    def peek(self, key: QueryKey, options: QueryOptions | None = None) -> QueryResult:
        """Current state of a key without fetching."""
        entry = self._entries.get(key)
        if entry is None:
            return QueryResult(status=QueryStatus.IDLE)
        return self._result(entry, options or QueryOptions())

    def is_fetching(self, key: QueryKey) -> bool:
        """Check if a fetch for this key is in flight."""
        entry = self._entries.get(key)
        return entry is not None and entry.in_flight is not None

    def invalidate(self, target: QueryKey | str) -> int:
        """Force the next reader of matching keys to re-fetch.

        Args:
            target: Exact key, or a resource name matching all of its keys

        Returns:
            Number of entries invalidated
        """
        if isinstance(target, QueryKey):
            keys = [target] if target in self._entries else []
        else:
            keys = [k for k in self._entries if k.resource == target]

        for key in keys:
            entry = self._entries[key]
            entry.invalidated = True
            entry.generation += 1

        logger.info(
            "query cache invalidated",
            target=target if isinstance(target, str) else target.resource,
            entries=len(keys),
        )
        return len(keys)

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        self._cache_ms.clear()

    def __len__(self) -> int:
        """Return number of cached entries."""
        return len(self._entries)

    async def _run_fetch(self, key: QueryKey, entry: _Entry, fetcher: Fetcher) -> None:
        # An invalidation that lands mid-fetch must survive this fetch.
        generation = entry.generation
        try:
            data = await fetcher()
        except Exception as e:
            entry.error = e
            entry.failed_at = self._clock()
            logger.warning(
                "query fetch failed",
                resource=key.resource,
                page=key.page,
                error=str(e),
                has_previous=entry.data is not None,
            )
        else:
            entry.data = data
            entry.error = None
            entry.fetched_at = self._clock()
            entry.failed_at = None
            if entry.generation == generation:
                entry.invalidated = False
        finally:
            entry.in_flight = None

    def _is_fresh(self, entry: _Entry, options: QueryOptions) -> bool:
        if entry.fetched_at is None or entry.invalidated or entry.error is not None:
            return False
        return self._age_ms(entry) < options.stale_ms

    def _result(self, entry: _Entry, options: QueryOptions) -> QueryResult:
        if entry.error is not None:
            return QueryResult(
                status=QueryStatus.ERROR,
                data=entry.data,
                error=entry.error,
                is_stale=entry.data is not None,
            )
        if entry.fetched_at is None:
            return QueryResult(status=QueryStatus.IDLE)
        return QueryResult(
            status=QueryStatus.SUCCESS,
            data=entry.data,
            is_stale=entry.invalidated or self._age_ms(entry) >= options.stale_ms,
        )

    def _age_ms(self, entry: _Entry) -> float:
        return (self._clock() - entry.fetched_at) * 1000

    def _is_expired(self, key: QueryKey, entry: _Entry) -> bool:
        if entry.in_flight is not None:
            return False
        # Entries that never succeeded age from their last failure.
        settled_at = entry.fetched_at if entry.fetched_at is not None else entry.failed_at
        if settled_at is None:
            return False
        return (self._clock() - settled_at) * 1000 >= self._cache_ms.get(key, 0)

    def _evict_expired(self) -> None:
        expired = [key for key, entry in self._entries.items() if self._is_expired(key, entry)]
        for key in expired:
            del self._entries[key]
            self._cache_ms.pop(key, None)
        if expired:
            logger.debug("query cache evicted", entries=len(expired))
