"""In-memory result cache with TTL expiry and single-flight resolution.

Entries are keyed by ``RepositoryKey.cache_key``. A successful resolution
is stored for ``ttl_seconds``; a ``NoIconsFoundError`` is stored for the
shorter ``negative_ttl_seconds`` so dead repositories are not hammered.
Other failures (timeouts, cancellation, bugs) are never cached.

Expired entries are dropped lazily when their key is next accessed.
"""

import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional

from repo_icons.domain.models import RepositoryKey, ResultSet
from repo_icons.logging import get_logger
from repo_icons.pipeline.exceptions import NoIconsFoundError
from repo_icons.utils.singleflight import SingleFlight

logger = get_logger(__name__, component="cache")

DEFAULT_TTL_SECONDS = 6 * 3600
DEFAULT_NEGATIVE_TTL_SECONDS = 5 * 60

Resolver = Callable[[RepositoryKey], Awaitable[ResultSet]]


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached resolution outcome.

    Exactly one of ``result`` and ``error`` is set.

    Attributes:
        key: Cache key of the repository
        result: Successful ResultSet
        error: Cached NoIconsFoundError
        created_at: Clock reading when the entry was stored
        expires_at: Clock reading after which the entry is stale
    """

    key: str
    created_at: float
    expires_at: float
    result: Optional[ResultSet] = None
    error: Optional[NoIconsFoundError] = None

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def is_negative(self) -> bool:
        return self.error is not None


class IconCache:
    """
    Memoizes pipeline resolutions per repository.

    Concurrent ``get_or_resolve`` calls for the same key share one
    in-flight resolution. The entry table is guarded by a lock held only
    for dictionary access, never across an await, so lookups for
    different keys never wait on each other.

    The cached ResultSet is immutable and handed out as is.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        negative_ttl_seconds: float = DEFAULT_NEGATIVE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            ttl_seconds: Lifetime of a successful result
            negative_ttl_seconds: Lifetime of a cached NoIconsFoundError
            clock: Monotonic clock in seconds (tests inject a fake one)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got: {ttl_seconds}")
        if negative_ttl_seconds < 0:
            raise ValueError(f"negative_ttl_seconds must be >= 0, got: {negative_ttl_seconds}")

        self.ttl_seconds = ttl_seconds
        self.negative_ttl_seconds = negative_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._flights = SingleFlight(name="cache.resolve")

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        with self._lock:
            return len(self._entries)

    def peek(self, key: RepositoryKey) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` without resolving; evicts if expired."""
        cache_key = key.cache_key
        now = self._clock()
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is not None and entry.is_expired(now):
                del self._entries[cache_key]
                entry = None
        return entry

    def invalidate(self, key: RepositoryKey) -> bool:
        """Drop the entry for ``key``. Returns True if one was stored."""
        with self._lock:
            removed = self._entries.pop(key.cache_key, None) is not None
        if removed:
            logger.debug(
                "Cache entry invalidated",
                extra={"event": "cache.invalidated", "repository": key.cache_key},
            )
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    async def get_or_resolve(
        self, key: RepositoryKey, resolver: Resolver, force_refresh: bool = False
    ) -> ResultSet:
        """
        Return the cached ResultSet for ``key`` or resolve and store it.

        Args:
            key: Repository to look up
            resolver: Coroutine function computing a fresh ResultSet
            force_refresh: Ignore a stored entry; an in-flight resolution
                for the same key is still joined

        Raises:
            NoIconsFoundError: Fresh or cached "no icons" failure
        """
        cache_key = key.cache_key

        if not force_refresh:
            entry = self.peek(key)
            if entry is not None:
                logger.debug(
                    "Cache hit",
                    extra={
                        "event": "cache.hit",
                        "repository": cache_key,
                        "negative": entry.is_negative,
                    },
                )
                if entry.error is not None:
                    raise entry.error.with_traceback(None)
                return entry.result

        logger.debug(
            "Cache miss",
            extra={"event": "cache.miss", "repository": cache_key, "forced": force_refresh},
        )
        return await self._flights.do(cache_key, lambda: self._resolve_and_store(key, resolver))

    async def _resolve_and_store(self, key: RepositoryKey, resolver: Resolver) -> ResultSet:
        try:
            result = await resolver(key)
        except NoIconsFoundError as e:
            if self.negative_ttl_seconds > 0:
                self._store(key, error=e, ttl=self.negative_ttl_seconds)
            raise

        self._store(key, result=result, ttl=self.ttl_seconds)
        return result

    def _store(
        self,
        key: RepositoryKey,
        ttl: float,
        result: Optional[ResultSet] = None,
        error: Optional[NoIconsFoundError] = None,
    ) -> None:
        now = self._clock()
        entry = CacheEntry(
            key=key.cache_key,
            created_at=now,
            expires_at=now + ttl,
            result=result,
            error=error,
        )
        with self._lock:
            self._entries[key.cache_key] = entry

        logger.debug(
            "Cache entry stored",
            extra={
                "event": "cache.stored",
                "repository": key.cache_key,
                "negative": error is not None,
                "ttl_seconds": ttl,
            },
        )
