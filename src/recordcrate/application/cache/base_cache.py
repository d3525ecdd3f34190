"""Base cache interface and in-memory implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        """Check if cache entry is expired at ``now``."""
        return now >= self.created_at + self.ttl_seconds


class BaseCache(ABC, Generic[K, V]):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: float = 3600) -> None:
        """Set value in cache."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Clear all entries from cache."""
        pass


class InMemoryCache(BaseCache[K, V]):
    """In-memory TTL cache guarded by an asyncio.Lock.

    Process-local: a restart drops everything, which is fine for chart pages
    and OAuth state (both are cheap to rebuild or re-request).
    """

    # Hey future me - the clock is injectable so tests can jump past a TTL without
    # sleeping. time.monotonic is the default: wall-clock jumps (NTP) can't expire
    # entries early.
    def __init__(self, clock: Clock = time.monotonic) -> None:
        """Initialize in-memory cache."""
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    # Expired entries are evicted on read, so get() has a side effect.
    async def get(self, key: K) -> V | None:
        """Get value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._cache[key]
                return None
            return entry.value

    async def set(self, key: K, value: V, ttl_seconds: float = 3600) -> None:
        """Set value in cache, overwriting any existing entry."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=self._clock(),
                ttl_seconds=ttl_seconds,
            )

    async def pop(self, key: K) -> V | None:
        """Remove and return an unexpired value (single-use entries)."""
        async with self._lock:
            entry = self._cache.pop(key, None)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return entry.value

    async def clear(self) -> None:
        """Clear all entries from cache."""
        async with self._lock:
            self._cache.clear()

    async def cleanup_expired(self) -> int:
        """Remove expired entries from cache.

        Returns:
            Number of entries removed
        """
        async with self._lock:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._cache.items() if entry.is_expired(now)
            ]
            for key in expired_keys:
                del self._cache[key]
            return len(expired_keys)
