"""In-memory holder for bearer tokens and their expiry.

Hey future me - one TokenCache instance backs the process-wide app token (key
"app") and another backs per-user tokens (key = spotify id). The safety margin
is subtracted ONCE, at set() time: a token stored with expires_in=3600 and a 60s
margin is considered expired after 3540s. Nothing hands out a token in its last
seconds, so an in-flight request can't race the real expiry.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from recordcrate.domain.entities import utc_now

MIN_SAFETY_MARGIN_SECONDS = 30


@dataclass(frozen=True)
class CachedToken:
    """A bearer token and when it stops being usable."""

    token: str
    # Provider-reported expiry (what clients are told)
    expires_at: datetime
    # expires_at minus the safety margin (what the cache enforces)
    usable_until: datetime


class TokenCache:
    """Keyed token cache with an injectable clock."""

    def __init__(
        self,
        safety_margin_seconds: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if safety_margin_seconds < MIN_SAFETY_MARGIN_SECONDS:
            raise ValueError(
                f"safety_margin_seconds must be >= {MIN_SAFETY_MARGIN_SECONDS}"
            )
        self._margin = timedelta(seconds=safety_margin_seconds)
        self._clock = clock
        self._tokens: dict[str, CachedToken] = {}
        self._lock = asyncio.Lock()
        self._key_locks: dict[str, asyncio.Lock] = {}

    @property
    def safety_margin(self) -> timedelta:
        return self._margin

    def now(self) -> datetime:
        """Current time according to the cache's clock."""
        return self._clock()

    async def get(self, key: str) -> CachedToken | None:
        """Return the token for ``key`` if it is still usable."""
        async with self._lock:
            cached = self._tokens.get(key)
            if cached is None:
                return None
            if self._clock() >= cached.usable_until:
                del self._tokens[key]
                return None
            return cached

    async def set(self, key: str, token: str, expires_in: float) -> CachedToken:
        """Store a token that the provider says lives ``expires_in`` seconds."""
        expires_at = self._clock() + timedelta(seconds=expires_in)
        return await self.put(key, token, expires_at)

    async def put(self, key: str, token: str, expires_at: datetime) -> CachedToken:
        """Store a token with an absolute provider expiry (e.g. loaded from the DB)."""
        cached = CachedToken(
            token=token,
            expires_at=expires_at,
            usable_until=expires_at - self._margin,
        )
        async with self._lock:
            self._tokens[key] = cached
        return cached

    async def is_expired(self, key: str) -> bool:
        """True when ``key`` has no usable token (missing counts as expired)."""
        return await self.get(key) is None

    # One lock per key so refreshing user A never waits on user B. Locks are never
    # evicted; there is one per user who ever refreshed in this process.
    def lock_for(self, key: str) -> asyncio.Lock:
        """Lock serializing token exchanges for ``key``."""
        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks[key] = asyncio.Lock()
        return lock

    async def invalidate(self, key: str) -> None:
        """Drop the token for ``key``."""
        async with self._lock:
            self._tokens.pop(key, None)
