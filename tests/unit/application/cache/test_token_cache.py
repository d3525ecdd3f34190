"""Unit tests for TokenCache."""

from datetime import UTC, datetime, timedelta

import pytest

from recordcrate.application.cache.token_cache import TokenCache


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TokenCache:
    return TokenCache(safety_margin_seconds=60, clock=clock)


class TestTokenCache:
    """Tests for expiry, margin and invalidation."""

    async def test_fresh_token_is_returned(self, cache: TokenCache) -> None:
        await cache.set("app", "tok-1", expires_in=3600)

        cached = await cache.get("app")

        assert cached is not None
        assert cached.token == "tok-1"

    async def test_token_expires_margin_seconds_early(
        self, cache: TokenCache, clock: FakeClock
    ) -> None:
        await cache.set("app", "tok-1", expires_in=3600)

        clock.advance(3539)
        assert await cache.get("app") is not None

        clock.advance(1)
        assert await cache.get("app") is None
        assert await cache.is_expired("app")

    async def test_expires_at_is_provider_expiry(
        self, cache: TokenCache, clock: FakeClock
    ) -> None:
        start = clock.now
        cached = await cache.set("user-1", "tok", expires_in=3600)

        assert cached.expires_at == start + timedelta(seconds=3600)
        assert cached.usable_until == start + timedelta(seconds=3540)

    async def test_put_with_absolute_expiry(
        self, cache: TokenCache, clock: FakeClock
    ) -> None:
        await cache.put("user-1", "tok", clock.now + timedelta(seconds=90))

        assert await cache.get("user-1") is not None
        clock.advance(30)
        assert await cache.get("user-1") is None

    async def test_missing_key_counts_as_expired(self, cache: TokenCache) -> None:
        assert await cache.get("nobody") is None
        assert await cache.is_expired("nobody")

    async def test_invalidate_drops_token(self, cache: TokenCache) -> None:
        await cache.set("app", "tok", expires_in=3600)

        await cache.invalidate("app")

        assert await cache.get("app") is None

    async def test_keys_are_independent(self, cache: TokenCache) -> None:
        await cache.set("a", "tok-a", expires_in=3600)
        await cache.set("b", "tok-b", expires_in=3600)
        await cache.invalidate("a")

        cached = await cache.get("b")
        assert cached is not None and cached.token == "tok-b"

    def test_lock_for_is_stable_per_key(self, cache: TokenCache) -> None:
        assert cache.lock_for("a") is cache.lock_for("a")
        assert cache.lock_for("a") is not cache.lock_for("b")

    def test_margin_below_30_seconds_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            TokenCache(safety_margin_seconds=10)
