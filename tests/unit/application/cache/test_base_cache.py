"""Unit tests for InMemoryCache."""

from recordcrate.application.cache.base_cache import InMemoryCache


class FakeMonotonic:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


class TestInMemoryCache:
    async def test_set_and_get(self) -> None:
        cache: InMemoryCache[str, int] = InMemoryCache()
        await cache.set("k", 1)
        assert await cache.get("k") == 1

    async def test_entry_expires_after_ttl(self) -> None:
        clock = FakeMonotonic()
        cache: InMemoryCache[str, int] = InMemoryCache(clock=clock)
        await cache.set("k", 1, ttl_seconds=10)

        clock.value += 9.9
        assert await cache.get("k") == 1
        clock.value += 0.2
        assert await cache.get("k") is None

    async def test_pop_is_single_use(self) -> None:
        cache: InMemoryCache[str, str] = InMemoryCache()
        await cache.set("state", "http://localhost/cb")

        assert await cache.pop("state") == "http://localhost/cb"
        assert await cache.pop("state") is None

    async def test_pop_ignores_expired_entry(self) -> None:
        clock = FakeMonotonic()
        cache: InMemoryCache[str, str] = InMemoryCache(clock=clock)
        await cache.set("state", "x", ttl_seconds=1)
        clock.value += 2

        assert await cache.pop("state") is None

    async def test_cleanup_expired_removes_only_stale_entries(self) -> None:
        clock = FakeMonotonic()
        cache: InMemoryCache[str, int] = InMemoryCache(clock=clock)
        await cache.set("short", 1, ttl_seconds=1)
        await cache.set("long", 2, ttl_seconds=100)
        clock.value += 5

        assert await cache.cleanup_expired() == 1
        assert await cache.cleanup_expired() == 0
        assert await cache.get("long") == 2

    async def test_clear(self) -> None:
        cache: InMemoryCache[str, int] = InMemoryCache()
        await cache.set("a", 1)
        await cache.set("b", 2)

        await cache.clear()

        assert await cache.get("a") is None
        assert await cache.get("b") is None
