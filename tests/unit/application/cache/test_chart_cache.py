"""Unit tests for ChartCache (paging and TTL on top of ChartsService)."""

from typing import Any

import pytest

from recordcrate.application.cache.chart_cache import SAMPLE_TTL_SECONDS, ChartCache
from recordcrate.application.services.charts_service import (
    ChartFetchResult,
    EnrichedPage,
    EnrichedTrack,
    SkippedTrack,
)
from recordcrate.domain.entities import ChartEntry
from recordcrate.domain.exceptions import ValidationError


class FakeChartsService:
    """Counts fetches and 'enriches' every entry with a fake track."""

    def __init__(self, source: str = "rss", size: int = 45) -> None:
        self.source = source
        self.size = size
        self.fetches = 0
        self.enrich_calls = 0
        self.enrich_returns_empty = False

    async def fetch_top_tracks(self, limit: int | None = None) -> ChartFetchResult:
        self.fetches += 1
        tracks = [ChartEntry(i, f"Song {i}", f"Artist {i}") for i in range(1, self.size + 1)]
        return ChartFetchResult(tracks=tracks, source=self.source)

    async def enrich_with_catalog_data(self, tracks: list[ChartEntry]) -> EnrichedPage:
        self.enrich_calls += 1
        if self.enrich_returns_empty:
            return EnrichedPage(skipped=[SkippedTrack.from_entry(t) for t in tracks])
        return EnrichedPage(
            tracks=[
                EnrichedTrack(
                    rank=t.rank,
                    title=t.title,
                    artist=t.artist,
                    spotify_track={"id": f"sp{t.rank}"},
                )
                for t in tracks
            ]
        )


class FakeMonotonic:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


@pytest.fixture
def charts() -> FakeChartsService:
    return FakeChartsService()


@pytest.fixture
def clock() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def cache(charts: FakeChartsService, clock: FakeMonotonic) -> ChartCache:
    return ChartCache(charts, ttl_hours=24, default_page_size=20, clock=clock)  # type: ignore[arg-type]


class TestChartCachePaging:
    async def test_first_page(self, cache: ChartCache) -> None:
        page: dict[str, Any] = await cache.get_page(1)

        assert [t["rank"] for t in page["tracks"]] == list(range(1, 21))
        assert page["total"] == 45
        assert page["hasMore"] is True
        assert page["source"] == "rss"
        assert page["page"] == 1

    async def test_last_partial_page_has_no_more(self, cache: ChartCache) -> None:
        page = await cache.get_page(3)

        assert [t["rank"] for t in page["tracks"]] == list(range(41, 46))
        assert page["hasMore"] is False

    async def test_page_past_the_end_is_empty(self, cache: ChartCache) -> None:
        page = await cache.get_page(10)

        assert page["tracks"] == []
        assert page["hasMore"] is False

    @pytest.mark.parametrize(("page", "size"), [(0, 20), (1, 0), (1, 51)])
    async def test_invalid_paging_raises(
        self, cache: ChartCache, page: int, size: int
    ) -> None:
        with pytest.raises(ValidationError):
            await cache.get_page(page, size)


class TestChartCacheTtl:
    async def test_chart_fetched_once_per_ttl(
        self, cache: ChartCache, charts: FakeChartsService, clock: FakeMonotonic
    ) -> None:
        await cache.get_page(1)
        await cache.get_page(2)
        assert charts.fetches == 1

        clock.value += 24 * 3600
        await cache.get_page(1)
        assert charts.fetches == 2

    async def test_pages_are_cached(
        self, cache: ChartCache, charts: FakeChartsService
    ) -> None:
        await cache.get_page(1)
        await cache.get_page(1)

        assert charts.enrich_calls == 1

    async def test_empty_enrichment_is_not_cached(
        self, cache: ChartCache, charts: FakeChartsService
    ) -> None:
        charts.enrich_returns_empty = True
        await cache.get_page(1)
        await cache.get_page(1)

        assert charts.enrich_calls == 2

    async def test_unmatched_page_reports_its_skips(
        self, cache: ChartCache, charts: FakeChartsService
    ) -> None:
        charts.enrich_returns_empty = True

        page: dict[str, Any] = await cache.get_page(2, 5)

        assert page["tracks"] == []
        assert [s["rank"] for s in page["skipped"]] == [6, 7, 8, 9, 10]

    async def test_sample_chart_expires_quickly(self, clock: FakeMonotonic) -> None:
        charts = FakeChartsService(source="sample", size=20)
        cache = ChartCache(charts, clock=clock)  # type: ignore[arg-type]

        await cache.get_chart()
        clock.value += SAMPLE_TTL_SECONDS
        await cache.get_chart()

        assert charts.fetches == 2

    async def test_invalidate_forces_refetch(
        self, cache: ChartCache, charts: FakeChartsService
    ) -> None:
        await cache.get_chart()
        await cache.invalidate()
        await cache.get_chart()

        assert charts.fetches == 2
