"""Cached, paginated view over ChartsService.

Hey future me - two cache layers with the same TTL (24h by default):

    ("chart",)                   -> ChartFetchResult from Billboard
    ("page", source, page, size) -> enriched page payload

The chart only changes weekly, and enriching a page costs up to page_size
Spotify searches, so a page is built once per TTL. A sample-tier chart is
cached for SAMPLE_TTL_SECONDS only: when Billboard comes back we want the real
chart, not a day of placeholders.
"""

import asyncio
import logging
import time
from typing import Any

from recordcrate.application.cache.base_cache import Clock, InMemoryCache
from recordcrate.application.services.charts_service import (
    SOURCE_SAMPLE,
    ChartFetchResult,
    ChartsService,
)
from recordcrate.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

SAMPLE_TTL_SECONDS = 15 * 60
MAX_PAGE_SIZE = 50
_CHART_KEY: tuple[Any, ...] = ("chart",)


class ChartCache:
    """Serves Hot 100 pages from memory, refreshing from ChartsService on expiry."""

    def __init__(
        self,
        charts_service: ChartsService,
        ttl_hours: float = 24,
        default_page_size: int = 20,
        clock: Clock = time.monotonic,
    ) -> None:
        self._charts = charts_service
        self._ttl_seconds = ttl_hours * 3600
        self._default_page_size = default_page_size
        self._cache: InMemoryCache[tuple[Any, ...], Any] = InMemoryCache(clock=clock)
        self._load_lock = asyncio.Lock()

    async def get_chart(self) -> ChartFetchResult:
        """The full chart list, fetched at most once per TTL."""
        cached = await self._cache.get(_CHART_KEY)
        if cached is not None:
            return cached

        # One scrape at a time; concurrent callers wait and reuse the result
        async with self._load_lock:
            cached = await self._cache.get(_CHART_KEY)
            if cached is not None:
                return cached

            result = await self._charts.fetch_top_tracks()
            ttl = SAMPLE_TTL_SECONDS if result.source == SOURCE_SAMPLE else self._ttl_seconds
            await self._cache.set(_CHART_KEY, result, ttl_seconds=ttl)
            return result

    async def get_page(self, page: int = 1, page_size: int | None = None) -> dict[str, Any]:
        """One enriched page of the chart.

        Returns:
            {"tracks": [...], "skipped": [...], "total": int, "hasMore": bool,
            "source": str, "page": int}

        Raises:
            ValidationError: page < 1 or page_size outside 1..50
        """
        size = self._default_page_size if page_size is None else page_size
        if page < 1:
            raise ValidationError("page must be >= 1", field="page")
        if not 1 <= size <= MAX_PAGE_SIZE:
            raise ValidationError(
                f"pageSize must be between 1 and {MAX_PAGE_SIZE}", field="pageSize"
            )

        chart = await self.get_chart()
        key = ("page", chart.source, page, size)
        cached = await self._cache.get(key)
        if cached is not None:
            return cached

        start = (page - 1) * size
        entries = chart.tracks[start : start + size]
        enriched = await self._charts.enrich_with_catalog_data(entries)
        payload = {
            "tracks": [track.to_dict() for track in enriched.tracks],
            "skipped": [s.to_dict() for s in enriched.skipped],
            "total": len(chart.tracks),
            "hasMore": start + size < len(chart.tracks),
            "source": chart.source,
            "page": page,
        }
        # Empty enrichment usually means Spotify is down or unconfigured; don't pin it
        if enriched.tracks:
            ttl = (
                SAMPLE_TTL_SECONDS
                if chart.source == SOURCE_SAMPLE
                else self._ttl_seconds
            )
            await self._cache.set(key, payload, ttl_seconds=ttl)
        return payload

    async def invalidate(self) -> None:
        """Drop the chart and every cached page."""
        await self._cache.clear()
        logger.info("Chart cache cleared")
