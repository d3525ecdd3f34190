"""Billboard Hot 100 endpoints."""

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import get_chart_cache
from recordcrate.api.schemas import ChartEntrySchema, ChartPageResponse, RawChartResponse
from recordcrate.application.cache.chart_cache import ChartCache

router = APIRouter(prefix="/charts", tags=["Charts"])


# Hey future me - page/pageSize are range-checked by ChartCache (ValidationError
# -> 400), not by Query(ge=...), so the error body has the same shape as every
# other validation failure.
@router.get("/hot-100", response_model=ChartPageResponse)
async def hot_100(
    page: int = Query(1),
    page_size: int | None = Query(None, alias="pageSize"),
    chart_cache: ChartCache = Depends(get_chart_cache),
) -> ChartPageResponse:
    """One page of the chart, matched to Spotify tracks."""
    payload = await chart_cache.get_page(page, page_size)
    return ChartPageResponse.model_validate(payload)


@router.get("/hot-100/raw", response_model=RawChartResponse)
async def hot_100_raw(
    limit: int = Query(100, ge=1, le=100),
    chart_cache: ChartCache = Depends(get_chart_cache),
) -> RawChartResponse:
    """Chart entries as scraped, no Spotify lookups."""
    chart = await chart_cache.get_chart()
    return RawChartResponse(
        success=True,
        tracks=[
            ChartEntrySchema(rank=e.rank, title=e.title, artist=e.artist)
            for e in chart.tracks[:limit]
        ],
        source=chart.source,
    )
