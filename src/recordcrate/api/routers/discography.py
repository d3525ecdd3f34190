"""Discography page data: today's most-streamed tracks."""

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import get_discography_service
from recordcrate.api.schemas import TopTracksResponse
from recordcrate.application.services.discography_service import DiscographyService

router = APIRouter(prefix="/discography", tags=["Discography"])


# Hey future me - the chart is a single list; page 0 is the only page. Later
# pages answer empty so infinite-scroll clients stop asking.
@router.get("/top-tracks", response_model=TopTracksResponse)
async def top_tracks(
    page: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    genre: str | None = Query(None),
    service: DiscographyService = Depends(get_discography_service),
) -> TopTracksResponse:
    """Top tracks from the daily streaming chart, optionally one genre only."""
    if page > 0:
        return TopTracksResponse(entries=[], has_more=False, source="none")
    result = await service.get_top_tracks(limit=limit, genre=genre)
    return TopTracksResponse(
        entries=[entry.to_dict() for entry in result.entries],
        has_more=False,
        source=result.source,
    )
