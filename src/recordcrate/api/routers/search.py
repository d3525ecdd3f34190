"""Search endpoints: natural-language suggestions and the catalog proxy."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import (
    get_app_token_provider,
    get_nl_search_service,
    get_spotify_client,
)
from recordcrate.api.schemas import NaturalLanguageRequest, SearchHealthResponse
from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.application.services.nl_search_service import (
    NaturalLanguageSearchService,
)
from recordcrate.domain.exceptions import ValidationError
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])

CATALOG_TYPES = frozenset({"album", "artist", "track"})


@router.post("/natural-language")
async def natural_language_search(
    body: NaturalLanguageRequest,
    service: NaturalLanguageSearchService = Depends(get_nl_search_service),
) -> dict[str, Any]:
    """Interpret a free-text query ("chill songs like Doghouse")."""
    query = (body.query or "").strip()
    if not query:
        raise ValidationError("Query is required", field="query")
    return await service.search(query)


@router.get("/health", response_model=SearchHealthResponse)
async def search_health(
    service: NaturalLanguageSearchService = Depends(get_nl_search_service),
) -> SearchHealthResponse:
    return SearchHealthResponse(gemini_configured=service.model_enabled)


@router.get("/catalog")
async def catalog_search(
    q: str = Query(..., min_length=1),
    type: str = Query("album", description="Comma-separated: album, artist, track"),
    limit: int = Query(20, ge=1, le=50),
    offset: int = Query(0, ge=0),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
    app_tokens: AppTokenProvider = Depends(get_app_token_provider),
) -> dict[str, Any]:
    """Spotify catalog search with the app token (raw Spotify JSON)."""
    types = [t.strip() for t in type.split(",") if t.strip()]
    if not types or not set(types) <= CATALOG_TYPES:
        raise ValidationError("type must be album, artist or track", field="type")
    token = await app_tokens.get_app_access_token()
    return await spotify_client.search(q, types, token, limit=limit, offset=offset)
