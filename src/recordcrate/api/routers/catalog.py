"""Spotify catalog reads that only need the app token."""

from typing import Any

from fastapi import APIRouter, Depends

from recordcrate.api.dependencies import get_app_token_provider, get_spotify_client
from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get("/genres")
async def genres(
    spotify_client: SpotifyClient = Depends(get_spotify_client),
    app_tokens: AppTokenProvider = Depends(get_app_token_provider),
) -> dict[str, list[str]]:
    token = await app_tokens.get_app_access_token()
    return {"genres": await spotify_client.get_available_genre_seeds(token)}


@router.get("/albums/{album_id}")
async def album(
    album_id: str,
    spotify_client: SpotifyClient = Depends(get_spotify_client),
    app_tokens: AppTokenProvider = Depends(get_app_token_provider),
) -> dict[str, Any]:
    """Album with tracks, as Spotify returns it."""
    token = await app_tokens.get_app_access_token()
    return await spotify_client.get_album(album_id, token)
