"""Per-user Spotify reads (profile, top artists, top tracks).

All of these go out with the user's own token. When none can be minted the
user has to re-link: 401, never a 500.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import get_spotify_client, get_user_token_service
from recordcrate.application.services.user_token_service import UserTokenService
from recordcrate.domain.exceptions import AuthenticationError
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

router = APIRouter(prefix="/spotify", tags=["Spotify"])


async def _user_token(token_service: UserTokenService, spotify_id: str) -> str:
    token = await token_service.get_user_access_token(spotify_id)
    if token is None:
        raise AuthenticationError("Spotify reauthorization required")
    return token


@router.get("/{spotify_id}/profile")
async def profile(
    spotify_id: str,
    token_service: UserTokenService = Depends(get_user_token_service),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> dict[str, Any]:
    token = await _user_token(token_service, spotify_id)
    return await spotify_client.get_current_user(token)


@router.get("/{spotify_id}/top-artists")
async def top_artists(
    spotify_id: str,
    limit: int = Query(20, ge=1, le=50),
    token_service: UserTokenService = Depends(get_user_token_service),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> dict[str, list[dict[str, Any]]]:
    token = await _user_token(token_service, spotify_id)
    return {"items": await spotify_client.get_top_artists(token, limit=limit)}


@router.get("/{spotify_id}/top-tracks")
async def top_tracks(
    spotify_id: str,
    limit: int = Query(20, ge=1, le=50),
    token_service: UserTokenService = Depends(get_user_token_service),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> dict[str, list[dict[str, Any]]]:
    token = await _user_token(token_service, spotify_id)
    return {"items": await spotify_client.get_top_tracks(token, limit=limit)}
