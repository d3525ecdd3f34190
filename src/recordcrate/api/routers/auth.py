"""Spotify account linking.

Hey future me - the flow is:

    1. GET  /auth/spotify/login     -> consent URL + state (state kept 10 min)
    2. user approves on Spotify, which redirects to the frontend with ?code&state
    3. POST /auth/spotify/callback  -> frontend forwards code + state here; we
       verify the state, exchange the code and store the tokens on the user row
    4. GET  /auth/spotify/token/{id} -> a fresh access token for the player SDK

The exchange always uses the redirect URI the state was issued for; Spotify
rejects the code otherwise.
"""

import logging

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import (
    get_spotify_auth_service,
    get_user_token_service,
)
from recordcrate.api.schemas import (
    AccessTokenResponse,
    AuthCallbackRequest,
    AuthorizationUrlResponse,
    LinkedAccountResponse,
    UserResponse,
)
from recordcrate.application.services.spotify_auth_service import SpotifyAuthService
from recordcrate.application.services.user_token_service import UserTokenService
from recordcrate.domain.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/spotify", tags=["Authentication"])


@router.get("/login", response_model=AuthorizationUrlResponse)
async def login(
    redirect_uri: str | None = Query(None, alias="redirectUri"),
    auth_service: SpotifyAuthService = Depends(get_spotify_auth_service),
) -> AuthorizationUrlResponse:
    """Start the consent flow."""
    result = await auth_service.start_authorization(redirect_uri)
    return AuthorizationUrlResponse(
        authorization_url=result.authorization_url, state=result.state
    )


@router.post("/callback", response_model=LinkedAccountResponse)
async def callback(
    body: AuthCallbackRequest,
    auth_service: SpotifyAuthService = Depends(get_spotify_auth_service),
    token_service: UserTokenService = Depends(get_user_token_service),
) -> LinkedAccountResponse:
    """Finish the consent flow and link the Spotify account.

    Raises:
        ValidationError: missing code, or unknown/expired/reused state (400)
        AuthExchangeError: Spotify rejected the code (400)
    """
    if not body.code:
        raise ValidationError("Authorization code is required", field="code")
    redirect_uri = await auth_service.consume_state(body.state)
    if redirect_uri is None:
        logger.warning("Spotify callback with invalid state")
        raise ValidationError("Invalid or expired OAuth state", field="state")

    user = await token_service.link_spotify_account(body.code, redirect_uri)
    return LinkedAccountResponse(user=UserResponse.from_entity(user))


@router.get("/token/{spotify_id}", response_model=AccessTokenResponse)
async def access_token(
    spotify_id: str,
    token_service: UserTokenService = Depends(get_user_token_service),
) -> AccessTokenResponse:
    """Current access token for the user, refreshed if needed.

    Raises:
        AuthenticationError: not linked or refresh failed (401)
    """
    token = await token_service.get_user_token(spotify_id)
    if token is None:
        raise AuthenticationError("Spotify reauthorization required")
    return AccessTokenResponse(access_token=token.token, expires_at=token.expires_at)
