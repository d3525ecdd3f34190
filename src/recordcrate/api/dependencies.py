"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recordcrate.application.cache.chart_cache import ChartCache
from recordcrate.application.cache.token_cache import TokenCache
from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.application.services.discography_service import DiscographyService
from recordcrate.application.services.nl_search_service import (
    NaturalLanguageSearchService,
)
from recordcrate.application.services.review_service import ReviewService
from recordcrate.application.services.spotify_auth_service import SpotifyAuthService
from recordcrate.application.services.user_service import UserService
from recordcrate.application.services.user_token_service import UserTokenService
from recordcrate.config import Settings
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient
from recordcrate.infrastructure.persistence.database import Database
from recordcrate.infrastructure.persistence.repositories import (
    AlbumReviewRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


# Hey future me - everything long-lived (settings, db, clients, caches) is built
# ONCE in the lifespan (infrastructure/lifecycle.py) and hung on app.state.
# These helpers only read it back. Anything session-bound (repositories and the
# services wrapping them) is built per request on top of get_db_session.
def get_settings_dep(request: Request) -> Settings:
    """Settings the app was created with (tests inject their own)."""
    return cast(Settings, request.app.state.settings)


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state.

    Uses session_scope(): commit when the endpoint returns, rollback if it
    raises. Exception handlers run after the rollback.
    """
    db: Database = request.app.state.db
    async with db.session_scope() as session:
        yield session


def get_spotify_client(request: Request) -> SpotifyClient:
    return cast(SpotifyClient, request.app.state.spotify_client)


def get_app_token_provider(request: Request) -> AppTokenProvider:
    return cast(AppTokenProvider, request.app.state.app_token_provider)


def get_chart_cache(request: Request) -> ChartCache:
    return cast(ChartCache, request.app.state.chart_cache)


def get_discography_service(request: Request) -> DiscographyService:
    return cast(DiscographyService, request.app.state.discography_service)


def get_nl_search_service(request: Request) -> NaturalLanguageSearchService:
    return cast(NaturalLanguageSearchService, request.app.state.nl_search_service)


def get_spotify_auth_service(request: Request) -> SpotifyAuthService:
    return cast(SpotifyAuthService, request.app.state.spotify_auth_service)


async def get_review_service(
    session: AsyncSession = Depends(get_db_session),
) -> ReviewService:
    return ReviewService(AlbumReviewRepository(session))


async def get_user_service(
    session: AsyncSession = Depends(get_db_session),
) -> UserService:
    return UserService(UserRepository(session))


# The user token cache is process-wide (app.state) while the repository is per
# request. Refreshed tokens persist through this request's session.
async def get_user_token_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    spotify_client: SpotifyClient = Depends(get_spotify_client),
) -> UserTokenService:
    token_cache = cast(TokenCache, request.app.state.user_token_cache)
    return UserTokenService(spotify_client, UserRepository(session), token_cache)
