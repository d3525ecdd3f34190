"""Application lifecycle management for startup and shutdown tasks.

Everything long-lived is built here once and attached to app.state:

    settings, db, spotify_client, billboard_client, gemini_client,
    app_token_provider, user_token_cache, charts_service, chart_cache,
    spotify_auth_service, nl_search_service, discography_service,
    startup_time

api/dependencies.py reads these back per request.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import FastAPI

from recordcrate.application.cache.base_cache import InMemoryCache
from recordcrate.application.cache.chart_cache import ChartCache
from recordcrate.application.cache.token_cache import TokenCache
from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.application.services.charts_service import ChartsService
from recordcrate.application.services.discography_service import DiscographyService
from recordcrate.application.services.nl_search_service import (
    NaturalLanguageSearchService,
)
from recordcrate.application.services.review_service import ReviewService
from recordcrate.application.services.spotify_auth_service import SpotifyAuthService
from recordcrate.config import Settings, get_settings
from recordcrate.domain.exceptions import ConfigurationError
from recordcrate.infrastructure.integrations.billboard_client import BillboardClient
from recordcrate.infrastructure.integrations.gemini_client import GeminiClient
from recordcrate.infrastructure.integrations.http_pool import HttpClientPool
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient
from recordcrate.infrastructure.integrations.streaming_chart_client import (
    StreamingChartClient,
)
from recordcrate.infrastructure.observability import configure_logging
from recordcrate.infrastructure.persistence import AlbumReviewRepository, Database

logger = logging.getLogger(__name__)


# Hey future me, this validates SQLite paths BEFORE we create the engine. SQLite
# needs to create -wal/-shm files next to the .db file, so the directory must be
# writable, not just existing. A clear ConfigurationError here beats a cryptic
# "unable to open database file" on the first request.
def _validate_sqlite_path(settings: Settings) -> None:
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        settings.ensure_directories()
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Database directory '{db_path.parent}' is not writable: {exc}. "
            "Update DATABASE_URL or adjust directory permissions."
        ) from exc
    logger.debug("Verified SQLite directory is writable: %s", db_path.parent)


def _settings_for(app: FastAPI) -> Settings:
    # create_app() may have injected test settings
    settings = getattr(app.state, "settings", None)
    if settings is None:
        settings = get_settings()
        app.state.settings = settings
    return settings


async def _init_database(settings: Settings) -> Database:
    _validate_sqlite_path(settings)
    db = Database(settings)
    if settings.database.auto_create_tables:
        await db.create_tables()
        logger.info("Database tables ensured")

    # Old clients stored 0-5 overall ratings; convert any that are left
    async with db.session_scope() as session:
        await ReviewService(AlbumReviewRepository(session)).migrate_legacy_ratings()
    return db


def _init_services(
    app: FastAPI, settings: Settings, http_client: httpx.AsyncClient | None
) -> None:
    spotify_client = SpotifyClient(settings.spotify, settings.http, http_client)
    billboard_client = BillboardClient(settings.charts, settings.http, http_client)
    gemini_client = GeminiClient(settings.gemini)

    margin = settings.spotify.token_safety_margin_seconds
    app_token_provider = AppTokenProvider(
        spotify_client, TokenCache(safety_margin_seconds=margin)
    )
    charts_service = ChartsService(
        billboard_client,
        spotify_client,
        app_token_provider,
        max_entries=settings.charts.max_entries,
    )

    app.state.spotify_client = spotify_client
    app.state.billboard_client = billboard_client
    app.state.gemini_client = gemini_client
    app.state.app_token_provider = app_token_provider
    app.state.user_token_cache = TokenCache(safety_margin_seconds=margin)
    app.state.charts_service = charts_service
    app.state.chart_cache = ChartCache(
        charts_service,
        ttl_hours=settings.charts.cache_ttl_hours,
        default_page_size=settings.charts.page_size,
    )
    app.state.spotify_auth_service = SpotifyAuthService(
        spotify_client,
        InMemoryCache[str, str](),
        default_redirect_uri=settings.spotify.redirect_uri,
    )
    app.state.nl_search_service = NaturalLanguageSearchService(gemini_client)
    app.state.discography_service = DiscographyService(
        StreamingChartClient(settings.charts, settings.http, http_client),
        spotify_client,
        app_token_provider,
    )

    if not settings.spotify.is_configured:
        logger.warning(
            "Spotify client credentials missing; catalog, charts enrichment "
            "and account linking are unavailable"
        )


# Listen future me, everything before `yield` runs at STARTUP, everything after
# at SHUTDOWN. The finally block runs even when startup crashed halfway, so each
# cleanup step checks whether its resource was actually created.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles:
    - Logging configuration
    - Database initialization and legacy rating migration
    - Upstream clients, token caches and the chart cache
    - Resource cleanup
    """
    settings = _settings_for(app)

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    try:
        app.state.db = await _init_database(settings)
        logger.info("Database initialized: %s", settings.database.url)

        _init_services(app, settings, getattr(app.state, "http_client", None))
        app.state.startup_time = datetime.now(UTC)
        logger.info("Application startup complete")

        yield
    finally:
        logger.info("Shutting down application")

        if hasattr(app.state, "db"):
            try:
                await app.state.db.close()
                logger.info("Database connection closed")
            except Exception as e:
                logger.exception("Error closing database: %s", e)

        try:
            await HttpClientPool.close()
            logger.info("HTTP client pool closed")
        except Exception as e:
            logger.exception("Error closing HTTP client pool: %s", e)
