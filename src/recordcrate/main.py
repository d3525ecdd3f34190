"""FastAPI application factory.

Run with:

    uvicorn recordcrate.main:app --port 4000

or `recordcrate` (console script), which reads host/port from settings.
"""

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recordcrate import __version__
from recordcrate.api.exception_handlers import register_exception_handlers
from recordcrate.api.routers import api_router
from recordcrate.config import Settings, get_settings
from recordcrate.infrastructure.lifecycle import lifespan
from recordcrate.infrastructure.observability import RequestLoggingMiddleware


# Hey future me - settings and http_client are injection points for tests. With
# http_client set, every upstream client (Spotify, Billboard) uses it instead of
# the shared pool, so an httpx.MockTransport stands in for the real APIs.
def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Build the application. Nothing connects until the lifespan starts."""
    settings = settings or get_settings()

    app = FastAPI(
        title="RecordCrate API",
        version=__version__,
        description="Album reviews, Spotify linking and Billboard charts",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    uvicorn.run(
        "recordcrate.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )
