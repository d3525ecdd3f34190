"""Shared fixtures.

Hey future me - nothing here talks to the network. Upstream APIs (Spotify,
Billboard) are served by ``UpstreamStub`` through ``httpx.MockTransport``, and
the database is a throwaway SQLite file per test.
"""

import json
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from recordcrate.config import (
    ChartSettings,
    DatabaseSettings,
    GeminiSettings,
    Settings,
    SpotifySettings,
)
from recordcrate.infrastructure.persistence.database import Database
from recordcrate.main import create_app

Handler = Callable[[httpx.Request], httpx.Response]


class UpstreamStub:
    """Routes requests by (METHOD, host + path) to canned responses.

    Unrouted requests get a 404 so a missing stub shows up as a failed
    upstream call, not a hang. Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, url: str, handler: Handler) -> None:
        parsed = httpx.URL(url)
        self.routes[(method.upper(), f"{parsed.host}{parsed.path}")] = handler

    def json(self, method: str, url: str, body: Any, status_code: int = 200) -> None:
        self.add(method, url, lambda _r: httpx.Response(status_code, json=body))

    def text(self, method: str, url: str, body: str, status_code: int = 200) -> None:
        self.add(method, url, lambda _r: httpx.Response(status_code, text=body))

    def count(self, method: str, url: str) -> int:
        parsed = httpx.URL(url)
        return sum(
            1
            for r in self.calls
            if r.method == method.upper()
            and f"{r.url.host}{r.url.path}" == f"{parsed.host}{parsed.path}"
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, f"{request.url.host}{request.url.path}"))
        if handler is None:
            return httpx.Response(404, json={"error": "not stubbed"})
        return handler(request)


def form_body(request: httpx.Request) -> dict[str, str]:
    """Decode an x-www-form-urlencoded request body."""
    return dict(httpx.QueryParams(request.content.decode()))


def json_body(request: httpx.Request) -> dict[str, Any]:
    return json.loads(request.content.decode())


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def http_client(upstream: UpstreamStub) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a temp SQLite file and dummy Spotify credentials."""
    return Settings(
        database=DatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'recordcrate.db'}",
            auto_create_tables=True,
        ),
        spotify=SpotifySettings(
            client_id="test-client-id",
            client_secret="test-client-secret",
            redirect_uri="http://localhost:5173/callback",
        ),
        gemini=GeminiSettings(api_key=""),
        charts=ChartSettings(
            rss_url="https://billboard.test/charts/hot-100/feed/",
            html_url="https://billboard.test/charts/hot-100/",
            streaming_csv_url="https://spotifycharts.test/regional/global/daily/latest/download",
        ),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
def client(settings: Settings, http_client: httpx.AsyncClient) -> Iterator[TestClient]:
    """TestClient with the lifespan running (tables created, services wired)."""
    app = create_app(settings=settings, http_client=http_client)
    with TestClient(app) as test_client:
        yield test_client
