"""Unit tests for the request logging middleware."""

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from recordcrate.infrastructure.observability import RequestLoggingMiddleware
from recordcrate.infrastructure.observability.middleware import CORRELATION_HEADER


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/api/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/things")
    async def things() -> dict[str, list[str]]:
        return {"items": []}

    return app


def test_echoes_incoming_correlation_id(app: FastAPI) -> None:
    with TestClient(app) as client:
        response = client.get("/api/things", headers={CORRELATION_HEADER: "abc-123"})

    assert response.headers[CORRELATION_HEADER] == "abc-123"


def test_mints_correlation_id(app: FastAPI) -> None:
    with TestClient(app) as client:
        first = client.get("/api/things").headers[CORRELATION_HEADER]
        second = client.get("/api/things").headers[CORRELATION_HEADER]

    assert first and second and first != second


def test_health_check_not_logged(app: FastAPI, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="recordcrate.infrastructure.observability.middleware")

    with TestClient(app) as client:
        client.get("/api/health")
        client.get("/api/things")

    messages = [r.getMessage() for r in caplog.records]
    assert not any("/api/health" in m for m in messages)
    assert any("GET /api/things → 200" in m for m in messages)
