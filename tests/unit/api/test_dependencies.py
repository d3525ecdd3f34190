"""Tests for the API dependency helpers."""

from types import SimpleNamespace
from typing import Any

from fastapi import Request

from recordcrate.api.dependencies import (
    get_db_session,
    get_review_service,
    get_settings_dep,
    get_spotify_client,
    get_user_token_service,
)
from recordcrate.application.cache.token_cache import TokenCache
from recordcrate.application.services.review_service import ReviewService
from recordcrate.config import Settings
from recordcrate.infrastructure.persistence import Database
from recordcrate.infrastructure.persistence.models import UserModel


def make_request(**state: Any) -> Request:
    app = SimpleNamespace(state=SimpleNamespace(**state))
    return Request({"type": "http", "app": app, "headers": []})


def test_reads_app_state(settings: Settings) -> None:
    client = object()
    request = make_request(settings=settings, spotify_client=client)

    assert get_settings_dep(request) is settings
    assert get_spotify_client(request) is client


async def test_session_commits_on_success(db: Database) -> None:
    request = make_request(db=db)

    async for session in get_db_session(request):
        session.add(UserModel(spotify_id="user1"))

    async with db.session_scope() as session:
        assert await session.get(UserModel, "user1") is not None


async def test_per_request_services_share_process_cache(db: Database) -> None:
    cache = TokenCache()
    request = make_request(user_token_cache=cache)

    async with db.session_scope() as session:
        review_service = await get_review_service(session)
        first = await get_user_token_service(request, session, spotify_client=object())  # type: ignore[arg-type]
        second = await get_user_token_service(request, session, spotify_client=object())  # type: ignore[arg-type]

    assert isinstance(review_service, ReviewService)
    assert first is not second
    assert first._cache is second._cache is cache
