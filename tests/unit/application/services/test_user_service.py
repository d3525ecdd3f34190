"""Unit tests for UserService."""

from typing import Any

import pytest
from pytest_mock import MockerFixture

from recordcrate.application.services.user_service import UserService
from recordcrate.domain.entities import User
from recordcrate.domain.exceptions import EntityNotFoundException, ValidationError


@pytest.fixture
def repository(mocker: MockerFixture) -> Any:
    repo = mocker.Mock()
    repo.upsert_profile = mocker.AsyncMock(
        side_effect=lambda sid, name, avatar: User(
            spotify_id=sid, display_name=name, avatar_url=avatar
        )
    )
    repo.get_by_spotify_id = mocker.AsyncMock(return_value=None)
    return repo


class TestUserService:
    async def test_sync_requires_spotify_id(self, repository: Any) -> None:
        service = UserService(repository)

        with pytest.raises(ValidationError):
            await service.sync_user(None, "Name")
        repository.upsert_profile.assert_not_awaited()

    async def test_sync_upserts_profile(self, repository: Any) -> None:
        service = UserService(repository)

        user = await service.sync_user(" user-1 ", "Name", "https://img.test/a.jpg")

        assert user.spotify_id == "user-1"
        repository.upsert_profile.assert_awaited_once_with(
            "user-1", "Name", "https://img.test/a.jpg"
        )

    async def test_get_unknown_user_raises(self, repository: Any) -> None:
        with pytest.raises(EntityNotFoundException):
            await UserService(repository).get_user("ghost")
