"""Unit tests for ReviewService (validation and rating normalization)."""

from typing import Any

import pytest
from pytest_mock import MockerFixture

from recordcrate.application.services.review_service import (
    MAX_WRITEUP_LENGTH,
    ReviewInput,
    ReviewService,
)
from recordcrate.domain.entities import AlbumReview, SongRating
from recordcrate.domain.exceptions import (
    EntityNotFoundException,
    InvalidRatingInput,
    ValidationError,
)


@pytest.fixture
def repository(mocker: MockerFixture) -> Any:
    repo = mocker.Mock()

    async def echo_upsert(review: AlbumReview) -> AlbumReview:
        review.id = 1
        return review

    repo.upsert = mocker.AsyncMock(side_effect=echo_upsert)
    repo.get = mocker.AsyncMock(return_value=None)
    repo.delete = mocker.AsyncMock(return_value=None)
    repo.migrate_legacy_ratings = mocker.AsyncMock(return_value=0)
    return repo


@pytest.fixture
def service(repository: Any) -> ReviewService:
    return ReviewService(repository)


class TestUpsertValidation:
    @pytest.mark.parametrize(("user", "album"), [("", "alb"), ("u1", ""), ("  ", "alb")])
    async def test_missing_ids_raise_before_io(
        self, service: ReviewService, repository: Any, user: str, album: str
    ) -> None:
        with pytest.raises(ValidationError):
            await service.upsert_review(user, album, ReviewInput(overall_rating=80))
        repository.upsert.assert_not_awaited()

    async def test_no_rating_at_all_raises(self, service: ReviewService) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await service.upsert_review("u1", "alb", ReviewInput())
        assert exc_info.value.field == "overallRating"

    async def test_writeup_over_limit_raises(self, service: ReviewService) -> None:
        fields = ReviewInput(overall_rating=80, writeup="x" * (MAX_WRITEUP_LENGTH + 1))

        with pytest.raises(ValidationError):
            await service.upsert_review("u1", "alb", fields)

    async def test_song_rating_without_track_id_raises(
        self, service: ReviewService
    ) -> None:
        fields = ReviewInput(song_ratings=[SongRating(track_id="", rating=4)])

        with pytest.raises(ValidationError):
            await service.upsert_review("u1", "alb", fields)

    async def test_nan_rating_raises(self, service: ReviewService) -> None:
        with pytest.raises(InvalidRatingInput):
            await service.upsert_review(
                "u1", "alb", ReviewInput(overall_rating=float("nan"))
            )


class TestUpsertNormalization:
    async def test_direct_percent_is_clamped(self, service: ReviewService) -> None:
        review = await service.upsert_review("u1", "alb", ReviewInput(overall_rating=140))
        assert review.overall_rating == 100

    async def test_overall_derived_from_song_ratings(
        self, service: ReviewService
    ) -> None:
        fields = ReviewInput(
            song_ratings=[
                SongRating(track_id="t1", rating=5),
                SongRating(track_id="t2", rating=4),
            ]
        )

        review = await service.upsert_review("u1", "alb", fields)

        assert review.overall_rating == 90

    async def test_song_ratings_rounded_to_half_stars(
        self, service: ReviewService
    ) -> None:
        fields = ReviewInput(
            overall_rating=70, song_ratings=[SongRating(track_id="t1", rating=3.74)]
        )

        review = await service.upsert_review("u1", "alb", fields)

        assert review.song_ratings[0].rating == 3.5

    async def test_direct_rating_wins_over_song_ratings(
        self, service: ReviewService
    ) -> None:
        fields = ReviewInput(
            overall_rating=55, song_ratings=[SongRating(track_id="t1", rating=5)]
        )

        review = await service.upsert_review("u1", "alb", fields)

        assert review.overall_rating == 55

    async def test_legacy_five_star_client_is_converted(
        self, service: ReviewService
    ) -> None:
        fields = ReviewInput(
            overall_rating=4.5, base_overall_rating=4, rating_scale="five_star"
        )

        review = await service.upsert_review("u1", "alb", fields)

        assert review.overall_rating == 90
        assert review.base_overall_rating == 80

    async def test_empty_artist_names_are_dropped(self, service: ReviewService) -> None:
        fields = ReviewInput(overall_rating=80, album_artists=["SZA", ""])

        review = await service.upsert_review("u1", "alb", fields)

        assert review.album_artists == ["SZA"]


class TestLookupAndDelete:
    async def test_get_missing_review_raises_not_found(
        self, service: ReviewService
    ) -> None:
        with pytest.raises(EntityNotFoundException):
            await service.get_review("u1", "alb")

    async def test_delete_missing_review_raises_not_found_every_time(
        self, service: ReviewService
    ) -> None:
        for _ in range(2):
            with pytest.raises(EntityNotFoundException):
                await service.delete_review("u1", "alb")

    async def test_delete_returns_deleted_review(
        self, service: ReviewService, repository: Any
    ) -> None:
        deleted = AlbumReview(user_spotify_id="u1", album_id="alb", overall_rating=87)
        repository.delete.return_value = deleted

        assert await service.delete_review("u1", "alb") is deleted


async def test_migrate_legacy_ratings_reports_rows(
    service: ReviewService, repository: Any
) -> None:
    repository.migrate_legacy_ratings.return_value = 3

    assert await service.migrate_legacy_ratings() == 3
    repository.migrate_legacy_ratings.assert_awaited_once()
