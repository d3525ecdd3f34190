"""Album review use cases: validation, rating normalization, persistence."""

import logging
from dataclasses import dataclass, field

from recordcrate.domain.entities import AlbumReview, ScoreModifiers, SongRating
from recordcrate.domain.exceptions import EntityNotFoundException, ValidationError
from recordcrate.domain.ports import IAlbumReviewRepository
from recordcrate.domain.value_objects import (
    RatingScale,
    clamp_percent,
    legacy_five_scale_to_percent,
    round_to_half_star,
    stars_to_percent,
)

logger = logging.getLogger(__name__)

MAX_WRITEUP_LENGTH = 350


@dataclass
class ReviewInput:
    """Fields a client may submit for a review; everything is optional."""

    overall_rating: float | None = None
    base_overall_rating: float | None = None
    adjusted_overall_rating: float | None = None
    score_modifiers: ScoreModifiers | None = None
    song_ratings: list[SongRating] = field(default_factory=list)
    writeup: str | None = None
    album_name: str | None = None
    album_artists: list[str] = field(default_factory=list)
    album_image: str | None = None
    rating_scale: str | None = None


def _require_id(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field_name} is required", field=field_name)
    return cleaned


class ReviewService:
    """Create, read and delete album reviews.

    Hey future me - every write path funnels the overall score through
    clamp_percent (directly or via stars_to_percent / the legacy conversion).
    Nothing reaches the repository outside [0, 100].
    """

    def __init__(self, repository: IAlbumReviewRepository) -> None:
        self._reviews = repository

    async def upsert_review(
        self, user_spotify_id: str, album_id: str, fields: ReviewInput
    ) -> AlbumReview:
        """Create or replace the (user, album) review.

        Raises:
            ValidationError: missing ids, no usable rating, bad song rating,
                writeup too long
            StoreError: persistence failed
        """
        user_spotify_id = _require_id(user_spotify_id, "userSpotifyId")
        album_id = _require_id(album_id, "albumId")

        writeup = fields.writeup or ""
        if len(writeup) > MAX_WRITEUP_LENGTH:
            raise ValidationError(
                f"writeup must be at most {MAX_WRITEUP_LENGTH} characters",
                field="writeup",
            )

        song_ratings = [self._normalize_song_rating(r) for r in fields.song_ratings]
        scale = RatingScale.from_string(fields.rating_scale)

        if fields.overall_rating is not None:
            overall = self._to_percent(fields.overall_rating, scale)
        elif song_ratings:
            overall = stars_to_percent(song_ratings)
        else:
            raise ValidationError(
                "overallRating or songRatings is required", field="overallRating"
            )

        review = AlbumReview(
            user_spotify_id=user_spotify_id,
            album_id=album_id,
            overall_rating=overall,
            base_overall_rating=self._optional_percent(
                fields.base_overall_rating, scale
            ),
            adjusted_overall_rating=self._optional_percent(
                fields.adjusted_overall_rating, scale
            ),
            score_modifiers=fields.score_modifiers,
            song_ratings=song_ratings,
            writeup=writeup,
            album_name=fields.album_name,
            album_artists=[a for a in fields.album_artists if a],
            album_image=fields.album_image,
            rating_scale=RatingScale.PERCENT,
        )
        saved = await self._reviews.upsert(review)
        logger.info(
            "Saved review user=%s album=%s rating=%d",
            user_spotify_id,
            album_id,
            saved.overall_rating,
        )
        return saved

    async def get_review(self, user_spotify_id: str, album_id: str) -> AlbumReview:
        """Single review lookup.

        Raises:
            EntityNotFoundException: no review for the pair
        """
        review = await self._reviews.get(user_spotify_id, album_id)
        if review is None:
            raise EntityNotFoundException(
                "AlbumReview", f"{user_spotify_id}/{album_id}"
            )
        return review

    async def get_by_album(self, album_id: str, limit: int = 100) -> list[AlbumReview]:
        return await self._reviews.list_by_album(album_id, limit=limit)

    async def get_by_user(
        self, user_spotify_id: str, album_id: str | None = None, limit: int = 200
    ) -> list[AlbumReview]:
        return await self._reviews.list_by_user(
            user_spotify_id, album_id=album_id, limit=limit
        )

    async def get_recent_feed(self, limit: int = 200) -> list[AlbumReview]:
        return await self._reviews.list_recent(limit=limit)

    async def delete_review(self, user_spotify_id: str, album_id: str) -> AlbumReview:
        """Delete the (user, album) review.

        Raises:
            EntityNotFoundException: nothing to delete (every repeated call too)
        """
        deleted = await self._reviews.delete(user_spotify_id, album_id)
        if deleted is None:
            raise EntityNotFoundException(
                "AlbumReview", f"{user_spotify_id}/{album_id}"
            )
        logger.info("Deleted review user=%s album=%s", user_spotify_id, album_id)
        return deleted

    async def migrate_legacy_ratings(self) -> int:
        """Convert stored five_star rows to percent; returns rows changed."""
        converted = await self._reviews.migrate_legacy_ratings()
        if converted:
            logger.info("Migrated %d legacy 0-5 reviews to percent", converted)
        return converted

    @staticmethod
    def _to_percent(value: float, scale: RatingScale) -> int:
        if scale is RatingScale.FIVE_STAR:
            return legacy_five_scale_to_percent(value)
        return clamp_percent(value)

    @classmethod
    def _optional_percent(cls, value: float | None, scale: RatingScale) -> int | None:
        return None if value is None else cls._to_percent(value, scale)

    @staticmethod
    def _normalize_song_rating(rating: SongRating) -> SongRating:
        track_id = (rating.track_id or "").strip()
        if not track_id:
            raise ValidationError(
                "Every song rating needs a trackId", field="songRatings"
            )
        return SongRating(
            track_id=track_id,
            track_name=rating.track_name,
            rating=round_to_half_star(rating.rating),
        )
