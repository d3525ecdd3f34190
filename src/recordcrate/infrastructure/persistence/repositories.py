"""Repository implementations for domain entities."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recordcrate.domain.entities import (
    AlbumReview,
    ScoreModifiers,
    SongRating,
    SpotifyTokenState,
    User,
)
from recordcrate.domain.exceptions import StoreError
from recordcrate.domain.ports import IAlbumReviewRepository, IUserRepository
from recordcrate.domain.value_objects import (
    RatingScale,
    clamp_percent,
    legacy_five_scale_to_percent,
)

from .models import AlbumReviewModel, UserModel, ensure_utc_aware, utc_now

logger = logging.getLogger(__name__)


# Hey future me - INSERT ... ON CONFLICT DO UPDATE is dialect-specific in SQLAlchemy.
# Both SQLite (3.24+) and PostgreSQL speak it, with RETURNING on top (SQLite 3.35+).
# Anything else has no atomic upsert here, so we refuse instead of falling back to
# select-then-insert (that's exactly the race that produced duplicate reviews).
def _dialect_insert(session: AsyncSession, model: Any) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise StoreError(f"upsert (unsupported dialect {dialect})")


def _percent_or_none(value: float | None, scale: RatingScale) -> int | None:
    if value is None:
        return None
    if scale is RatingScale.FIVE_STAR:
        return legacy_five_scale_to_percent(value)
    return clamp_percent(value)


class AlbumReviewRepository(IAlbumReviewRepository):
    """Repository for album reviews.

    All writes are single statements so concurrent submissions for the same
    (user, album) pair can't interleave. The session's transaction is committed
    by whoever owns the session (request scope or Database.session_scope).
    """

    FEED_LIMIT = 200
    ALBUM_LIMIT = 100
    USER_LIMIT = 200

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def upsert(self, review: AlbumReview) -> AlbumReview:
        """Insert the review or replace the existing one for the same pair.

        created_at is only ever written by the INSERT branch, so the first
        submission time survives every update. updated_at is refreshed on both.

        Raises:
            StoreError: the statement failed
        """
        now = utc_now()
        values: dict[str, Any] = {
            "user_spotify_id": review.user_spotify_id,
            "album_id": review.album_id,
            "overall_rating": review.overall_rating,
            "base_overall_rating": review.base_overall_rating,
            "adjusted_overall_rating": review.adjusted_overall_rating,
            "score_modifiers": (
                review.score_modifiers.to_dict() if review.score_modifiers else None
            ),
            "song_ratings": [rating.to_dict() for rating in review.song_ratings],
            "writeup": review.writeup,
            "album_name": review.album_name,
            "album_artists": list(review.album_artists),
            "album_image": review.album_image,
            "rating_scale": review.rating_scale.value,
            "created_at": now,
            "updated_at": now,
        }

        stmt = _dialect_insert(self.session, AlbumReviewModel).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                AlbumReviewModel.user_spotify_id,
                AlbumReviewModel.album_id,
            ],
            set_={
                key: stmt.excluded[key]
                for key in values
                if key not in ("user_spotify_id", "album_id", "created_at")
            },
        ).returning(AlbumReviewModel)

        try:
            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            model = result.one()
        except SQLAlchemyError as e:
            logger.error(
                "Review upsert failed for user=%s album=%s: %s",
                review.user_spotify_id,
                review.album_id,
                e,
            )
            raise StoreError("upsert_review", e) from e

        return self._to_entity(model)

    async def get(self, user_spotify_id: str, album_id: str) -> AlbumReview | None:
        """Get a single review by (user, album)."""
        stmt = select(AlbumReviewModel).where(
            AlbumReviewModel.user_spotify_id == user_spotify_id,
            AlbumReviewModel.album_id == album_id,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_album(
        self, album_id: str, limit: int = ALBUM_LIMIT
    ) -> list[AlbumReview]:
        """Reviews of an album, newest first by creation time."""
        stmt = (
            select(AlbumReviewModel)
            .where(AlbumReviewModel.album_id == album_id)
            .order_by(AlbumReviewModel.created_at.desc(), AlbumReviewModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_by_user(
        self,
        user_spotify_id: str,
        album_id: str | None = None,
        limit: int = USER_LIMIT,
    ) -> list[AlbumReview]:
        """Reviews by a user, most recently updated first."""
        stmt = select(AlbumReviewModel).where(
            AlbumReviewModel.user_spotify_id == user_spotify_id
        )
        if album_id:
            stmt = stmt.where(AlbumReviewModel.album_id == album_id)
        stmt = stmt.order_by(
            AlbumReviewModel.updated_at.desc(), AlbumReviewModel.id.desc()
        ).limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_recent(self, limit: int = FEED_LIMIT) -> list[AlbumReview]:
        """Global feed, newest first by creation time."""
        stmt = (
            select(AlbumReviewModel)
            .order_by(AlbumReviewModel.created_at.desc(), AlbumReviewModel.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def delete(self, user_spotify_id: str, album_id: str) -> AlbumReview | None:
        """Delete by (user, album) in one statement.

        Returns:
            The deleted review, or None when no row matched

        Raises:
            StoreError: the statement failed
        """
        stmt = (
            delete(AlbumReviewModel)
            .where(
                AlbumReviewModel.user_spotify_id == user_spotify_id,
                AlbumReviewModel.album_id == album_id,
            )
            .returning(AlbumReviewModel)
        )
        try:
            result = await self.session.scalars(
                stmt, execution_options={"synchronize_session": False}
            )
            model = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error(
                "Review delete failed for user=%s album=%s: %s",
                user_spotify_id,
                album_id,
                e,
            )
            raise StoreError("delete_review", e) from e

        return self._to_entity(model) if model else None

    # Hey future me - this is the one-shot migration for rows imported from the old
    # 0-5 convention. The CASE mirrors legacy_five_scale_to_percent: <= 5 gets scaled,
    # anything above is already percent and only clamped. Rows are retagged in the
    # same statement, so running it again touches nothing.
    async def migrate_legacy_ratings(self) -> int:
        """Convert every five_star row to percent.

        Returns:
            Number of rows converted
        """
        rating = AlbumReviewModel.overall_rating
        stmt = (
            update(AlbumReviewModel)
            .where(AlbumReviewModel.rating_scale == RatingScale.FIVE_STAR.value)
            .values(
                overall_rating=case(
                    (rating < 0, 0),
                    (rating <= 5, func.round(rating * 20)),
                    (rating > 100, 100),
                    else_=func.round(rating),
                ),
                rating_scale=RatingScale.PERCENT.value,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("migrate_legacy_ratings", e) from e
        return result.rowcount or 0

    @staticmethod
    def _to_entity(model: AlbumReviewModel) -> AlbumReview:
        scale = RatingScale.from_string(model.rating_scale)
        overall = _percent_or_none(model.overall_rating, scale)
        return AlbumReview(
            id=model.id,
            user_spotify_id=model.user_spotify_id,
            album_id=model.album_id,
            overall_rating=overall if overall is not None else 0,
            base_overall_rating=_percent_or_none(model.base_overall_rating, scale),
            adjusted_overall_rating=_percent_or_none(
                model.adjusted_overall_rating, scale
            ),
            score_modifiers=(
                ScoreModifiers.from_dict(model.score_modifiers)
                if model.score_modifiers is not None
                else None
            ),
            song_ratings=[SongRating.from_dict(r) for r in model.song_ratings or []],
            writeup=model.writeup or "",
            album_name=model.album_name,
            album_artists=list(model.album_artists or []),
            album_image=model.album_image,
            # Converted on read above, so the entity is always percent
            rating_scale=RatingScale.PERCENT,
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )


class UserRepository(IUserRepository):
    """Repository for users and their linked Spotify tokens."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def upsert_profile(
        self,
        spotify_id: str,
        display_name: str | None,
        avatar_url: str | None,
    ) -> User:
        """Create the user or refresh display name and avatar.

        Token columns are never touched here, so a profile re-sync can't log
        anyone out.
        """
        now = utc_now()
        stmt = _dialect_insert(self.session, UserModel).values(
            spotify_id=spotify_id,
            display_name=display_name,
            avatar_url=avatar_url,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserModel.spotify_id],
            set_={
                "display_name": stmt.excluded.display_name,
                "avatar_url": stmt.excluded.avatar_url,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(UserModel)

        try:
            result = await self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            )
            model = result.one()
        except SQLAlchemyError as e:
            logger.error("User upsert failed for %s: %s", spotify_id, e)
            raise StoreError("upsert_user", e) from e
        return self._to_entity(model)

    async def get_by_spotify_id(self, spotify_id: str) -> User | None:
        """Get a user by Spotify id."""
        result = await self.session.execute(
            select(UserModel).where(UserModel.spotify_id == spotify_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    # Yo - refresh_token is optional because Spotify only SOMETIMES rotates it.
    # None means "keep the stored one", never "clear it".
    async def save_tokens(
        self,
        spotify_id: str,
        access_token: str,
        expires_at: datetime,
        refresh_token: str | None = None,
    ) -> bool:
        """Persist a new access token for the user.

        Returns:
            True if the user row exists and was updated
        """
        values: dict[str, Any] = {
            "spotify_access_token": access_token,
            "spotify_token_expires_at": expires_at,
            "updated_at": utc_now(),
        }
        if refresh_token:
            values["spotify_refresh_token"] = refresh_token

        stmt = (
            update(UserModel)
            .where(UserModel.spotify_id == spotify_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError("save_tokens", e) from e
        return bool(result.rowcount)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        expires_at = model.spotify_token_expires_at
        return User(
            spotify_id=model.spotify_id,
            display_name=model.display_name,
            avatar_url=model.avatar_url,
            tokens=SpotifyTokenState(
                access_token=model.spotify_access_token,
                refresh_token=model.spotify_refresh_token,
                expires_at=ensure_utc_aware(expires_at) if expires_at else None,
            ),
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )
