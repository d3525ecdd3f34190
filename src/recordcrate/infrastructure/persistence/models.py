"""SQLAlchemy ORM models for RecordCrate."""

from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! UTC datetimes come back
# naive. Run every DB timestamp through this before comparing with datetime.now(UTC),
# otherwise you get "can't compare offset-naive and offset-aware" TypeErrors.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserModel(Base):
    """A RecordCrate user, keyed by Spotify id.

    The Spotify token columns live on the user row: one linked Spotify account
    per user. Rows are created by /users/sync or the OAuth callback and are
    never hard-deleted.
    """

    __tablename__ = "users"

    spotify_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # OAuth tokens (not encrypted, same trade-off as the single-user token table)
    spotify_access_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    spotify_refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    spotify_token_expires_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )


# Listen up - the UNIQUE (user_spotify_id, album_id) constraint is what makes the
# review upsert atomic. The repository relies on it as the ON CONFLICT target;
# dropping it in a migration would silently turn upserts into duplicate inserts.
# overall_rating is a Float only because legacy rows tagged five_star may hold
# half-star values like 3.5. Everything written today is an integer percent.
class AlbumReviewModel(Base):
    """One user's review of one album."""

    __tablename__ = "album_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_spotify_id: Mapped[str] = mapped_column(String(64), nullable=False)
    album_id: Mapped[str] = mapped_column(String(64), nullable=False)
    overall_rating: Mapped[float] = mapped_column(Float, nullable=False)
    base_overall_rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    adjusted_overall_rating: Mapped[float | None] = mapped_column(
        Float, nullable=True
    )
    score_modifiers: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True
    )
    song_ratings: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    writeup: Mapped[str] = mapped_column(Text, nullable=False, default="")
    album_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    album_artists: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    album_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating_scale: Mapped[str] = mapped_column(
        String(16), nullable=False, default="percent"
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "user_spotify_id", "album_id", name="uq_album_reviews_user_album"
        ),
        Index("ix_album_reviews_album_created", "album_id", "created_at"),
        Index("ix_album_reviews_user_updated", "user_spotify_id", "updated_at"),
        Index("ix_album_reviews_created_at", "created_at"),
    )
