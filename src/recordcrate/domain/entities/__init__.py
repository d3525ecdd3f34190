"""Domain entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from recordcrate.domain.value_objects import RatingScale


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class SongRating:
    """A single track rating, 0-5 stars in half-star steps."""

    track_id: str
    rating: float
    track_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackId": self.track_id,
            "trackName": self.track_name,
            "rating": self.rating,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SongRating":
        return cls(
            track_id=str(data.get("trackId", "")),
            track_name=str(data.get("trackName") or ""),
            rating=float(data.get("rating", 0)),
        )


@dataclass(frozen=True)
class ScoreModifiers:
    """Signed adjustments applied on top of the base overall rating."""

    emotional_story_connection: float = 0.0
    cohesion_and_flow: float = 0.0
    artist_identity_originality: float = 0.0
    visual_aesthetic_ecosystem: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.emotional_story_connection
            + self.cohesion_and_flow
            + self.artist_identity_originality
            + self.visual_aesthetic_ecosystem
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "emotionalStoryConnection": self.emotional_story_connection,
            "cohesionAndFlow": self.cohesion_and_flow,
            "artistIdentityOriginality": self.artist_identity_originality,
            "visualAestheticEcosystem": self.visual_aesthetic_ecosystem,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ScoreModifiers":
        data = data or {}
        return cls(
            emotional_story_connection=float(data.get("emotionalStoryConnection", 0)),
            cohesion_and_flow=float(data.get("cohesionAndFlow", 0)),
            artist_identity_originality=float(data.get("artistIdentityOriginality", 0)),
            visual_aesthetic_ecosystem=float(data.get("visualAestheticEcosystem", 0)),
        )


@dataclass
class AlbumReview:
    """One user's review of one album.

    Hey future me - (user_spotify_id, album_id) is UNIQUE. There is never a
    second AlbumReview for the same pair; resubmitting updates this one.
    overall_rating is always percent (0-100) by the time it reaches an entity.
    """

    user_spotify_id: str
    album_id: str
    overall_rating: int
    id: int | None = None
    base_overall_rating: int | None = None
    adjusted_overall_rating: int | None = None
    score_modifiers: ScoreModifiers | None = None
    song_ratings: list[SongRating] = field(default_factory=list)
    writeup: str = ""
    album_name: str | None = None
    album_artists: list[str] = field(default_factory=list)
    album_image: str | None = None
    rating_scale: RatingScale = RatingScale.PERCENT
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class SpotifyTokenState:
    """Per-user Spotify OAuth tokens."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None

    @property
    def is_linked(self) -> bool:
        """A refresh token is the only thing needed to mint access tokens."""
        return bool(self.refresh_token)

    def access_token_valid(self, now: datetime, margin: timedelta) -> bool:
        """True if the stored access token can still be used at ``now``."""
        if not self.access_token or self.expires_at is None:
            return False
        return now < self.expires_at - margin


@dataclass
class User:
    """A RecordCrate user keyed by Spotify id."""

    spotify_id: str
    display_name: str | None = None
    avatar_url: str | None = None
    tokens: SpotifyTokenState = field(default_factory=SpotifyTokenState)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class ChartEntry:
    """One row of a chart: position, song title and credited artist."""

    rank: int
    title: str
    artist: str

    def to_dict(self) -> dict[str, Any]:
        return {"rank": self.rank, "title": self.title, "artist": self.artist}


@dataclass(frozen=True)
class StreamingChartRow:
    """One row of the Spotify daily streaming chart CSV."""

    position: int
    track_name: str
    artists: tuple[str, ...]
    streams: int
    track_id: str

    @property
    def external_url(self) -> str:
        return f"https://open.spotify.com/track/{self.track_id}"


__all__ = [
    "AlbumReview",
    "ChartEntry",
    "StreamingChartRow",
    "ScoreModifiers",
    "SongRating",
    "SpotifyTokenState",
    "User",
    "utc_now",
]
