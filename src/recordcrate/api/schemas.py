"""Request and response models for the REST API.

JSON on the wire is camelCase (userSpotifyId, overallRating, ...) to match
what the web client has always sent. Models accept snake_case too so tests and
internal callers can use field names directly.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recordcrate.application.services.review_service import ReviewInput
from recordcrate.domain.entities import AlbumReview, ScoreModifiers, SongRating, User
from recordcrate.domain.value_objects import percent_to_stars


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Reviews
# =============================================================================


class SongRatingSchema(CamelModel):
    track_id: str = Field("", description="Spotify track id")
    track_name: str = ""
    rating: float = Field(..., description="0-5 stars, rounded to half stars")


class ScoreModifiersSchema(CamelModel):
    emotional_story_connection: float = 0
    cohesion_and_flow: float = 0
    artist_identity_originality: float = 0
    visual_aesthetic_ecosystem: float = 0


class AlbumMetaSchema(CamelModel):
    name: str | None = None
    artists: list[str] = Field(default_factory=list)
    image: str | None = None


class ReviewUpsertRequest(CamelModel):
    """Body of POST /api/reviews."""

    user_spotify_id: str = ""
    album_id: str = ""
    overall_rating: float | None = Field(
        None, description="0-100 percent; derived from songRatings when omitted"
    )
    base_overall_rating: float | None = None
    adjusted_overall_rating: float | None = None
    score_modifiers: ScoreModifiersSchema | None = None
    song_ratings: list[SongRatingSchema] = Field(default_factory=list)
    writeup: str | None = None
    album_meta: AlbumMetaSchema | None = None
    rating_scale: str | None = Field(
        None, description='"percent" (default) or "five_star" for legacy clients'
    )

    def to_input(self) -> ReviewInput:
        meta = self.album_meta or AlbumMetaSchema()
        modifiers = (
            ScoreModifiers(**self.score_modifiers.model_dump())
            if self.score_modifiers
            else None
        )
        return ReviewInput(
            overall_rating=self.overall_rating,
            base_overall_rating=self.base_overall_rating,
            adjusted_overall_rating=self.adjusted_overall_rating,
            score_modifiers=modifiers,
            song_ratings=[
                SongRating(track_id=r.track_id, track_name=r.track_name, rating=r.rating)
                for r in self.song_ratings
            ],
            writeup=self.writeup,
            album_name=meta.name,
            album_artists=meta.artists,
            album_image=meta.image,
            rating_scale=self.rating_scale,
        )


class ReviewResponse(CamelModel):
    id: int | None
    user_spotify_id: str
    album_id: str
    overall_rating: int = Field(..., description="0-100 percent")
    overall_stars: float = Field(..., description="overallRating as 0-5 half stars")
    base_overall_rating: int | None = None
    adjusted_overall_rating: int | None = None
    score_modifiers: ScoreModifiersSchema | None = None
    song_ratings: list[SongRatingSchema] = Field(default_factory=list)
    writeup: str = ""
    album_meta: AlbumMetaSchema
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, review: AlbumReview) -> "ReviewResponse":
        modifiers = review.score_modifiers
        return cls(
            id=review.id,
            user_spotify_id=review.user_spotify_id,
            album_id=review.album_id,
            overall_rating=review.overall_rating,
            overall_stars=percent_to_stars(review.overall_rating),
            base_overall_rating=review.base_overall_rating,
            adjusted_overall_rating=review.adjusted_overall_rating,
            score_modifiers=(
                ScoreModifiersSchema(
                    emotional_story_connection=modifiers.emotional_story_connection,
                    cohesion_and_flow=modifiers.cohesion_and_flow,
                    artist_identity_originality=modifiers.artist_identity_originality,
                    visual_aesthetic_ecosystem=modifiers.visual_aesthetic_ecosystem,
                )
                if modifiers
                else None
            ),
            song_ratings=[
                SongRatingSchema(
                    track_id=r.track_id, track_name=r.track_name, rating=r.rating
                )
                for r in review.song_ratings
            ],
            writeup=review.writeup,
            album_meta=AlbumMetaSchema(
                name=review.album_name,
                artists=review.album_artists,
                image=review.album_image,
            ),
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class ReviewDeleteResponse(CamelModel):
    message: str
    deleted_review: ReviewResponse


# =============================================================================
# Users
# =============================================================================


class UserSyncRequest(CamelModel):
    spotify_id: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None


class UserResponse(CamelModel):
    spotify_id: str
    display_name: str | None = None
    avatar_url: str | None = None
    spotify_linked: bool = Field(
        False, description="True when a refresh token is stored for the user"
    )
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            spotify_id=user.spotify_id,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            spotify_linked=user.tokens.is_linked,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


# =============================================================================
# Spotify auth
# =============================================================================


class AuthorizationUrlResponse(CamelModel):
    authorization_url: str
    state: str


class AuthCallbackRequest(CamelModel):
    code: str = ""
    state: str | None = None


class LinkedAccountResponse(CamelModel):
    user: UserResponse


class AccessTokenResponse(CamelModel):
    access_token: str
    expires_at: datetime


# =============================================================================
# Charts / search / health
# =============================================================================


class ChartEntrySchema(CamelModel):
    rank: int
    title: str
    artist: str


class RawChartResponse(CamelModel):
    success: bool = True
    tracks: list[ChartEntrySchema]
    source: str


class ChartPageResponse(CamelModel):
    tracks: list[dict[str, Any]]
    # Entries of this page with no catalog match and no matched neighbour to ride on
    skipped: list[ChartEntrySchema] = Field(default_factory=list)
    total: int
    has_more: bool
    source: str
    page: int


class TopTracksResponse(CamelModel):
    entries: list[dict[str, Any]]
    has_more: bool = False
    source: str


class NaturalLanguageRequest(CamelModel):
    query: str | None = None


class SearchHealthResponse(CamelModel):
    status: str = "ok"
    gemini_configured: bool
    service: str = "natural-language-search"


class HealthResponse(BaseModel):
    ok: bool
    service: str
    time: datetime
