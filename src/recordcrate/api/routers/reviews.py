"""Album review endpoints.

One review per (user, album). POST is an upsert: the second submission for the
same pair replaces the first and keeps its createdAt. Ratings are 0-100
percent on the wire; songRatings are 0-5 stars in half steps.
"""

from fastapi import APIRouter, Depends, Query

from recordcrate.api.dependencies import get_review_service
from recordcrate.api.schemas import (
    ReviewDeleteResponse,
    ReviewResponse,
    ReviewUpsertRequest,
)
from recordcrate.application.services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("", response_model=ReviewResponse)
async def upsert_review(
    body: ReviewUpsertRequest,
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    """Create or update the caller's review of an album."""
    review = await service.upsert_review(
        body.user_spotify_id, body.album_id, body.to_input()
    )
    return ReviewResponse.from_entity(review)


@router.get("", response_model=list[ReviewResponse])
async def recent_reviews(
    limit: int = Query(200, ge=1, le=500),
    service: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    """Newest reviews across all users (the activity feed)."""
    reviews = await service.get_recent_feed(limit=limit)
    return [ReviewResponse.from_entity(r) for r in reviews]


@router.get("/album/{album_id}", response_model=list[ReviewResponse])
async def reviews_for_album(
    album_id: str,
    limit: int = Query(100, ge=1, le=500),
    service: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    reviews = await service.get_by_album(album_id, limit=limit)
    return [ReviewResponse.from_entity(r) for r in reviews]


@router.get("/user/{spotify_id}", response_model=list[ReviewResponse])
async def reviews_for_user(
    spotify_id: str,
    album_id: str | None = Query(None, alias="albumId"),
    limit: int = Query(200, ge=1, le=500),
    service: ReviewService = Depends(get_review_service),
) -> list[ReviewResponse]:
    """A user's reviews, most recently edited first; optionally one album only."""
    reviews = await service.get_by_user(spotify_id, album_id=album_id, limit=limit)
    return [ReviewResponse.from_entity(r) for r in reviews]


# Hey future me - the single-review GET lives under /user/ so a user whose id is
# literally "album" or "user" still reaches it. DELETE keeps the short path; no
# other DELETE route shares its shape.
@router.get("/user/{spotify_id}/album/{album_id}", response_model=ReviewResponse)
async def get_review(
    spotify_id: str,
    album_id: str,
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    review = await service.get_review(spotify_id, album_id)
    return ReviewResponse.from_entity(review)


@router.delete("/{user_spotify_id}/{album_id}", response_model=ReviewDeleteResponse)
async def delete_review(
    user_spotify_id: str,
    album_id: str,
    service: ReviewService = Depends(get_review_service),
) -> ReviewDeleteResponse:
    """Delete a review. 404 when there is nothing to delete, also on repeats."""
    deleted = await service.delete_review(user_spotify_id, album_id)
    return ReviewDeleteResponse(
        message="Review deleted successfully",
        deleted_review=ReviewResponse.from_entity(deleted),
    )
