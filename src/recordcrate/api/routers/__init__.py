"""API router initialization."""

# Hey future me, this is the main router aggregator. main.py mounts it at /api,
# and every router carries its own prefix (/reviews, /charts, ...), so the
# final paths are /api/reviews, /api/charts/hot-100 and so on.

from fastapi import APIRouter

from recordcrate.api.routers import (
    auth,
    catalog,
    charts,
    discography,
    health,
    reviews,
    search,
    spotify,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(reviews.router)
api_router.include_router(users.router)
api_router.include_router(auth.router)
api_router.include_router(charts.router)
api_router.include_router(discography.router)
api_router.include_router(search.router)
api_router.include_router(catalog.router)
api_router.include_router(spotify.router)

__all__ = ["api_router"]
