"""Application services (use cases)."""

from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.application.services.charts_service import ChartsService
from recordcrate.application.services.discography_service import DiscographyService
from recordcrate.application.services.nl_search_service import (
    NaturalLanguageSearchService,
)
from recordcrate.application.services.review_service import ReviewInput, ReviewService
from recordcrate.application.services.spotify_auth_service import SpotifyAuthService
from recordcrate.application.services.user_service import UserService
from recordcrate.application.services.user_token_service import UserTokenService

__all__ = [
    "AppTokenProvider",
    "ChartsService",
    "DiscographyService",
    "NaturalLanguageSearchService",
    "ReviewInput",
    "ReviewService",
    "SpotifyAuthService",
    "UserService",
    "UserTokenService",
]
