"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from recordcrate.domain.entities import AlbumReview, User


class IAlbumReviewRepository(ABC):
    """Repository interface for AlbumReview entities."""

    @abstractmethod
    async def upsert(self, review: AlbumReview) -> AlbumReview:
        """Insert or update the review keyed by (user_spotify_id, album_id)."""
        pass

    @abstractmethod
    async def get(self, user_spotify_id: str, album_id: str) -> AlbumReview | None:
        """Get a single review by its compound key."""
        pass

    @abstractmethod
    async def list_by_album(self, album_id: str, limit: int = 100) -> list[AlbumReview]:
        """Reviews of one album, newest created first."""
        pass

    @abstractmethod
    async def list_by_user(
        self, user_spotify_id: str, album_id: str | None = None, limit: int = 200
    ) -> list[AlbumReview]:
        """Reviews by one user, newest updated first."""
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 200) -> list[AlbumReview]:
        """All reviews, newest created first."""
        pass

    @abstractmethod
    async def delete(self, user_spotify_id: str, album_id: str) -> AlbumReview | None:
        """Delete by compound key; None when nothing matched."""
        pass

    @abstractmethod
    async def migrate_legacy_ratings(self) -> int:
        """Convert rows still tagged with the 0-5 scale to percent."""
        pass


class IUserRepository(ABC):
    """Repository interface for User entities."""

    @abstractmethod
    async def upsert_profile(
        self,
        spotify_id: str,
        display_name: str | None,
        avatar_url: str | None,
    ) -> User:
        """Create or refresh a user's profile fields."""
        pass

    @abstractmethod
    async def get_by_spotify_id(self, spotify_id: str) -> User | None:
        """Get a user by Spotify id."""
        pass

    @abstractmethod
    async def save_tokens(
        self,
        spotify_id: str,
        access_token: str,
        expires_at: datetime,
        refresh_token: str | None = None,
    ) -> bool:
        """Persist a new access token (and rotated refresh token, if any)."""
        pass


class ISpotifyClient(ABC):
    """Port for the Spotify Accounts service and Web API."""

    @abstractmethod
    async def request_client_credentials(self) -> dict[str, Any]:
        """Client-credentials grant."""
        pass

    @abstractmethod
    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Authorization-code grant."""
        pass

    @abstractmethod
    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Refresh-token grant."""
        pass

    @abstractmethod
    async def search(
        self, query: str, types: list[str], access_token: str, limit: int = 20
    ) -> dict[str, Any]:
        """Catalog search."""
        pass

    @abstractmethod
    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """Profile of the token's owner."""
        pass


__all__ = [
    "IAlbumReviewRepository",
    "ISpotifyClient",
    "IUserRepository",
]
