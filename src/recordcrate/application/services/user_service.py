"""User profile sync and lookup."""

import logging

from recordcrate.domain.entities import User
from recordcrate.domain.exceptions import EntityNotFoundException, ValidationError
from recordcrate.domain.ports import IUserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Keeps the users table in step with the client's Spotify profile."""

    def __init__(self, repository: IUserRepository) -> None:
        self._users = repository

    async def sync_user(
        self,
        spotify_id: str | None,
        display_name: str | None = None,
        avatar_url: str | None = None,
    ) -> User:
        """Create or refresh a user from the client's Spotify profile.

        Raises:
            ValidationError: spotifyId missing
        """
        spotify_id = (spotify_id or "").strip()
        if not spotify_id:
            raise ValidationError("spotifyId is required", field="spotifyId")
        user = await self._users.upsert_profile(spotify_id, display_name, avatar_url)
        logger.debug("Synced user %s", spotify_id)
        return user

    async def get_user(self, spotify_id: str) -> User:
        """Raises EntityNotFoundException when the user never synced."""
        user = await self._users.get_by_spotify_id(spotify_id)
        if user is None:
            raise EntityNotFoundException("User", spotify_id)
        return user
