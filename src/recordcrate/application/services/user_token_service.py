"""Per-user Spotify token lifecycle.

Hey future me - lookup order for a user's access token:

    1. in-memory TokenCache (margin applied at set time)
    2. the token persisted on the users row, if still valid minus the margin
    3. refresh grant with the stored refresh token

A failed refresh NEVER clears the stored tokens and NEVER raises to the caller.
It returns None, which routers translate to 401 "reauthorization required".
Spotify outages shouldn't log people out permanently.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from recordcrate.application.cache.token_cache import CachedToken, TokenCache
from recordcrate.domain.entities import User
from recordcrate.domain.exceptions import (
    AuthExchangeError,
    ConfigurationError,
    StoreError,
    TokenRefreshException,
    ValidationError,
)
from recordcrate.domain.ports import ISpotifyClient, IUserRepository

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


@dataclass
class TokenGrant:
    """Tokens returned by the authorization-code grant.

    refresh_token may be None on refresh responses; Spotify only sometimes
    rotates it.
    """

    access_token: str
    refresh_token: str | None
    expires_in: int
    scope: str | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "TokenGrant":
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=int(data.get("expires_in") or DEFAULT_EXPIRES_IN),
            scope=data.get("scope"),
        )


class UserTokenService:
    """Resolves, refreshes and links per-user Spotify tokens."""

    def __init__(
        self,
        spotify_client: ISpotifyClient,
        user_repository: IUserRepository,
        token_cache: TokenCache,
    ) -> None:
        self._spotify = spotify_client
        self._users = user_repository
        self._cache = token_cache

    async def get_user_token(self, spotify_id: str) -> CachedToken | None:
        """Return a usable token (with expiry) for the user, or None."""
        cached = await self._cache.get(spotify_id)
        if cached is not None:
            return cached

        async with self._cache.lock_for(spotify_id):
            # Another request may have refreshed while we waited
            cached = await self._cache.get(spotify_id)
            if cached is not None:
                return cached

            user = await self._users.get_by_spotify_id(spotify_id)
            if user is None:
                return None

            tokens = user.tokens
            if tokens.access_token and tokens.access_token_valid(
                self._cache.now(), self._cache.safety_margin
            ):
                assert tokens.expires_at is not None
                return await self._cache.put(
                    spotify_id, tokens.access_token, tokens.expires_at
                )

            return await self._refresh_locked(user)

    async def get_user_access_token(self, spotify_id: str) -> str | None:
        """Bearer token for the user, or None when reauthorization is required."""
        cached = await self.get_user_token(spotify_id)
        return cached.token if cached else None

    async def refresh_user_token(self, user: User) -> CachedToken | None:
        """Force a refresh grant for the user.

        Returns:
            The new token, or None when the user has no refresh token or the
            refresh failed (stored tokens are left as they were)
        """
        async with self._cache.lock_for(user.spotify_id):
            return await self._refresh_locked(user)

    async def _refresh_locked(self, user: User) -> CachedToken | None:
        refresh_token = user.tokens.refresh_token
        if not refresh_token:
            logger.info("User %s has no Spotify refresh token", user.spotify_id)
            return None

        try:
            data = await self._spotify.refresh_token(refresh_token)
        except TokenRefreshException as e:
            logger.warning(
                "Spotify refresh rejected for %s (%s, reauth=%s): %s",
                user.spotify_id,
                e.error_code,
                e.requires_reauth,
                e.message,
            )
            return None
        except ConfigurationError as e:
            logger.error("Spotify refresh unavailable for %s: %s", user.spotify_id, e)
            return None
        except httpx.HTTPError as e:
            logger.error("Spotify refresh failed for %s: %s", user.spotify_id, e)
            return None

        grant = TokenGrant.from_response(data)
        cached = await self._cache.set(
            user.spotify_id, grant.access_token, grant.expires_in
        )
        try:
            await self._users.save_tokens(
                user.spotify_id,
                access_token=grant.access_token,
                expires_at=cached.expires_at,
                refresh_token=grant.refresh_token,
            )
        except StoreError as e:
            # The token is still good for this process; the next refresh persists it
            logger.error(
                "Could not persist refreshed token for %s: %s", user.spotify_id, e
            )
        logger.info("Refreshed Spotify token for %s", user.spotify_id)
        return cached

    async def exchange_authorization_code(
        self, code: str, redirect_uri: str
    ) -> TokenGrant:
        """Authorization-code grant.

        Raises:
            ValidationError: empty code
            AuthExchangeError: Spotify rejected the code or redirect URI
        """
        if not code or not code.strip():
            raise ValidationError("Authorization code is required", field="code")
        data = await self._spotify.exchange_code(code, redirect_uri)
        if "access_token" not in data:
            raise AuthExchangeError("invalid_response", "No access_token in response")
        return TokenGrant.from_response(data)

    async def link_spotify_account(self, code: str, redirect_uri: str) -> User:
        """Exchange the code, fetch the Spotify profile and store user + tokens.

        Raises:
            AuthExchangeError: exchange rejected, or the grant had no refresh token
            ExternalServiceError: profile lookup failed
        """
        grant = await self.exchange_authorization_code(code, redirect_uri)
        if not grant.refresh_token:
            raise AuthExchangeError(
                "invalid_response", "Spotify did not return a refresh token"
            )

        profile = await self._spotify.get_current_user(grant.access_token)
        spotify_id = str(profile.get("id") or "")
        if not spotify_id:
            raise AuthExchangeError("invalid_response", "Profile has no user id")

        images = profile.get("images") or []
        avatar_url = images[0].get("url") if images else None
        await self._users.upsert_profile(
            spotify_id, profile.get("display_name"), avatar_url
        )

        cached = await self._cache.set(spotify_id, grant.access_token, grant.expires_in)
        await self._users.save_tokens(
            spotify_id,
            access_token=grant.access_token,
            expires_at=cached.expires_at,
            refresh_token=grant.refresh_token,
        )
        logger.info("Linked Spotify account %s", spotify_id)

        user = await self._users.get_by_spotify_id(spotify_id)
        assert user is not None
        return user
