"""Spotify OAuth consent flow: authorization URL and CSRF state.

Hey future me - the state value is single-use. consume_state() pops it, so a
replayed callback (browser back button, double submit) fails the state check
instead of burning a second code exchange.
"""

import logging
import secrets
from dataclasses import dataclass

from recordcrate.application.cache.base_cache import InMemoryCache
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

STATE_TTL_SECONDS = 600


@dataclass
class AuthUrlResult:
    """Consent URL plus the state the callback must echo back."""

    authorization_url: str
    state: str


class SpotifyAuthService:
    """Builds consent URLs and verifies callback state."""

    def __init__(
        self,
        spotify_client: SpotifyClient,
        state_store: InMemoryCache[str, str],
        default_redirect_uri: str,
    ) -> None:
        self._client = spotify_client
        self._states = state_store
        self._default_redirect_uri = default_redirect_uri

    async def start_authorization(self, redirect_uri: str | None = None) -> AuthUrlResult:
        """Create a state value and the consent-screen URL carrying it.

        Raises:
            ConfigurationError: Spotify client id or redirect URI missing
        """
        redirect = redirect_uri or self._default_redirect_uri
        # Abandoned consent screens never reach consume_state
        swept = await self._states.cleanup_expired()
        if swept:
            logger.debug("Dropped %d expired OAuth states", swept)
        state = secrets.token_urlsafe(24)
        url = self._client.build_authorization_url(state, redirect)
        # The redirect URI is remembered so the exchange uses the exact same value
        await self._states.set(state, redirect, ttl_seconds=STATE_TTL_SECONDS)
        return AuthUrlResult(authorization_url=url, state=state)

    async def consume_state(self, state: str | None) -> str | None:
        """Validate and invalidate a callback state.

        Returns:
            The redirect URI the state was issued for, or None if the state is
            unknown, expired or already used
        """
        if not state:
            return None
        redirect = await self._states.pop(state)
        if redirect is None:
            logger.warning("Rejected unknown or expired OAuth state")
        return redirect
