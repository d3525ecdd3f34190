"""Process-wide Spotify app token (client-credentials grant)."""

import asyncio
import logging

from recordcrate.application.cache.token_cache import TokenCache
from recordcrate.domain.ports import ISpotifyClient

logger = logging.getLogger(__name__)

APP_TOKEN_KEY = "app"  # nosec B105 - cache key, not a secret
DEFAULT_EXPIRES_IN = 3600


class AppTokenProvider:
    """Hands out the app access token used for catalog reads and chart enrichment.

    Hey future me - the lock is what stops a thundering herd. When the token
    expires and 20 requests arrive at once, the first one exchanges and the
    other 19 wait on the lock, then find the fresh token in the cache on the
    re-check. Exactly one call to the token endpoint.
    """

    def __init__(self, spotify_client: ISpotifyClient, cache: TokenCache) -> None:
        self._spotify = spotify_client
        self._cache = cache
        self._lock = asyncio.Lock()

    async def get_app_access_token(self) -> str:
        """Return a valid app token, exchanging credentials if needed.

        Raises:
            ConfigurationError: Spotify credentials missing
            ExternalServiceError: the grant failed
        """
        cached = await self._cache.get(APP_TOKEN_KEY)
        if cached is not None:
            return cached.token

        async with self._lock:
            cached = await self._cache.get(APP_TOKEN_KEY)
            if cached is not None:
                return cached.token

            data = await self._spotify.request_client_credentials()
            expires_in = float(data.get("expires_in") or DEFAULT_EXPIRES_IN)
            stored = await self._cache.set(
                APP_TOKEN_KEY, data["access_token"], expires_in
            )
            logger.info("Obtained Spotify app token (expires %s)", stored.expires_at)
            return stored.token

    async def invalidate(self) -> None:
        """Forget the cached token (e.g. after Spotify answered 401)."""
        await self._cache.invalidate(APP_TOKEN_KEY)
