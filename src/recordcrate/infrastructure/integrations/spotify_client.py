"""Spotify Accounts service and Web API client."""

import asyncio
import base64
import logging
from typing import Any, cast
from urllib.parse import urlencode

import httpx

from recordcrate.config.settings import HttpSettings, SpotifySettings
from recordcrate.domain.exceptions import (
    AuthExchangeError,
    ConfigurationError,
    ExternalServiceError,
    TokenRefreshException,
)
from recordcrate.domain.ports import ISpotifyClient
from recordcrate.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)

# Read-only scopes: profile, top items, saved library, listening history
SCOPES = (
    "user-read-private",
    "user-read-email",
    "user-top-read",
    "user-library-read",
    "user-read-recently-played",
)


class SpotifyClient(ISpotifyClient):
    """HTTP client for Spotify token grants and catalog reads.

    Token endpoint calls authenticate with HTTP Basic (client_id:client_secret);
    catalog calls use a bearer token supplied by the caller. This class never
    caches tokens itself - that's AppTokenProvider / UserTokenService territory.
    """

    AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
    TOKEN_URL = "https://accounts.spotify.com/api/token"  # nosec B105 - public endpoint URL
    API_BASE_URL = "https://api.spotify.com/v1"

    MAX_RATE_LIMIT_RETRIES = 1
    MAX_RETRY_AFTER_SECONDS = 5
    MAX_IDS_PER_REQUEST = 50

    # Hey future me - the http_client argument exists for tests (httpx.MockTransport).
    # In the app it stays None and we borrow the shared pool client per call.
    def __init__(
        self,
        settings: SpotifySettings,
        http_settings: HttpSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.http_settings = http_settings or HttpSettings()
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HttpClientPool.get_client(
            timeout=self.http_settings.timeout,
            max_keepalive=self.http_settings.max_keepalive,
            max_connections=self.http_settings.max_connections,
        )

    def _require_credentials(self) -> None:
        if not self.settings.is_configured:
            raise ConfigurationError(
                "SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set. "
                "Get credentials at https://developer.spotify.com/dashboard"
            )

    def _basic_auth_header(self) -> dict[str, str]:
        raw = f"{self.settings.client_id}:{self.settings.client_secret}".encode()
        return {
            "Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    async def _token_request(self, data: dict[str, str]) -> httpx.Response:
        self._require_credentials()
        client = await self._get_client()
        return await client.post(
            self.TOKEN_URL, data=data, headers=self._basic_auth_header()
        )

    @staticmethod
    def _error_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # ------------------------------------------------------------------
    # Accounts service
    # ------------------------------------------------------------------

    def build_authorization_url(self, state: str, redirect_uri: str | None = None) -> str:
        """Build the Spotify consent-screen URL.

        Raises:
            ConfigurationError: client_id or redirect_uri missing
        """
        if not self.settings.client_id.strip():
            raise ConfigurationError("SPOTIFY_CLIENT_ID is not configured")
        redirect = redirect_uri or self.settings.redirect_uri
        if not redirect.strip():
            raise ConfigurationError("SPOTIFY_REDIRECT_URI is not configured")

        params = {
            "client_id": self.settings.client_id,
            "response_type": "code",
            "redirect_uri": redirect,
            "state": state,
            "scope": " ".join(SCOPES),
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    async def request_client_credentials(self) -> dict[str, Any]:
        """Client-credentials grant (app token, no user context).

        Raises:
            ConfigurationError: credentials missing
            ExternalServiceError: the token endpoint refused or was unreachable
        """
        try:
            response = await self._token_request({"grant_type": "client_credentials"})
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Spotify token endpoint unreachable: {e}", service="spotify"
            ) from e

        if response.status_code != 200:
            body = self._error_body(response)
            logger.error(
                "Client credentials grant failed (%d): %s",
                response.status_code,
                body.get("error_description") or body.get("error") or response.text,
            )
            raise ExternalServiceError(
                "Spotify client credentials grant failed",
                service="spotify",
                http_status=response.status_code,
            )
        return cast(dict[str, Any], response.json())

    # Yo future me - an authorization code is SINGLE USE and expires after ~10 min.
    # A failed exchange is never retried here; the user has to go through consent
    # again. redirect_uri must match the one used on the consent screen exactly.
    async def exchange_code(self, code: str, redirect_uri: str) -> dict[str, Any]:
        """Authorization-code grant.

        Returns:
            Token response with access_token, refresh_token, expires_in

        Raises:
            AuthExchangeError: Spotify rejected the code (invalid_grant, bad redirect_uri)
            ExternalServiceError: network failure or 5xx
        """
        try:
            response = await self._token_request(
                {
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": redirect_uri,
                }
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Spotify token endpoint unreachable: {e}", service="spotify"
            ) from e

        if 400 <= response.status_code < 500:
            body = self._error_body(response)
            raise AuthExchangeError(
                error_code=str(body.get("error") or "invalid_request"),
                error_description=body.get("error_description"),
                http_status=response.status_code,
            )
        if response.status_code != 200:
            raise ExternalServiceError(
                "Spotify authorization code exchange failed",
                service="spotify",
                http_status=response.status_code,
            )
        return cast(dict[str, Any], response.json())

    # Hey future me - Spotify returns 400 {"error": "invalid_grant"} when the refresh
    # token was revoked. That (and 401/403) means the link is dead and the user must
    # re-consent. Anything else (5xx, network) bubbles up as httpx errors.
    async def refresh_token(self, refresh_token: str) -> dict[str, Any]:
        """Refresh-token grant.

        Returns:
            Token response; refresh_token is present only when Spotify rotated it

        Raises:
            TokenRefreshException: refresh token invalid/revoked, access denied,
                or a 200 whose body is not JSON or lacks access_token
            ConfigurationError: client credentials missing
            httpx.HTTPError: network failures and other non-2xx responses
        """
        response = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

        if response.status_code == 400:
            body = self._error_body(response)
            error_code = str(body.get("error") or "invalid_request")
            description = body.get("error_description") or "refresh rejected"
            raise TokenRefreshException(
                message=f"Refresh token rejected: {description}",
                error_code=error_code,
                http_status=400,
            )
        if response.status_code in (401, 403):
            raise TokenRefreshException(
                message="Spotify access denied during refresh",
                error_code="access_denied",
                http_status=response.status_code,
            )

        response.raise_for_status()
        body = self._error_body(response)
        if not body.get("access_token"):
            raise TokenRefreshException(
                message="Refresh response carried no access_token",
                error_code="invalid_response",
                http_status=response.status_code,
            )
        return body

    # ------------------------------------------------------------------
    # Web API
    # ------------------------------------------------------------------

    async def _api_get(
        self,
        path: str,
        access_token: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """GET a Web API resource, honouring one Retry-After on 429.

        Raises:
            ExternalServiceError: non-2xx or network failure
        """
        client = await self._get_client()
        url = f"{self.API_BASE_URL}{path}"
        headers = {"Authorization": f"Bearer {access_token}"}

        for attempt in range(self.MAX_RATE_LIMIT_RETRIES + 1):
            try:
                response = await client.get(url, params=params, headers=headers)
            except httpx.HTTPError as e:
                raise ExternalServiceError(
                    f"Spotify API unreachable: {e}", service="spotify"
                ) from e

            if response.status_code == 429 and attempt < self.MAX_RATE_LIMIT_RETRIES:
                retry_after = response.headers.get("Retry-After", "1")
                wait = min(
                    float(retry_after) if retry_after.isdigit() else 1.0,
                    self.MAX_RETRY_AFTER_SECONDS,
                )
                logger.warning("Spotify 429 on %s, retrying in %.1fs", path, wait)
                await asyncio.sleep(wait)
                continue
            break

        if response.status_code != 200:
            logger.warning("Spotify API %s returned %d", path, response.status_code)
            raise ExternalServiceError(
                f"Spotify API request failed: {path}",
                service="spotify",
                http_status=response.status_code,
            )
        return cast(dict[str, Any], response.json())

    async def search(
        self,
        query: str,
        types: list[str],
        access_token: str,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Search across Spotify resource types (raw JSON). limit is capped at 50."""
        params: dict[str, str | int] = {
            "q": query,
            "type": ",".join(types),
            "limit": max(1, min(limit, 50)),
            "offset": offset,
        }
        if self.settings.market:
            params["market"] = self.settings.market
        return await self._api_get("/search", access_token, params)

    async def get_album(self, album_id: str, access_token: str) -> dict[str, Any]:
        """Album with its track listing (raw JSON)."""
        return await self._api_get(f"/albums/{album_id}", access_token)

    # Hey future me - the several-ids endpoints cap at 50 ids per call. Unknown ids
    # come back as null entries in the list; those are dropped here.
    async def get_tracks(
        self, track_ids: list[str], access_token: str
    ) -> list[dict[str, Any]]:
        """Full track objects for ``track_ids``, in request order."""
        tracks: list[dict[str, Any]] = []
        for start in range(0, len(track_ids), self.MAX_IDS_PER_REQUEST):
            chunk = track_ids[start : start + self.MAX_IDS_PER_REQUEST]
            params: dict[str, str] = {"ids": ",".join(chunk)}
            if self.settings.market:
                params["market"] = self.settings.market
            data = await self._api_get("/tracks", access_token, params)
            tracks.extend(t for t in data.get("tracks") or [] if t and t.get("id"))
        return tracks

    async def get_artists(
        self, artist_ids: list[str], access_token: str
    ) -> list[dict[str, Any]]:
        """Full artist objects (with genres) for ``artist_ids``."""
        artists: list[dict[str, Any]] = []
        for start in range(0, len(artist_ids), self.MAX_IDS_PER_REQUEST):
            chunk = artist_ids[start : start + self.MAX_IDS_PER_REQUEST]
            data = await self._api_get(
                "/artists", access_token, {"ids": ",".join(chunk)}
            )
            artists.extend(a for a in data.get("artists") or [] if a and a.get("id"))
        return artists

    async def get_available_genre_seeds(self, access_token: str) -> list[str]:
        """Genre seeds usable for discovery filters."""
        data = await self._api_get(
            "/recommendations/available-genre-seeds", access_token
        )
        return list(data.get("genres", []))

    async def get_current_user(self, access_token: str) -> dict[str, Any]:
        """Profile of the token's owner (raw JSON)."""
        return await self._api_get("/me", access_token)

    async def get_top_artists(
        self, access_token: str, limit: int = 20
    ) -> list[dict[str, Any]]:
        """The user's top artists."""
        data = await self._api_get("/me/top/artists", access_token, {"limit": limit})
        return list(data.get("items", []))

    async def get_top_tracks(
        self, access_token: str, limit: int = 20
    ) -> list[dict[str, Any]]:
        """The user's top tracks."""
        data = await self._api_get("/me/top/tracks", access_token, {"limit": limit})
        return list(data.get("items", []))
