"""Outbound HTTP integrations: Spotify, Billboard and Gemini."""

from recordcrate.infrastructure.integrations.billboard_client import BillboardClient
from recordcrate.infrastructure.integrations.gemini_client import GeminiClient
from recordcrate.infrastructure.integrations.http_pool import HttpClientPool
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

__all__ = ["BillboardClient", "GeminiClient", "HttpClientPool", "SpotifyClient"]
