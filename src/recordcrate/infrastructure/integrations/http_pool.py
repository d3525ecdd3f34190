"""Shared HTTP client pool for connection reuse across integrations.

Hey future me - Spotify, Billboard and every other outbound call share ONE
httpx.AsyncClient from here. Don't create ad-hoc AsyncClients in services; they
skip keep-alive and leak sockets if nobody closes them.

    client = await HttpClientPool.get_client()
    response = await client.get(url)

The lifespan in infrastructure/lifecycle.py calls HttpClientPool.close() on
shutdown.
"""

import asyncio
import logging
from typing import ClassVar

import httpx

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Process-wide shared httpx.AsyncClient.

    Created lazily on first use; configuration passed to the first
    get_client() call wins.
    """

    _client: ClassVar[httpx.AsyncClient | None] = None
    _lock: ClassVar[asyncio.Lock | None] = None

    DEFAULT_TIMEOUT: ClassVar[float] = 15.0
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 20
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 50

    @classmethod
    def _ensure_lock(cls) -> asyncio.Lock:
        # Created lazily so it binds to the running loop, not import time
        if cls._lock is None:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    async def get_client(
        cls,
        timeout: float | None = None,
        max_keepalive: int | None = None,
        max_connections: int | None = None,
    ) -> httpx.AsyncClient:
        """Get the shared HTTP client instance.

        Args:
            timeout: Request timeout in seconds (default: 15.0)
            max_keepalive: Max idle connections to keep open (default: 20)
            max_connections: Max total concurrent connections (default: 50)

        Returns:
            Shared httpx.AsyncClient instance
        """
        async with cls._ensure_lock():
            if cls._client is None:
                effective_timeout = timeout or cls.DEFAULT_TIMEOUT
                effective_keepalive = max_keepalive or cls.DEFAULT_MAX_KEEPALIVE
                effective_max_conn = max_connections or cls.DEFAULT_MAX_CONNECTIONS

                cls._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(effective_timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=effective_keepalive,
                        max_connections=effective_max_conn,
                    ),
                    http2=True,
                    follow_redirects=True,
                )
                logger.info(
                    "HTTP client pool initialized (timeout=%.1fs, keepalive=%d, max_conn=%d)",
                    effective_timeout,
                    effective_keepalive,
                    effective_max_conn,
                )
            return cls._client

    @classmethod
    async def close(cls) -> None:
        """Close the shared client; the next get_client() builds a new one."""
        async with cls._ensure_lock():
            if cls._client is not None:
                await cls._client.aclose()
                cls._client = None
                logger.info("HTTP client pool closed")
        # A fresh lock for whatever event loop runs next (tests start one per app)
        cls._lock = None
