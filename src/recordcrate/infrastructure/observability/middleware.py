"""Middleware for observability: request/response logging."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from recordcrate.infrastructure.observability.logging import (
    get_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request/response pair and echo the correlation ID header.

    An incoming X-Correlation-ID is reused so the frontend can tie its own logs
    to ours; otherwise a fresh UUID is minted. Health checks are not logged.
    """

    def __init__(
        self, app: ASGIApp, quiet_paths: tuple[str, ...] = ("/api/health",)
    ) -> None:
        super().__init__(app)
        self.quiet_paths = quiet_paths

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        set_correlation_id(request.headers.get(CORRELATION_HEADER))

        method = request.method
        path = request.url.path
        quiet = path in self.quiet_paths

        if not quiet:
            logger.info(
                "→ %s %s",
                method,
                path,
                extra={
                    "method": method,
                    "path": path,
                    "query_params": str(request.query_params),
                    "client_ip": request.client.host if request.client else "unknown",
                },
            )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Request failed: %s %s",
                method,
                path,
                extra={
                    "method": method,
                    "path": path,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                    "error_type": type(e).__name__,
                },
            )
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        if not quiet:
            marker = "✓" if response.status_code < 400 else "✗"
            logger.info(
                "%s %s %s → %d (%dms)",
                marker,
                method,
                path,
                response.status_code,
                duration_ms,
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )

        response.headers[CORRELATION_HEADER] = get_correlation_id()
        return response
