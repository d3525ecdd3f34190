"""Global exception handlers for the FastAPI application.

Every domain exception has exactly one HTTP mapping, registered here. Routers
raise domain exceptions and never build error responses themselves.

Error bodies share one shape: {"error": <code>, "detail": <message>}.
Server-side failures (500/503) send a generic detail; the real cause is logged.
"""

import json
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from recordcrate.domain.exceptions import (
    AuthenticationError,
    AuthExchangeError,
    ConfigurationError,
    EntityNotFoundException,
    ExternalServiceError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, detail: Any, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, **extra},
    )


# Hey future me - pydantic's exc.errors() can carry the raw body as bytes in the
# "input" field, and ctx values can be exception objects. Neither is JSON
# serializable, so the error response itself would crash without this.
def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    def _sanitize(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_sanitize(item) for item in value]
        if isinstance(value, str | int | float | bool) or value is None:
            return value
        return str(value)

    return [_sanitize(error) for error in errors]


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, validation and persistence errors."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        """Domain validation (incl. InvalidRatingInput) -> 400."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "field": exc.field},
        )
        return _error(
            status.HTTP_400_BAD_REQUEST, "validation_error", exc.message, field=exc.field
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed body or query parameters -> 400 (same as domain validation)."""
        errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            errors,
            extra={"path": request.url.path},
        )
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error", errors)

    @app.exception_handler(json.JSONDecodeError)
    async def json_decode_error_handler(
        request: Request, exc: json.JSONDecodeError
    ) -> JSONResponse:
        logger.warning("Malformed JSON at %s: %s", request.url.path, exc.msg)
        return _error(
            status.HTTP_400_BAD_REQUEST, "validation_error", f"Malformed JSON: {exc.msg}"
        )

    @app.exception_handler(EntityNotFoundException)
    async def not_found_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        logger.info(
            "Not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": str(exc.entity_id),
            },
        )
        return _error(status.HTTP_404_NOT_FOUND, "not_found", exc.message)

    @app.exception_handler(AuthExchangeError)
    async def auth_exchange_error_handler(
        request: Request, exc: AuthExchangeError
    ) -> JSONResponse:
        """Provider rejected the authorization code -> 400 with the provider's reason."""
        logger.warning(
            "Spotify code exchange rejected at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "provider_error": exc.error_code},
        )
        return _error(
            status.HTTP_400_BAD_REQUEST,
            exc.error_code,
            exc.error_description or exc.message,
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.info("Authentication required at %s: %s", request.url.path, exc.message)
        return _error(
            status.HTTP_401_UNAUTHORIZED, "reauthorization_required", exc.message
        )

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        logger.error(
            "Upstream %s failed at %s: %s",
            exc.service,
            request.url.path,
            exc.message,
            extra={
                "path": request.url.path,
                "service": exc.service,
                "upstream_status": exc.http_status,
            },
        )
        return _error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "upstream_unavailable",
            f"{exc.service} is unavailable, try again later",
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("Configuration error at %s: %s", request.url.path, exc.message)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "not_configured", exc.message)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "Store failure at %s during %s",
            request.url.path,
            exc.operation,
            exc_info=exc,
            extra={"path": request.url.path, "operation": exc.operation},
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal error"
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(
        request: Request, exc: SQLAlchemyError
    ) -> JSONResponse:
        logger.error(
            "Database error at %s",
            request.url.path,
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal error"
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log("HTTP error %d at %s: %s", exc.status_code, request.url.path, exc.detail)
        return _error(exc.status_code, "http_error", exc.detail)
