"""Domain exceptions.

Every exception here has a fixed HTTP mapping in api/exception_handlers.py.
Raise the most specific subclass so handlers (and callers) can catch precisely.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, we store message as an attribute so code can inspect it without parsing str(exception).
    # This is your base class - DON'T raise it directly!
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Input validation failed.

    Raised BEFORE any I/O when a required field is missing or malformed
    (empty userSpotifyId, non-numeric overallRating, writeup too long).

    HTTP Status: 400
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidRatingInput(ValidationError):
    """A rating value can't be normalized (empty list, NaN, infinity).

    HTTP Status: 400
    """


class EntityNotFoundException(DomainException):
    """Raised when a lookup or delete target is absent.

    HTTP Status: 404
    """

    # Yo, entity_type and entity_id are kept separately so handlers can log them structured.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ExternalServiceError(DomainException):
    """A third-party API failed (network error, timeout, non-2xx).

    Spotify, Billboard and Gemini failures all collapse into this one type.
    The client only ever sees a generic message; the cause is logged.

    HTTP Status: 503
    """

    def __init__(
        self,
        message: str,
        service: str = "upstream",
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.service = service
        self.http_status = http_status


UpstreamError = ExternalServiceError


class AuthExchangeError(DomainException):
    """The OAuth provider rejected an authorization-code exchange.

    Carries the provider's error code/description (e.g. invalid_grant,
    "Invalid redirect URI"). A code is single-use - NEVER retry with the same one.

    HTTP Status: 400
    """

    def __init__(
        self,
        error_code: str,
        error_description: str | None = None,
        http_status: int | None = None,
    ) -> None:
        message = f"Authorization exchange failed: {error_code}"
        if error_description:
            message = f"{message} ({error_description})"
        super().__init__(message)
        self.error_code = error_code
        self.error_description = error_description
        self.http_status = http_status


class TokenRefreshException(DomainException):
    """Raised when a refresh-token exchange fails.

    Hey future me - this never reaches a handler! UserTokenService catches it,
    logs it and returns None, which callers read as "reauthorization required".
    """

    def __init__(
        self,
        message: str = "Token refresh failed. Please re-link Spotify.",
        error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code  # e.g., "invalid_grant"
        self.http_status = http_status

    @property
    def requires_reauth(self) -> bool:
        """Check if error means the refresh token itself is dead."""
        return self.error_code == "invalid_grant" or self.http_status in (
            400,
            401,
            403,
        )


class StoreError(DomainException):
    """Persistence layer failure.

    The message carries the operation for server-side logs; the client only
    ever gets "internal_error".

    HTTP Status: 500
    """

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        super().__init__(f"Store operation failed: {operation}")
        self.operation = operation
        self.cause = cause


class ConfigurationError(DomainException):
    """Required configuration is missing (e.g. Spotify client credentials).

    HTTP Status: 503
    """


class AuthenticationError(DomainException):
    """No usable credential for the user; they must re-link Spotify.

    HTTP Status: 401
    """


__all__ = [
    "AuthExchangeError",
    "AuthenticationError",
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "InvalidRatingInput",
    "StoreError",
    "TokenRefreshException",
    "UpstreamError",
    "ValidationError",
]
