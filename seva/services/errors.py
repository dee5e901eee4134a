"""
Client layer exceptions.

Every failure raised out of ApiClient is an ApiError. The `kind` field
closes the set of error categories; subclasses only fix the kind and the
default message/code so callers can catch a specific category.
"""

from enum import Enum
from typing import Any

NETWORK_MESSAGE = "Network connection failed. Please check your internet connection."
RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."
SERVER_MESSAGE = "Server is currently unavailable. Please try again later."
FALLBACK_MESSAGE = "An unexpected error occurred"

SERVER_STATUSES = frozenset({500, 502, 503, 504})


class ErrorKind(str, Enum):
    """Error categories the client guarantees to produce."""

    NETWORK = "network"
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER = "server"
    GENERIC = "generic"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.NETWORK, ErrorKind.SERVER)


class ApiError(Exception):
    """Base exception for API client errors."""

    kind: ErrorKind = ErrorKind.GENERIC
    default_message: str = FALLBACK_MESSAGE
    default_code: str | None = None
    default_status: int = 0

    def __init__(
        self,
        message: str | None = None,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
    ):
        self.message = message or self.default_message
        self.status = self.default_status if status is None else status
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, message={self.message!r})"


class NetworkError(ApiError):
    """No response was received (connection failure, timeout)."""

    kind = ErrorKind.NETWORK
    default_message = NETWORK_MESSAGE
    default_code = "NETWORK_ERROR"
    default_status = 0


class ValidationError(ApiError):
    """Request rejected as invalid; `details` holds per-field errors."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"
    default_code = "VALIDATION_ERROR"
    default_status = 400


class AuthenticationError(ApiError):
    kind = ErrorKind.AUTHENTICATION
    default_message = "Authentication failed"
    default_code = "AUTHENTICATION_ERROR"
    default_status = 401


class AuthorizationError(ApiError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "Insufficient permissions"
    default_code = "AUTHORIZATION_ERROR"
    default_status = 403


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"
    default_code = "NOT_FOUND"
    default_status = 404


class RateLimitError(ApiError):
    kind = ErrorKind.RATE_LIMITED
    default_message = RATE_LIMIT_MESSAGE
    default_code = "RATE_LIMIT_EXCEEDED"
    default_status = 429


class ServerError(ApiError):
    """Backend failed with a 5xx status."""

    kind = ErrorKind.SERVER
    default_message = SERVER_MESSAGE
    default_code = "SERVER_ERROR"
    default_status = 500


def _error_message(body: Any) -> str:
    """Pick the human-readable message out of an error body."""
    if isinstance(body, dict):
        for field in ("message", "msg", "error"):
            value = body.get(field)
            if value:
                return str(value)
        detail = body.get("detail")
        if isinstance(detail, str) and detail:
            return detail
    return FALLBACK_MESSAGE


def _error_details(body: Any) -> Any:
    if not isinstance(body, dict):
        return None
    if body.get("errors") is not None:
        return body["errors"]
    detail = body.get("detail")
    if detail is not None and not isinstance(detail, str):
        return detail
    return None


def classify_response(status: int, body: Any = None) -> ApiError:
    """
    Map an HTTP error status and decoded body onto the error taxonomy.

    Args:
        status: HTTP status code of the failed response
        body: Decoded JSON body, or None when it was empty or not JSON

    Returns:
        The ApiError instance describing the failure
    """
    message = _error_message(body)

    if status == 400:
        return ValidationError(message, details=_error_details(body))
    if status == 401:
        return AuthenticationError(message)
    if status == 403:
        return AuthorizationError(message)
    if status == 404:
        return NotFoundError(message)
    if status == 429:
        return RateLimitError(status=status)
    if status in SERVER_STATUSES:
        return ServerError(status=status)
    return ApiError(message, status=status)


def format_error(error: ApiError) -> str:
    """Render an error for display, expanding validation details."""
    if isinstance(error, ValidationError) and error.details:
        details = error.details
        values = details.values() if isinstance(details, dict) else details
        parts: list[str] = []
        for value in values:
            if isinstance(value, (list, tuple)):
                parts.extend(str(item) for item in value)
            else:
                parts.append(str(value))
        return ", ".join(parts)
    return error.message
