"""
Client infrastructure shared by the domain API modules.

Provides:
- ApiClient: HTTP client with auth headers, typed errors, retry and dedup
- TokenStore: Bearer credential persistence and expiry checks
- LoadingRegistry: Per-endpoint busy flags with subscriptions
- RequestDeduplicator: Coalesces identical concurrent requests
- RetryPolicy: Exponential backoff for network and 5xx failures
- Notifier/Navigator: Toast messages and the entry-view redirect
"""

from seva.services.errors import (
    ApiError,
    ErrorKind,
    NetworkError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    RateLimitError,
    ServerError,
    classify_response,
    format_error,
)
from seva.services.token_store import TokenStore, is_token_expired
from seva.services.loading import LoadingRegistry, loading_key
from seva.services.deduplicator import RequestDeduplicator, make_signature
from seva.services.retry import RetryPolicy
from seva.services.notifier import Navigator, Notification, Notifier
from seva.services.client import ApiClient

__all__ = [
    # Errors
    "ApiError",
    "ErrorKind",
    "NetworkError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitError",
    "ServerError",
    "classify_response",
    "format_error",
    # Token
    "TokenStore",
    "is_token_expired",
    # Loading
    "LoadingRegistry",
    "loading_key",
    # Deduplicator
    "RequestDeduplicator",
    "make_signature",
    # Retry
    "RetryPolicy",
    # Notifications
    "Navigator",
    "Notification",
    "Notifier",
    # Client
    "ApiClient",
]
