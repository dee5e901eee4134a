"""
ApiClient - Async HTTP client for the seva backend.

Combines:
- TokenStore for the bearer credential
- RequestDeduplicator for identical concurrent requests
- RetryPolicy for network and 5xx failures
- LoadingRegistry for per-endpoint busy flags
- Notifier/Navigator for user-facing side effects
"""

from typing import Any, Callable

import httpx
from loguru import logger
from pydantic_core import PydanticSerializationError, to_jsonable_python

from seva.services.deduplicator import RequestDeduplicator, make_signature
from seva.services.errors import (
    ApiError,
    ErrorKind,
    NetworkError,
    classify_response,
)
from seva.services.loading import LoadingListener, LoadingRegistry, loading_key
from seva.services.notifier import Navigator, Notifier
from seva.services.retry import RetryPolicy
from seva.services.token_store import TokenStore
from seva.settings import Settings

LOGIN_INIT_PATH = "/auth/login-init"
VERIFY_OTP_PATH = "/auth/verify-otp"

# Endpoints that must never carry a (possibly stale) token
AUTH_BOOTSTRAP_PATHS = (LOGIN_INIT_PATH, VERIFY_OTP_PATH)
# Endpoints whose body is sent url-encoded instead of JSON
FORM_PATHS = (LOGIN_INIT_PATH,)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
DEFAULT_HEADERS = {"Accept": JSON_CONTENT_TYPE}


def _matches(path: str, endpoints: tuple[str, ...]) -> bool:
    path = path.rstrip("/")
    return any(path.endswith(endpoint) for endpoint in endpoints)


def jsonable_body(body: Any) -> Any:
    """Convert a request body to JSON-compatible values (dates, decimals, models)."""
    if body is None:
        return None
    try:
        return to_jsonable_python(body)
    except PydanticSerializationError as e:
        raise ApiError(
            f"Request body could not be serialized: {e}",
            code="INVALID_REQUEST",
        ) from e


def clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset query parameters; None when nothing is left."""
    if not params:
        return None
    cleaned = {key: value for key, value in params.items() if value is not None}
    return cleaned or None


def build_query_string(params: dict[str, Any]) -> str:
    """Url-encode params, skipping unset values."""
    return str(httpx.QueryParams(clean_params(params) or {}))


def unwrap_envelope(payload: Any) -> Any:
    """Return `payload["data"]` for `{data: ...}` envelopes, else the payload."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """
    HTTP client with auth headers, typed errors, retry and deduplication.

    Usage:
        client = ApiClient(settings, token_store=TokenStore())

        expenses = await client.get("/expenses", {"skip": 0, "limit": 20})
        created = await client.post("/expenses", payload)

    Every failure is raised as an ApiError subclass; raw httpx exceptions
    never escape.
    """

    def __init__(
        self,
        settings: Settings,
        token_store: TokenStore | None = None,
        loading: LoadingRegistry | None = None,
        notifier: Notifier | None = None,
        navigator: Navigator | None = None,
        deduplicator: RequestDeduplicator | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._debug = settings.debug

        self.tokens = token_store or TokenStore(settings.token_path)
        self.loading = loading or LoadingRegistry()
        self.notifier = notifier or Notifier()
        self.navigator = navigator or Navigator()
        self._deduplicator = deduplicator or RequestDeduplicator(debug=self._debug)
        self._retry = retry_policy or RetryPolicy(
            max_retries=settings.retry_attempts,
            base_delay=settings.retry_delay,
        )

        self._transport = transport
        # HTTP client (lazy initialization)
        self._http_client: httpx.AsyncClient | None = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._settings.api_url,
                timeout=httpx.Timeout(self._settings.request_timeout),
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                transport=self._transport,
                event_hooks={
                    "request": [self._on_request],
                    "response": [self._on_response],
                },
            )
        return self._http_client

    # Interceptors

    async def _on_request(self, request: httpx.Request) -> None:
        """Attach credentials and content type before the request is sent."""
        path = request.url.path

        if not _matches(path, AUTH_BOOTSTRAP_PATHS):
            token = self.tokens.valid_token()
            if token:
                request.headers["Authorization"] = f"Bearer {token}"

        if _matches(path, FORM_PATHS):
            request.headers["Content-Type"] = FORM_CONTENT_TYPE
        else:
            request.headers["Content-Type"] = JSON_CONTENT_TYPE

        self._log(f"{request.method} {request.url}")

    async def _on_response(self, response: httpx.Response) -> None:
        self._log(f"Response {response.status_code} for {response.request.url}")

    # Requests

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """
        Make one logical API call.

        Args:
            method: HTTP method
            url: Path relative to the configured API URL
            params: Query parameters; None values are dropped
            body: Request body (url-encoded for login, JSON otherwise)

        Returns:
            Decoded response body, with a `{data: ...}` envelope unwrapped

        Raises:
            ApiError: Classified failure after retries are exhausted
        """
        method = method.upper()
        params = clean_params(params)
        try:
            body = jsonable_body(body)
        except ApiError as e:
            self.notifier.error(e.message)
            raise
        signature = make_signature(method, url, params, body)

        with self.loading.busy(loading_key(method, url)):
            return await self._deduplicator.dedupe(
                signature,
                lambda: self._call(method, url, params, body),
            )

    async def _call(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        body: Any,
    ) -> Any:
        """Run the retry loop and report the terminal failure once."""
        try:
            return await self._retry.run(
                lambda: self._send(method, url, params, body),
                label=f"{method} {url}",
            )
        except ApiError as e:
            if e.kind is not ErrorKind.AUTHENTICATION:
                self.notifier.error(e.message)
            raise

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        body: Any,
    ) -> Any:
        """Execute a single HTTP attempt."""
        client = await self._get_http_client()

        content: dict[str, Any] = {}
        if body is not None:
            if _matches(url, FORM_PATHS):
                content["data"] = {key: str(value) for key, value in body.items()}
            else:
                content["json"] = body

        try:
            response = await client.request(method, url, params=params, **content)
        except httpx.RequestError as e:
            self._log(f"{method} {url} failed without response: {e!r}")
            raise NetworkError() from e

        if response.is_error:
            error = classify_response(response.status_code, _decode_body(response))
            if error.kind is ErrorKind.AUTHENTICATION:
                self._reject_session()
            raise error

        return unwrap_envelope(_decode_body(response))

    def _reject_session(self) -> None:
        """Drop the credential after the backend rejected it."""
        logger.info("Credential rejected by server, clearing stored token")
        self.tokens.clear()
        self.navigator.redirect_to_entry()

    async def get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", url, params=params)

    async def post(self, url: str, body: Any = None) -> Any:
        return await self.request("POST", url, body=body)

    async def put(self, url: str, body: Any = None) -> Any:
        return await self.request("PUT", url, body=body)

    async def patch(self, url: str, body: Any = None) -> Any:
        return await self.request("PATCH", url, body=body)

    async def delete(self, url: str) -> Any:
        return await self.request("DELETE", url)

    # Loading state

    def is_loading(self, method: str, url: str) -> bool:
        return self.loading.is_loading(loading_key(method, url))

    def subscribe_loading(self, listener: LoadingListener) -> Callable[[], None]:
        return self.loading.subscribe(listener)

    def is_authenticated(self) -> bool:
        return self.tokens.valid_token() is not None

    def get_status(self) -> dict[str, Any]:
        """Get client status for diagnostics."""
        return {
            "api_url": self._settings.api_url,
            "authenticated": self.is_authenticated(),
            "loading": self.loading.snapshot(),
            "deduplicator": self._deduplicator.get_stats().to_dict(),
        }

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

        await self._deduplicator.cancel_all()
        logger.debug("ApiClient closed")

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[API] {message}")
