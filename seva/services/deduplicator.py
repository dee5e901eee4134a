"""
RequestDeduplicator - Coalesces identical concurrent requests.

When several callers issue the same request (method, url, params, body)
while one is still in flight, only one request is made and every caller
receives its result or its exception.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


def _serialize(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def make_signature(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    body: Any = None,
) -> str:
    """
    Build the coalescing key for a request.

    Dict ordering does not matter; any difference in the four fields
    produces a different key.
    """
    return f"{method.upper()}-{url}-{_serialize(params)}-{_serialize(body)}"


class RequestDeduplicator:
    """
    Deduplicates concurrent async requests.

    Usage:
        dedup = RequestDeduplicator()

        data = await dedup.dedupe(
            make_signature("GET", "/expenses", params),
            lambda: send("GET", "/expenses", params),
        )
    """

    def __init__(self, debug: bool = False):
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._debug = debug
        self._stats = DeduplicatorStats()

    async def dedupe(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute request with deduplication.

        Args:
            key: Coalescing signature for this request
            request_fn: Async function to execute if no duplicate exists

        Returns:
            Result from request_fn (either fresh or from the in-flight request)
        """
        task = self._in_flight.get(key)
        if task is not None:
            self._stats.deduplicated += 1
            self._log(f"DEDUPE: Waiting for in-flight request: {key[:80]}")
        else:
            self._stats.total += 1
            self._log(f"NEW: Starting request: {key[:80]}")
            task = asyncio.ensure_future(request_fn())
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._cleanup(key, done))

        # shield so one cancelled waiter does not cancel the shared request
        return await asyncio.shield(task)

    def _cleanup(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
            self._log(f"DONE: Request completed: {key[:80]}")
        # mark the exception retrieved; waiters re-raise it themselves
        if not task.cancelled():
            task.exception()

    async def cancel_all(self) -> int:
        """Cancel all in-flight requests."""
        count = len(self._in_flight)
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()
        if count:
            self._log(f"CANCEL_ALL: {count} requests cancelled")
        return count

    def get_in_flight_count(self) -> int:
        return len(self._in_flight)

    def get_in_flight_keys(self) -> list[str]:
        return list(self._in_flight.keys())

    def get_stats(self) -> "DeduplicatorStats":
        """Get deduplication statistics."""
        self._stats.in_flight = len(self._in_flight)
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[Deduplicator] {message}")


class DeduplicatorStats:
    """Statistics for request deduplication."""

    def __init__(self):
        self.total: int = 0  # Unique requests made
        self.deduplicated: int = 0  # Callers attached to an in-flight request
        self.in_flight: int = 0

    @property
    def dedup_rate(self) -> float:
        total = self.total + self.deduplicated
        if total == 0:
            return 0.0
        return self.deduplicated / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total,
            "deduplicated": self.deduplicated,
            "in_flight": self.in_flight,
            "dedup_rate": f"{self.dedup_rate:.2%}",
        }
