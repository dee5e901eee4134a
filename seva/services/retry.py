"""
RetryPolicy - Bounded exponential backoff for transient failures.

Only network failures and 5xx server errors are retried. With the
defaults a call makes at most 4 attempts, sleeping 1s, 2s and 4s between
them.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from seva.services.errors import ApiError

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class RetryPolicy:
    """Retry configuration and driver."""

    max_retries: int = 3  # Retries after the initial attempt
    base_delay: float = 1.0  # Seconds before the first retry
    sleep: Sleep = field(default=asyncio.sleep, repr=False)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry_number: int) -> float:
        """Delay before retry `retry_number` (0-based): base, 2x, 4x, ..."""
        return self.base_delay * (2**retry_number)

    def should_retry(self, error: ApiError, retries_done: int) -> bool:
        return error.retryable and retries_done < self.max_retries

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        label: str = "",
    ) -> T:
        """
        Run `operation` until it succeeds or fails terminally.

        Raises:
            ApiError: The last failure, unchanged
        """
        retries_done = 0
        while True:
            try:
                return await operation()
            except ApiError as e:
                if not self.should_retry(e, retries_done):
                    raise
                delay = self.delay_for(retries_done)
                retries_done += 1
                logger.warning(
                    f"{label or 'Request'} failed ({e.kind.value}, status {e.status}), "
                    f"retry {retries_done}/{self.max_retries} in {delay:.1f}s"
                )
                await self.sleep(delay)
