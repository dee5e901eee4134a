"""
LoadingRegistry - Tracks which requests are currently in flight.

Keys are "<METHOD> <url>" strings. Listeners receive a snapshot of the
whole state on every change.
"""

from contextlib import contextmanager
from typing import Callable, Iterator

from loguru import logger

LoadingListener = Callable[[dict[str, bool]], None]


def loading_key(method: str, url: str) -> str:
    """Build the registry key for a request."""
    return f"{method.upper()} {url}"


class LoadingRegistry:
    """
    In-memory busy flags with snapshot subscriptions.

    Usage:
        registry = LoadingRegistry()
        unsubscribe = registry.subscribe(lambda states: render(states))

        with registry.busy("GET /expenses"):
            await fetch()

        unsubscribe()
    """

    def __init__(self):
        self._states: dict[str, bool] = {}
        self._listeners: list[LoadingListener] = []

    def set_loading(self, key: str, loading: bool) -> None:
        """Update the flag for `key` and notify all listeners."""
        self._states[key] = loading
        self._notify()

    def is_loading(self, key: str) -> bool:
        return self._states.get(key, False)

    def snapshot(self) -> dict[str, bool]:
        return dict(self._states)

    def subscribe(self, listener: LoadingListener) -> Callable[[], None]:
        """
        Register a snapshot listener.

        Returns:
            A function that removes the listener; calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def busy(self, key: str) -> Iterator[None]:
        """Mark `key` busy for the duration of the block."""
        self.set_loading(key, True)
        try:
            yield
        finally:
            self.set_loading(key, False)

    def _notify(self) -> None:
        states = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(states)
            except Exception as e:
                logger.error(f"Loading listener failed: {e}")
