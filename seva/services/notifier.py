"""
User-facing side effects of API calls: transient notifications and the
redirect to the entry view when the session is rejected.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Literal

from loguru import logger

NotificationLevel = Literal["success", "error"]


@dataclass
class Notification:
    """A single toast-style message."""

    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)


NotificationListener = Callable[[Notification], None]


class Notifier:
    """
    Fan-out for success/error messages.

    Every message is logged and passed to subscribed listeners; the last
    `history_size` messages are kept for late subscribers.
    """

    def __init__(self, history_size: int = 50):
        self._listeners: list[NotificationListener] = []
        self._history: deque[Notification] = deque(maxlen=history_size)

    def success(self, message: str) -> None:
        logger.info(message)
        self._emit(Notification("success", message))

    def error(self, message: str) -> None:
        logger.error(message)
        self._emit(Notification("error", message))

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def _emit(self, notification: Notification) -> None:
        self._history.append(notification)
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Notification listener failed: {e}")


class Navigator:
    """
    Tracks the current view and sends the user back to the entry view.

    The embedding UI passes `on_navigate` to perform the actual switch.
    """

    ENTRY_PATH = "/"
    LOGIN_MARKER = "/login"

    def __init__(
        self,
        path: str = ENTRY_PATH,
        on_navigate: Callable[[str], None] | None = None,
    ):
        self.path = path
        self._on_navigate = on_navigate

    def navigate(self, path: str) -> None:
        self.path = path
        if self._on_navigate:
            self._on_navigate(path)

    def redirect_to_entry(self) -> bool:
        """
        Go to the entry view unless already on a login view.

        Returns:
            True if a redirect happened
        """
        if self.LOGIN_MARKER in self.path:
            return False
        logger.info(f"Session rejected, redirecting from {self.path} to entry view")
        self.navigate(self.ENTRY_PATH)
        return True
