from collections import defaultdict
from collections.abc import Callable
import time
from typing import Any, Literal, TypedDict

from loguru import logger

LogLevel = Literal["INFO", "DEBUG", "WARN", "ERROR"]

LOG = "log"
FETCH_COURSES = "fetch:courses"
FETCH_ASSIGNMENTS = "fetch:assignments"

# loguru has no WARN level
_LOGURU_LEVELS: dict[str, str] = {"WARN": "WARNING"}

Listener = Callable[[Any], Any]
LogCallback = Callable[[LogLevel, str], None]


def loguru_log(level: LogLevel, message: str) -> None:
    logger.opt(depth=1).log(_LOGURU_LEVELS.get(level, level), message)


class LogEvent(TypedDict):
    timestamp: int
    level: LogLevel
    message: str


class Notifier:
    """Named notification channel.

    Listeners subscribe to an event name and are called synchronously, in
    subscription order, with the event payload. Emitting with no listeners is a
    no-op, so producers never depend on anyone listening. A listener that raises
    is logged and skipped; it does not stop delivery to the others.
    """

    def __init__(self):
        self._listeners: defaultdict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def unsubscribe(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, payload: Any) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for '{event}' failed: {e}")

    def log(self, level: LogLevel, message: str) -> None:
        """Writes `message` through loguru and emits it as a `log` notification."""
        logger.opt(depth=1).log(_LOGURU_LEVELS.get(level, level), message)
        event: LogEvent = {
            "timestamp": int(time.time() * 1000),
            "level": level,
            "message": message,
        }
        self.emit(LOG, event)
