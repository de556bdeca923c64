"""Time source and deferred-task scheduling.

The listener never reads the system clock or starts timers directly; it
receives a ``Clock`` and a ``Scheduler`` so that tests and replays can drive
time explicitly.
"""

import logging
import threading
import time
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Millisecond time source."""

    def now(self) -> int:
        ...


class Cancellable(Protocol):
    """Handle of a scheduled task."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Cancellable:
        ...


class SystemClock:
    """Thread-safe wall clock in milliseconds.

    Timestamps never go backwards: if the system clock steps back, the last
    value handed out is repeated until the clock catches up.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms: Optional[int] = None

    def now(self) -> int:
        """Current time in milliseconds since the Unix epoch."""
        with self._lock:
            current = int(time.time() * 1000)
            if self._last_ms is not None and current < self._last_ms:
                logger.debug("Clock stepped back %d ms, holding", self._last_ms - current)
                current = self._last_ms
            self._last_ms = current
            return current

    def __repr__(self):
        return f"<SystemClock(last_ms={self._last_ms})>"


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` objects."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.name = f"compass-timer-{delay_ms}ms"
        timer.start()
        return timer
