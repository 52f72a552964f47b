"""Request pacing for Gmail API calls."""

from __future__ import annotations

import threading
import time
from typing import Callable

from .errors import RunCancelled


class RateLimiter:
    """Spaces calls at least ``1 / rps`` seconds apart.

    ``wait`` sleeps on the caller's cancel event (when given), so setting
    the event interrupts a pending wait immediately.
    """

    def __init__(self, rps: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = 1.0 / max(1, rps)
        self._clock = clock
        self._next_at = 0.0
        self._lock = threading.Lock()

    def _reserve(self) -> float:
        with self._lock:
            now = self._clock()
            start = max(now, self._next_at)
            self._next_at = start + self.interval
            return start - now

    def wait(self, cancel: threading.Event | None = None) -> None:
        if cancel is not None and cancel.is_set():
            raise RunCancelled("cancelled while waiting for rate limiter")
        delay = self._reserve()
        if delay <= 0:
            return
        if cancel is None:
            time.sleep(delay)
        elif cancel.wait(delay):
            raise RunCancelled("cancelled while waiting for rate limiter")
