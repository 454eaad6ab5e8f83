"""
Sliding-window rate limiter for embedding provider calls.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

from ..config import (
    DEFAULT_THROTTLE_MAX_REQUESTS,
    DEFAULT_THROTTLE_WINDOW_MS,
    THROTTLE_BUFFER_MS,
)

logger = logging.getLogger("email_collation")


class RateLimiter:
    """
    Admit at most max_requests calls per trailing window.

    Keeps the timestamps of granted admissions inside the window. When the
    window is full, the caller sleeps until the oldest admission expires
    (plus a small buffer) and then re-checks, since other callers may have
    been admitted meanwhile.

    The admission check and the timestamp record happen under one lock.
    Sleeping happens outside it.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_THROTTLE_MAX_REQUESTS,
        window_ms: int = DEFAULT_THROTTLE_WINDOW_MS,
        buffer_ms: int = THROTTLE_BUFFER_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            max_requests: Admissions allowed per window
            window_ms: Window length in milliseconds
            buffer_ms: Extra wait added to absorb clock skew
            clock: Returns the current time in seconds
            sleep: Suspends the caller for the given seconds
        """
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {max_requests}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {window_ms}")

        self.max_requests = max_requests
        self.window_ms = window_ms
        self.buffer_ms = buffer_ms
        self._clock = clock
        self._sleep = sleep
        self._timestamps: Deque[float] = deque()
        self._lock = threading.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _prune(self, now_ms: float) -> None:
        while self._timestamps and now_ms - self._timestamps[0] >= self.window_ms:
            self._timestamps.popleft()

    def _try_admit(self) -> Optional[float]:
        """
        Admit now if the window has room.

        Returns:
            None if admitted, otherwise milliseconds to wait before retrying
        """
        with self._lock:
            now_ms = self._now_ms()
            self._prune(now_ms)

            if len(self._timestamps) < self.max_requests:
                self._timestamps.append(now_ms)
                return None

            oldest = self._timestamps[0]
            return self.window_ms - (now_ms - oldest) + self.buffer_ms

    def acquire(self) -> float:
        """
        Block until an admission is granted.

        Returns:
            Total seconds spent waiting
        """
        waited = 0.0
        while True:
            wait_ms = self._try_admit()
            if wait_ms is None:
                return waited

            wait_seconds = wait_ms / 1000.0
            logger.info(
                f"[RateLimiter] Limit of {self.max_requests} requests per "
                f"{self.window_ms}ms reached, waiting {wait_seconds:.2f}s"
            )
            self._sleep(wait_seconds)
            waited += wait_seconds

    def in_window(self) -> int:
        """Number of admissions inside the current window."""
        with self._lock:
            self._prune(self._now_ms())
            return len(self._timestamps)
