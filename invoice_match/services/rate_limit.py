"""
Request rate limiting for the public ingestion endpoints.

The limiter is injected (see api/deps.py) so a single-instance deployment can
use the in-memory implementation while a scaled-out one swaps in a shared
cache behind the same interface.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict


class RateLimiterBase(ABC):
    """Fixed-window request limiter keyed by an arbitrary string (usually client IP)."""

    @abstractmethod
    def check(self, key: str) -> bool:
        """True if `key` may make another request in the current window."""
        pass

    @abstractmethod
    def record(self, key: str) -> None:
        """Count one request against `key`."""
        pass


class InMemoryRateLimiter(RateLimiterBase):
    """
    Per-process limiter. The window opens on a key's first request and
    resets once it has elapsed. Expired windows are swept from `record`
    at most once per window length, so idle keys do not accumulate.

    Sync FastAPI dependencies run in a threadpool, so all access to the
    window map goes through a lock.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> [first_request_at, count]
        self._windows: Dict[str, list] = {}
        self._last_sweep = clock()

    def check(self, key: str) -> bool:
        with self._lock:
            entry = self._windows.get(key)
            if entry is None:
                return True
            if self._clock() - entry[0] > self.window_seconds:
                self._windows.pop(key, None)
                return True
            return entry[1] < self.max_requests

    def record(self, key: str) -> None:
        with self._lock:
            now = self._clock()
            if now - self._last_sweep > self.window_seconds:
                self._sweep(now)
            entry = self._windows.get(key)
            if entry is None or now - entry[0] > self.window_seconds:
                self._windows[key] = [now, 1]
                return
            entry[1] += 1

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._windows.items() if now - entry[0] > self.window_seconds]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_sweep = self._clock()
