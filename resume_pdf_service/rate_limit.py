"""
Per-client rate limiting for /render.

Fixed-window counter keyed by API key (or client IP when no key is sent).
State is in-memory and resets when the service restarts.

Usage:
    limiter = FixedWindowRateLimiter(max_requests=10, window_seconds=60)

    result = limiter.check("client-id")
    if not result.allowed:
        ...  # reply 429, Retry-After = result.retry_after
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class RateLimitWindow:
    """Request count for one client in the current window."""
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a rate limit check."""
    allowed: bool
    remaining: int
    retry_after: int = 0


class FixedWindowRateLimiter:
    """
    Fixed-window request counter.

    The first request from a client opens a window of window_seconds;
    requests beyond max_requests inside that window are rejected until it
    expires.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock or time.monotonic
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def check(self, client_id: str) -> RateLimitResult:
        """Count a request for client_id and report whether it may proceed."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            window = self._windows.get(client_id)

            if window is None or now > window.reset_at:
                self._windows[client_id] = RateLimitWindow(count=1, reset_at=now + self.window_seconds)
                return RateLimitResult(allowed=True, remaining=self.max_requests - 1)

            if window.count >= self.max_requests:
                return RateLimitResult(
                    allowed=False,
                    remaining=0,
                    retry_after=math.ceil(window.reset_at - now),
                )

            window.count += 1
            return RateLimitResult(allowed=True, remaining=self.max_requests - window.count)

    def _prune(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]

    @property
    def tracked_clients(self) -> int:
        """Number of clients with an open window."""
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        """Forget all clients."""
        with self._lock:
            self._windows.clear()
