"""In-process fixed-window rate limiting keyed by scope and client IP."""
from __future__ import annotations

import threading
import time

from fastapi import Request

from .errors import TooManyRequests


class FixedWindowLimiter:
    """Counts hits per key; the window restarts on the first hit after it expires."""

    def __init__(self) -> None:
        self._windows: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Record a hit and report whether the key is still within its limit."""
        now = time.monotonic()
        with self._lock:
            count, window_end = self._windows.get(key, (0, now + window_seconds))
            if now >= window_end:
                count, window_end = 0, now + window_seconds
            count += 1
            self._windows[key] = (count, window_end)
        return count <= limit

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


_limiter = FixedWindowLimiter()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client and request.client.host else "unknown"


def reset_rate_limits() -> None:
    _limiter.clear()


def rate_limited(scope: str, *, limit: int, window_seconds: int):
    """FastAPI dependency rejecting a client IP after ``limit`` hits per window."""

    def _dependency(request: Request) -> None:
        if not _limiter.hit(f"{scope}:{client_ip(request)}", limit, window_seconds):
            raise TooManyRequests("Too many requests. Please try again shortly.")

    return _dependency
