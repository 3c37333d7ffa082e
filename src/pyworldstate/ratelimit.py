"""Fixed-window request limiter per caller identity."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from pyworldstate._constants import (
    DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_WINDOW,
    RATE_LIMIT_SWEEP_THRESHOLD,
    UNKNOWN_IDENTITY,
)
from pyworldstate.exceptions import RateLimitExceededError


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class RateLimiter:
    """Admit at most *limit* requests per identity per *window* seconds.

    This is a fixed-window counter: O(1) memory per identity, at
    the cost of allowing up to ``2 * limit`` requests across a window
    boundary.  Rejected requests are not queued and do not count.

    Identities are caller-supplied, so once *sweep_threshold* of them
    are tracked, admitting a new identity first drops every identity whose
    window has already closed.
    """

    def __init__(
        self,
        limit: int = DEFAULT_RATE_LIMIT,
        window: float = DEFAULT_RATE_WINDOW,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = RATE_LIMIT_SWEEP_THRESHOLD,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def admit(self, identity: str) -> bool:
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identity)
            if entry is None and len(self._entries) >= self._sweep_threshold:
                self._sweep(now)
            if entry is None or now > entry.reset_at:
                self._entries[identity] = RateLimitEntry(count=1, reset_at=now + self.window)
                return True
            if entry.count >= self.limit:
                return False
            entry.count += 1
            return True

    def _sweep(self, now: float) -> None:
        stale = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in stale:
            del self._entries[key]

    def check(self, identity: str) -> None:
        """Admit a request or raise :class:`RateLimitExceededError`."""
        if not self.admit(identity):
            raise RateLimitExceededError(identity, limit=self.limit)

    def remaining(self, identity: str) -> int:
        """Requests still admissible for *identity* in its current window."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None or self._clock() > entry.reset_at:
                return self.limit
            return max(0, self.limit - entry.count)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def client_identity(headers: Mapping[str, str]) -> str:
    """Caller identity from the first ``X-Forwarded-For`` hop.

    The header is client-controlled and absent behind some proxies; all
    such callers share the ``"unknown"`` bucket.
    """
    forwarded = headers.get("X-Forwarded-For") or headers.get("x-forwarded-for")
    if not forwarded:
        return UNKNOWN_IDENTITY
    first = forwarded.split(",")[0].strip()
    return first or UNKNOWN_IDENTITY
