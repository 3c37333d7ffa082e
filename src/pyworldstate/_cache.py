"""In-memory world-state cache keyed by quantized location."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from pyworldstate.models.world_state import WorldState


@dataclass(frozen=True)
class CacheEntry:
    """A cached snapshot and the monotonic instant it stops being valid."""

    value: WorldState
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class SignalCache:
    """Single-process TTL cache of complete world states.

    Expiry is lazy: :meth:`get` treats a stale entry as a miss and drops
    it.  :meth:`purge_expired` exists for memory hygiene only.  All map
    operations hold one lock, so the check-expiry-then-read sequence is
    safe from any thread.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> WorldState | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: WorldState, ttl: float) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def purge_expired(self) -> int:
        """Drop every stale entry; returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in stale:
                del self._entries[key]
            return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
