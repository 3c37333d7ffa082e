"""Per-signal provenance bookkeeping."""

from __future__ import annotations

from pyworldstate.models._base import HealthStatus
from pyworldstate.models.world_state import HealthEntry


class HealthReporter:
    """Collects how each signal of one aggregation cycle was obtained.

    ``live``: the fetch succeeded.  ``fallback``: the fetch failed and a
    static or derived substitute was used.  ``simulated``: the signal is
    computed by design and no fetch was attempted.
    """

    def __init__(self) -> None:
        self._entries: dict[str, HealthEntry] = {}

    def _record(self, name: str, status: HealthStatus, latency_ms: float | None) -> None:
        latency = None if latency_ms is None else max(0, int(round(latency_ms)))
        self._entries[name] = HealthEntry(status=status, latency_ms=latency)

    def record_live(self, name: str, latency_ms: float | None = None) -> None:
        self._record(name, HealthStatus.LIVE, latency_ms)

    def record_fallback(self, name: str, latency_ms: float | None = None) -> None:
        self._record(name, HealthStatus.FALLBACK, latency_ms)

    def record_simulated(self, name: str) -> None:
        self._record(name, HealthStatus.SIMULATED, None)

    def entries(self) -> dict[str, HealthEntry]:
        return dict(self._entries)

    def degraded(self) -> list[str]:
        """Signals that fell back because their provider failed."""
        return [name for name, entry in self._entries.items() if entry.status == HealthStatus.FALLBACK]
