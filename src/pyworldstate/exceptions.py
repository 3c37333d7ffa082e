"""Custom exception hierarchy for pyworldstate."""

from __future__ import annotations


class WorldStateError(Exception):
    """Base exception for all pyworldstate errors."""


class WorldStateConfigError(WorldStateError):
    """Invalid or missing configuration."""


class WorldStateTransportError(WorldStateError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SignalFetchError(WorldStateError):
    """A single upstream signal could not be produced.

    Raised by every fetcher in :mod:`pyworldstate._api` for any problem:
    transport failures are re-raised as this type, and payloads that are
    empty or unusable (e.g. a seismic feed with no events) raise it
    directly.  The aggregator converts it into a fallback value; it never
    reaches HTTP callers.
    """

    def __init__(
        self,
        message: str,
        *,
        signal: str,
        endpoint: str = "",
    ) -> None:
        self.signal = signal
        self.endpoint = endpoint
        super().__init__(message)


class InvalidCoordinatesError(WorldStateError, ValueError):
    """Latitude/longitude missing, not a number, or out of range."""

    def __init__(self, lat: object, lng: object) -> None:
        self.lat = lat
        self.lng = lng
        super().__init__(f"Invalid coordinates: lat={lat!r} lng={lng!r}")


class RateLimitExceededError(WorldStateError):
    """Caller identity exceeded its request quota for the current window."""

    def __init__(self, identity: str, *, limit: int) -> None:
        self.identity = identity
        self.limit = limit
        super().__init__(f"Rate limit exceeded for {identity}. Max {limit} req/min.")
