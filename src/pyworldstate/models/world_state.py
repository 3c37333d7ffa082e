"""The aggregate world-state snapshot and its HTTP envelope."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

from pydantic import Field, SerializerFunctionWrapHandler, field_serializer, field_validator

from pyworldstate.models._base import HealthStatus, SignalModel, UtcDatetime
from pyworldstate.models.signals import (
    Crowd,
    Geomagnetic,
    Market,
    NewsSentiment,
    Readership,
    Seismic,
    Solar,
    Traffic,
    Trending,
    Weather,
)


class Location(SignalModel):
    """Requested coordinate plus best-effort place labels.

    Parameters
    ----------
    lat : float
        Latitude in degrees (-90..90).
    lng : float
        Longitude in degrees (-180..180).
    city : str or None
        Place name from reverse geocoding, when it succeeded.
    city_code : str or None
        Short code for the place (``"CDMX"``, ``"MAD"``), or a
        coordinate-derived placeholder such as ``"L45"``.
    timezone : str or None
        IANA time zone, when known.
    """

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    city: str | None = None
    city_code: str | None = None
    timezone: str | None = None


class HealthEntry(SignalModel):
    status: HealthStatus
    latency_ms: int | None = Field(default=None, ge=0)


class WorldState(SignalModel):
    """One immutable snapshot of every signal for a location and instant.

    All ten signals are required fields: an instance can only exist when
    every signal holds either a live or a substitute value.  ``api_health``
    is a read-only view, so a cached snapshot cannot be edited in place.
    """

    location: Location
    generated_at: UtcDatetime
    weather: Weather
    news: NewsSentiment
    geomagnetic: Geomagnetic
    market: Market
    readership: Readership
    seismic: Seismic
    solar: Solar
    trending: Trending
    traffic: Traffic
    crowd: Crowd
    api_health: Mapping[str, HealthEntry] = Field(default_factory=dict, validate_default=True)
    seed: str
    edition_number: int = Field(default=0, ge=0)

    @field_validator("api_health", mode="after")
    @classmethod
    def _freeze_health(cls, value: Mapping[str, HealthEntry]) -> Mapping[str, HealthEntry]:
        return MappingProxyType(dict(value))

    @field_serializer("api_health", mode="wrap")
    def _serialize_health(
        self, value: Mapping[str, HealthEntry], handler: SerializerFunctionWrapHandler
    ) -> dict[str, Any]:
        return handler(dict(value))


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WorldStateResponse(SignalModel):
    """``GET /world-state`` response body."""

    data: WorldState | None = None
    error: str | None = None
    cached: bool = False
    fetched_at: UtcDatetime = Field(default_factory=_utcnow)

    def to_json_dict(self) -> dict[str, Any]:
        # ``data`` and ``error`` stay explicit nulls; only nested optionals are dropped.
        return {
            "data": self.data.to_json_dict() if self.data is not None else None,
            "error": self.error,
            "cached": self.cached,
            "fetchedAt": self.fetched_at.isoformat().replace("+00:00", "Z"),
        }
