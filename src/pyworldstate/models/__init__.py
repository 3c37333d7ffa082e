"""Data models for world-state signals."""

from pyworldstate.models._base import HealthStatus, SignalModel, TrendDirection, UtcDatetime, parse_utc_datetime
from pyworldstate.models.signals import (
    Crowd,
    Geomagnetic,
    Market,
    NewsSentiment,
    NewsTheme,
    Readership,
    Seismic,
    Solar,
    Traffic,
    TrafficSource,
    Trending,
    TrendingSource,
    Weather,
)
from pyworldstate.models.world_state import HealthEntry, Location, WorldState, WorldStateResponse

__all__ = [
    "Crowd",
    "Geomagnetic",
    "HealthEntry",
    "HealthStatus",
    "Location",
    "Market",
    "NewsSentiment",
    "NewsTheme",
    "Readership",
    "Seismic",
    "SignalModel",
    "Solar",
    "Traffic",
    "TrafficSource",
    "TrendDirection",
    "Trending",
    "TrendingSource",
    "UtcDatetime",
    "Weather",
    "WorldState",
    "WorldStateResponse",
    "parse_utc_datetime",
]
