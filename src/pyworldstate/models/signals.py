"""Typed values for the ten world-state signals.

Numeric ranges are part of each model's contract: a signal that cannot
satisfy them is rejected at construction, so a :class:`WorldState` built
from these models is always well-formed.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from pyworldstate.models._base import SignalModel, TrendDirection

NewsTheme = Literal["conflict", "economy", "science", "culture", "politics"]
TrendingSource = Literal["twitter", "wikipedia", "synthetic"]
TrafficSource = Literal["tomtom", "synthetic"]


class Weather(SignalModel):
    """Current atmospheric conditions at the location.

    Parameters
    ----------
    temp : float
        Air temperature in °C.
    wind : float
        Wind speed in km/h.
    wind_dir : float
        Wind direction in degrees (0-360).
    uv : float
        UV index.
    humidity : float
        Relative humidity in percent.
    """

    temp: float
    wind: float = Field(ge=0)
    wind_dir: float = Field(ge=0, le=360)
    uv: float = Field(ge=0)
    humidity: float = Field(ge=0, le=100)


class NewsSentiment(SignalModel):
    """Global news tone over the last half hour."""

    tone_score: float = Field(ge=-100, le=100)
    conflict_density: float = Field(ge=0, le=1)
    dominant_theme: NewsTheme


class Geomagnetic(SignalModel):
    """Planetary K index and solar wind speed (km/s)."""

    kp_index: float = Field(ge=0, le=9)
    solar_wind: float = Field(ge=0)


class Market(SignalModel):
    """Crypto market volatility (0-100) and 24h trend direction."""

    volatility_index: float = Field(ge=0, le=100)
    trend_dir: TrendDirection


class Readership(SignalModel):
    """What people read yesterday on English Wikipedia."""

    top_theme: str
    palette: str
    top_articles: tuple[str, ...] = ()

    @field_validator("top_articles", mode="before")
    @classmethod
    def _coerce_articles(cls, value: object) -> object:
        if isinstance(value, list):
            return tuple(value)
        return value


class Seismic(SignalModel):
    """Nearest earthquake in the last hour and the global count."""

    nearest_magnitude: float = Field(ge=0)
    nearest_distance_km: float = Field(ge=0)
    total_last_hour: int = Field(ge=0)


class Solar(SignalModel):
    """Sun position at the location, computed analytically."""

    is_daylight: bool
    sun_elevation: float = Field(ge=-90, le=90)
    uv_index: float = Field(ge=0, le=11)


class Trending(SignalModel):
    keyword: str = Field(max_length=20)
    score: float = Field(ge=0, le=1)
    source: TrendingSource


class Traffic(SignalModel):
    """Road congestion: ``density`` 0 is free flowing, 1 is gridlock."""

    density: float = Field(ge=0, le=1)
    speed_ratio: float = Field(ge=0, le=1)
    source: TrafficSource


class Crowd(SignalModel):
    density: float = Field(ge=0, le=1)
    peak_hour: bool
    source: Literal["synthetic"] = "synthetic"
