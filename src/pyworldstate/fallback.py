"""Substitute values for signals that could not be fetched.

Three tiers exist:

* **static** - a fixed documented default per signal (:data:`STATIC_DEFAULTS`).
* **derived** - computed from signals that *did* resolve.  News sentiment is
  rebuilt from geomagnetic, market and seismic data so that one outage
  does not leave the aggregate looking inert; trending falls back to the
  top readership article.
* **simulated** - traffic, crowd and solar are computed from local time and
  position by design, whether or not any provider failed.

Every entry point is a pure function of a :class:`FallbackContext`, so the
dependency order (news after geomagnetic/market/seismic, trending after
readership, crowd after news) is explicit in the context the caller builds.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import datetime

from pyworldstate._api._common import clamp
from pyworldstate._constants import (
    CROWD,
    GEOMAGNETIC,
    MARKET,
    NEWS,
    READERSHIP,
    SEISMIC,
    SOLAR,
    TRAFFIC,
    TRENDING,
    WEATHER,
)
from pyworldstate.geo import local_hour, round_half_up, solar_position
from pyworldstate.models._base import SignalModel, TrendDirection
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
    Trending,
    Weather,
)

DEFAULT_WEATHER = Weather(temp=20, wind=10, wind_dir=0, uv=3, humidity=60)
DEFAULT_NEWS = NewsSentiment(tone_score=0, conflict_density=0.3, dominant_theme="culture")
DEFAULT_GEOMAGNETIC = Geomagnetic(kp_index=2, solar_wind=400)
DEFAULT_MARKET = Market(volatility_index=20, trend_dir=TrendDirection.NEUTRAL)
DEFAULT_READERSHIP = Readership(top_theme="science", palette="default", top_articles=())
DEFAULT_SEISMIC = Seismic(nearest_magnitude=0, nearest_distance_km=9999, total_last_hour=0)
DEFAULT_SOLAR = Solar(is_daylight=True, sun_elevation=45, uv_index=3)
DEFAULT_TRENDING = Trending(keyword="RESONANCE", score=0.5, source="synthetic")
DEFAULT_TRAFFIC = Traffic(density=0.3, speed_ratio=0.7, source="synthetic")
DEFAULT_CROWD = Crowd(density=0.3, peak_hour=False)

STATIC_DEFAULTS: dict[str, SignalModel] = {
    WEATHER: DEFAULT_WEATHER,
    NEWS: DEFAULT_NEWS,
    GEOMAGNETIC: DEFAULT_GEOMAGNETIC,
    MARKET: DEFAULT_MARKET,
    READERSHIP: DEFAULT_READERSHIP,
    SEISMIC: DEFAULT_SEISMIC,
    SOLAR: DEFAULT_SOLAR,
    TRENDING: DEFAULT_TRENDING,
    TRAFFIC: DEFAULT_TRAFFIC,
    CROWD: DEFAULT_CROWD,
}
"""Tier-1 values, used when nothing better is known."""

_TREND_TONE: dict[TrendDirection, float] = {
    TrendDirection.DOWN: -20.0,
    TrendDirection.UP: 10.0,
    TrendDirection.NEUTRAL: 0.0,
}

THEME_KEYWORDS: dict[str, str] = {
    "politics": "ELECTION",
    "conflict": "CONFLICT",
    "science": "DISCOVERY",
    "sports": "CHAMPIONSHIP",
    "culture": "CULTURE",
    "economy": "MARKETS",
}


@dataclasses.dataclass(frozen=True)
class FallbackContext:
    """Everything a derivation may look at.

    Signals left as ``None`` have not resolved yet; derivations that need
    them fall back to the static default for that input.
    """

    lat: float
    lng: float
    when: datetime
    geomagnetic: Geomagnetic | None = None
    market: Market | None = None
    seismic: Seismic | None = None
    readership: Readership | None = None
    news: NewsSentiment | None = None


def tone_theme(tone: float) -> NewsTheme:
    if tone < -20:
        return "conflict"
    if tone > 10:
        return "culture"
    return "politics"


def derive_news(context: FallbackContext) -> NewsSentiment:
    """Synthesize news tone from the rest of the world.

    Storms, falling markets and many earthquakes all pull the tone down:
    ``-(kp/9)*30 + trend_bias - (quakes/20)*15``.
    """
    geomagnetic = context.geomagnetic if context.geomagnetic is not None else DEFAULT_GEOMAGNETIC
    market = context.market if context.market is not None else DEFAULT_MARKET
    seismic = context.seismic if context.seismic is not None else DEFAULT_SEISMIC

    raw_tone = (
        -(geomagnetic.kp_index / 9) * 30
        + _TREND_TONE[market.trend_dir]
        - (seismic.total_last_hour / 20) * 15
    )
    tone = clamp(round_half_up(raw_tone), -100.0, 100.0)
    return NewsSentiment(
        tone_score=tone,
        conflict_density=max(0.0, -tone) / 100,
        dominant_theme=tone_theme(tone),
    )


def derive_trending(context: FallbackContext) -> Trending:
    """Top readership article first, then a keyword for the readership theme."""
    readership = context.readership if context.readership is not None else DEFAULT_READERSHIP

    if readership.top_articles:
        words = readership.top_articles[0].split(" ")[:2]
        keyword = " ".join(words).upper()[:20]
        if keyword.strip():
            return Trending(keyword=keyword, score=0.5, source="wikipedia")

    return Trending(
        keyword=THEME_KEYWORDS.get(readership.top_theme, "RESONANCE"),
        score=0.3,
        source="synthetic",
    )


def simulate_traffic(context: FallbackContext) -> Traffic:
    hour = local_hour(context.lng, context.when)
    is_rush = 7 <= hour <= 9 or 17 <= hour <= 19
    is_night = hour >= 23 or hour <= 5
    if is_night:
        density = 0.1
    elif is_rush:
        density = 0.75
    else:
        density = 0.35
    return Traffic(density=density, speed_ratio=1 - density, source="synthetic")


def simulate_crowd(context: FallbackContext) -> Crowd:
    """Foot traffic from local hour, weekday and news mood."""
    news = context.news if context.news is not None else DEFAULT_NEWS

    hour = local_hour(context.lng, context.when)
    # Weekday is taken in UTC, like the hour offset it ignores DST and borders.
    is_weekend = context.when.weekday() >= 5
    is_peak = 11 <= hour <= 14 or 18 <= hour <= 22
    is_morning = 7 <= hour <= 10

    if is_peak:
        base = 0.7
    elif is_morning:
        base = 0.45
    else:
        base = 0.25
    if is_weekend:
        base *= 1.25
    if news.tone_score > 20:
        base += 0.1
    base -= news.conflict_density * 0.2

    return Crowd(density=clamp(base, 0.0, 1.0), peak_hour=is_peak)


def compute_solar(context: FallbackContext) -> Solar:
    is_daylight, elevation, uv_index = solar_position(context.lat, context.lng, context.when)
    return Solar(is_daylight=is_daylight, sun_elevation=elevation, uv_index=uv_index)


_DERIVATIONS: dict[str, Callable[[FallbackContext], SignalModel]] = {
    NEWS: derive_news,
    TRENDING: derive_trending,
    TRAFFIC: simulate_traffic,
    CROWD: simulate_crowd,
    SOLAR: compute_solar,
}


def synthesize(signal_name: str, context: FallbackContext) -> SignalModel:
    """Return a complete substitute value for *signal_name*.

    Signals with a derivation use it; all others get their static default.

    Raises
    ------
    KeyError
        If *signal_name* is not a known signal.
    """
    if signal_name not in STATIC_DEFAULTS:
        raise KeyError(f"unknown signal {signal_name!r}")
    derive = _DERIVATIONS.get(signal_name)
    if derive is None:
        return STATIC_DEFAULTS[signal_name]
    return derive(context)
