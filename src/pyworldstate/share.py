"""Compact, URL-safe snapshot encoding for share links.

A share link carries ``lat``, ``lng`` and ``d``, where ``d`` is the
unpadded base64url of a short-keyed JSON object.  The encoding is lossy:
readings are rounded, article titles and provenance are dropped, and the
secondary signals come back as ``synthetic``.  The seed and edition
number survive unchanged, so the shared artwork is reproducible.
"""

from __future__ import annotations

import base64
import json
import logging
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlencode

from pyworldstate._api._common import clamp
from pyworldstate.fallback import tone_theme
from pyworldstate.geo import round_half_up
from pyworldstate.models._base import TrendDirection
from pyworldstate.models.world_state import WorldState

_logger = logging.getLogger(__name__)

# Index order is part of the link format.
TREND_DIRS: tuple[TrendDirection, ...] = (TrendDirection.UP, TrendDirection.DOWN, TrendDirection.NEUTRAL)
THEMES: tuple[str, ...] = ("conflict", "economy", "science", "culture", "sports", "politics", "default")


def _tenths(value: float) -> float:
    return round_half_up(value, 1)


def _whole(value: float) -> int:
    return int(round_half_up(value))


def share_payload(state: WorldState) -> dict[str, Any]:
    """The short-keyed dict that :func:`encode_share_payload` serializes."""
    theme = state.readership.top_theme
    return {
        "s": state.seed,
        "cc": state.location.city_code or "UNK",
        "cn": state.location.city,
        "e": state.edition_number,
        "t": _tenths(state.weather.temp),
        "w": _whole(state.weather.wind),
        "wd": _whole(state.weather.wind_dir),
        "uv": _tenths(state.weather.uv),
        "h": _whole(state.weather.humidity),
        "kp": _tenths(state.geomagnetic.kp_index),
        "sw": _whole(state.geomagnetic.solar_wind),
        "vi": _tenths(state.market.volatility_index),
        "td": TREND_DIRS.index(state.market.trend_dir),
        "ts": _whole(state.news.tone_score),
        "mm": _tenths(state.seismic.nearest_magnitude),
        "md": _whole(state.seismic.nearest_distance_km),
        "mq": state.seismic.total_last_hour,
        "at": THEMES.index(theme) if theme in THEMES else -1,
        "dl": 1 if state.solar.is_daylight else 0,
        "se": _tenths(state.solar.sun_elevation),
        "tk": state.trending.keyword[:20],
        "tsc": _whole(state.trending.score * 100),
        "tf": _whole(state.traffic.density * 100),
        "af": _whole(state.crowd.density * 100),
    }


def encode_share_payload(state: WorldState) -> str:
    """Encode *state* as unpadded base64url JSON."""
    payload = {key: value for key, value in share_payload(state).items() if value is not None}
    raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _lookup(table: tuple[Any, ...], index: Any, default: Any) -> Any:
    if isinstance(index, int) and 0 <= index < len(table):
        return table[index]
    return default


def decode_share_payload(
    encoded: str,
    *,
    lat: float = 0.0,
    lng: float = 0.0,
    now: datetime | None = None,
) -> WorldState | None:
    """Rebuild a snapshot from a share link, or ``None`` if it is unusable.

    Parameters
    ----------
    encoded : str
        The ``d`` query value.
    lat, lng : float
        Coordinates from the link's own ``lat``/``lng`` parameters.
    now : datetime or None
        ``generated_at`` of the rebuilt snapshot; defaults to the current time.
    """
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        p = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        if not isinstance(p, dict):
            return None
        tone = p["ts"]
        theme = _lookup(THEMES, p.get("at"), "culture")
        traffic_density = p["tf"] / 100
        return WorldState.model_validate(
            {
                "location": {"lat": lat, "lng": lng, "city": p.get("cn"), "cityCode": p.get("cc")},
                "generatedAt": now or datetime.now(UTC),
                "weather": {"temp": p["t"], "wind": p["w"], "windDir": p["wd"], "uv": p["uv"], "humidity": p["h"]},
                "geomagnetic": {"kpIndex": p["kp"], "solarWind": p["sw"]},
                "market": {"volatilityIndex": p["vi"], "trendDir": _lookup(TREND_DIRS, p.get("td"), "neutral")},
                "news": {
                    "toneScore": tone,
                    "conflictDensity": max(0, -tone) / 100,
                    "dominantTheme": tone_theme(tone),
                },
                "seismic": {
                    "nearestMagnitude": p["mm"],
                    "nearestDistanceKm": p["md"],
                    "totalLastHour": p["mq"],
                },
                "readership": {"topTheme": theme, "palette": theme, "topArticles": []},
                "solar": {"isDaylight": p["dl"] == 1, "sunElevation": p["se"], "uvIndex": clamp(p["uv"], 0.0, 11.0)},
                "trending": {"keyword": p["tk"], "score": p["tsc"] / 100, "source": "synthetic"},
                "traffic": {"density": traffic_density, "speedRatio": 1 - traffic_density, "source": "synthetic"},
                "crowd": {"density": p["af"] / 100, "peakHour": False},
                "apiHealth": {},
                "seed": p["s"],
                "editionNumber": p["e"],
            }
        )
    except (ValueError, KeyError, TypeError) as exc:
        _logger.debug("Discarding unusable share payload: %s", exc)
        return None


def build_share_query(state: WorldState) -> str:
    """Query string (``lat``, ``lng``, ``d``) for a share link to *state*."""
    return urlencode(
        {
            "lat": str(round_half_up(state.location.lat, 4)),
            "lng": str(round_half_up(state.location.lng, 4)),
            "d": encode_share_payload(state),
        }
    )
