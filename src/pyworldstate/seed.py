"""Deterministic fingerprint of a world state.

The seed hashes a *coarsened* projection of the snapshot: coordinates to
~1 km, readings to whole units (kp and magnitude to tenths), and the
generation time to a 5-minute bucket.  Two snapshots of the same physical
situation therefore share a seed, and the renderer reproduces the same
artwork from it.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any

from pyworldstate._constants import SEED_TIME_WINDOW_MS
from pyworldstate.geo import quantize_coordinate, round_half_up
from pyworldstate.models.signals import Geomagnetic, Market, NewsSentiment, Seismic, Weather
from pyworldstate.models.world_state import Location, WorldState


def _canonical_number(value: float) -> int | float:
    # 20.0 and 20 must serialize identically ("20").
    return int(value) if float(value).is_integer() else value


def time_window(generated_at: datetime) -> int:
    """Index of the 5-minute bucket containing *generated_at*."""
    epoch_ms = int(generated_at.timestamp() * 1000)
    return epoch_ms // SEED_TIME_WINDOW_MS


def seed_projection(
    *,
    location: Location,
    generated_at: datetime,
    weather: Weather,
    geomagnetic: Geomagnetic,
    market: Market,
    news: NewsSentiment,
    seismic: Seismic,
) -> dict[str, Any]:
    """Ordered dict of the quantized fields that feed the seed."""
    return {
        "lat": _canonical_number(quantize_coordinate(location.lat)),
        "lng": _canonical_number(quantize_coordinate(location.lng)),
        "temp": _canonical_number(round_half_up(weather.temp)),
        "wind": _canonical_number(round_half_up(weather.wind)),
        "kp": _canonical_number(round_half_up(geomagnetic.kp_index * 10)),
        "vol": _canonical_number(round_half_up(market.volatility_index)),
        "tone": _canonical_number(round_half_up(news.tone_score)),
        "mag": _canonical_number(round_half_up(seismic.nearest_magnitude * 10)),
        "timeWindow": time_window(generated_at),
    }


def generate_seed(**components: Any) -> str:
    """SHA-256 hex digest of the canonical JSON of :func:`seed_projection`.

    Accepts the same keyword arguments as :func:`seed_projection`.
    """
    payload = json.dumps(seed_projection(**components), separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def seed_for_state(state: WorldState) -> str:
    """Recompute the seed of an existing snapshot."""
    return generate_seed(
        location=state.location,
        generated_at=state.generated_at,
        weather=state.weather,
        geomagnetic=state.geomagnetic,
        market=state.market,
        news=state.news,
        seismic=state.seismic,
    )


def seed_to_number(seed: str) -> float:
    """Map a seed to a float in [0, 1] (first 32 bits)."""
    return int(seed[:8], 16) / 0xFFFFFFFF
