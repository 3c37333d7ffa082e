"""Earthquakes in the last hour from the USGS FDSN event service."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pyworldstate._api._common import build_signal, get_signal_json, safe_float
from pyworldstate._constants import SEISMIC, USGS_QUERY_URL
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.geo import nearest_event, round_half_up
from pyworldstate.models.signals import Seismic


def _event_point(feature: Any) -> tuple[float, float, float] | None:
    """``(lat, lng, magnitude)`` from a GeoJSON feature, or ``None`` if unusable."""
    if not isinstance(feature, dict):
        return None
    geometry = feature.get("geometry")
    coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coords, list) or len(coords) < 2:
        return None
    # GeoJSON order is [lng, lat, depth].
    ev_lng, ev_lat = safe_float(coords[0]), safe_float(coords[1])
    if ev_lat is None or ev_lng is None:
        return None
    properties = feature.get("properties")
    magnitude = safe_float(properties.get("mag")) if isinstance(properties, dict) else None
    return ev_lat, ev_lng, magnitude or 0.0


def parse_seismic(payload: Any, lat: float, lng: float) -> Seismic:
    """Nearest event by great-circle distance.

    An empty feed is a failure rather than "no activity": USGS always has
    some events worldwide within an hour, so zero usually means a broken
    response.
    """
    features = payload.get("features") if isinstance(payload, dict) else None
    if not isinstance(features, list):
        raise SignalFetchError("seismic: response has no features", signal=SEISMIC, endpoint=USGS_QUERY_URL)

    points = [p for p in (_event_point(f) for f in features) if p is not None]
    nearest = nearest_event(lat, lng, points)
    if nearest is None:
        raise SignalFetchError("seismic: no usable events", signal=SEISMIC, endpoint=USGS_QUERY_URL)

    distance_km, magnitude = nearest
    return build_signal(
        Seismic,
        signal=SEISMIC,
        endpoint=USGS_QUERY_URL,
        nearest_magnitude=max(0.0, magnitude),
        nearest_distance_km=round_half_up(distance_km),
        total_last_hour=len(features),
    )


async def fetch_seismic(
    config: WorldStateConfig,
    transport: Transport,
    lat: float,
    lng: float,
    when: datetime,
) -> Seismic:
    start = when - timedelta(hours=1)
    payload = await get_signal_json(
        transport,
        signal=SEISMIC,
        url=USGS_QUERY_URL,
        timeout=config.timeouts.seismic,
        params={
            "format": "geojson",
            "starttime": start.strftime("%Y-%m-%dT%H:%M:%S"),
            "minmagnitude": "0",
            "orderby": "time",
            "limit": "20",
        },
    )
    return parse_seismic(payload, lat, lng)
