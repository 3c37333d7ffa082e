"""Coordinate validation, quantization and spherical-Earth helpers."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime

from pyworldstate._constants import COORDINATE_PRECISION
from pyworldstate.exceptions import InvalidCoordinatesError

EARTH_RADIUS_KM = 6371.0

# Refraction-corrected horizon: the sun counts as up slightly below 0°.
_HORIZON_ELEVATION_DEG = -0.833


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round like ``Math.round`` (halves go toward +inf), not banker's rounding.

    Seeds and cache keys must not flip between neighbours because of
    Python's round-half-to-even.
    """
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def validate_coordinates(lat: float, lng: float) -> tuple[float, float]:
    """Return ``(lat, lng)`` as floats or raise :class:`InvalidCoordinatesError`.

    Bounds are inclusive: ``(90, 180)`` is valid, ``90.0001`` is not.
    """
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidCoordinatesError(lat, lng) from exc
    if math.isnan(lat_f) or math.isnan(lng_f):
        raise InvalidCoordinatesError(lat, lng)
    if not -90.0 <= lat_f <= 90.0 or not -180.0 <= lng_f <= 180.0:
        raise InvalidCoordinatesError(lat, lng)
    return lat_f, lng_f


def quantize_coordinate(value: float) -> float:
    """Round a coordinate to ~1 km precision (2 decimals)."""
    return round_half_up(value, COORDINATE_PRECISION)


def cache_key(lat: float, lng: float) -> str:
    """Key shared by every request that falls in the same ~1 km cell."""
    return f"{quantize_coordinate(lat):g},{quantize_coordinate(lng):g}"


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km on a spherical Earth."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def nearest_event(
    lat: float,
    lng: float,
    events: Iterable[tuple[float, float, float]],
) -> tuple[float, float] | None:
    """Return ``(distance_km, magnitude)`` of the closest ``(lat, lng, magnitude)`` event.

    Returns ``None`` for an empty iterable.  Ties keep the first event seen.
    """
    best: tuple[float, float] | None = None
    for ev_lat, ev_lng, magnitude in events:
        distance = haversine_km(lat, lng, ev_lat, ev_lng)
        if best is None or distance < best[0]:
            best = (distance, magnitude)
    return best


def _day_of_year(when: datetime) -> int:
    return when.timetuple().tm_yday


def solar_position(lat: float, lng: float, when: datetime) -> tuple[bool, float, float]:
    """Return ``(is_daylight, elevation_deg, uv_index)`` for the sun at *when* (UTC).

    Uses the simple declination/hour-angle model: accurate to a degree or
    two, which is plenty for a day/night switch.
    """
    utc_hour = when.hour + when.minute / 60
    solar_noon = 12 - lng / 15
    hour_angle = math.radians((utc_hour - solar_noon) * 15)

    declination = math.radians(23.45 * math.sin((2 * math.pi / 365) * (_day_of_year(when) - 81)))
    lat_rad = math.radians(lat)

    sin_el = math.sin(lat_rad) * math.sin(declination) + math.cos(lat_rad) * math.cos(declination) * math.cos(
        hour_angle
    )
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, sin_el))))

    uv_index = min(11.0, elevation / 8) if elevation > 0 else 0.0
    return elevation > _HORIZON_ELEVATION_DEG, elevation, uv_index


def local_hour(lng: float, when: datetime) -> int:
    """Approximate local hour from longitude (15° per hour), ignoring DST and borders."""
    return (when.hour + int(round_half_up(lng / 15))) % 24
