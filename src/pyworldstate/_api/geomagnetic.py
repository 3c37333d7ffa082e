"""Planetary K index from NOAA SWPC."""

from __future__ import annotations

from typing import Any

from pyworldstate._api._common import build_signal, clamp, get_signal_json, safe_float
from pyworldstate._constants import GEOMAGNETIC, NOAA_KP_URL
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import Geomagnetic

KP_MAX = 9.0
DEFAULT_SOLAR_WIND = 400.0


def parse_geomagnetic(payload: Any) -> Geomagnetic:
    # The feed is a list of one-minute samples, oldest first.
    if isinstance(payload, list):
        latest = payload[-1] if payload else None
    else:
        latest = payload
    if not isinstance(latest, dict):
        raise SignalFetchError("geomagnetic: no samples", signal=GEOMAGNETIC, endpoint=NOAA_KP_URL)

    kp = safe_float(latest.get("kp_index"))
    if kp is None:
        kp = safe_float(latest.get("estimated_kp"))
    if kp is None:
        raise SignalFetchError("geomagnetic: sample has no kp_index", signal=GEOMAGNETIC, endpoint=NOAA_KP_URL)

    solar_wind = safe_float(latest.get("solar_wind"))
    return build_signal(
        Geomagnetic,
        signal=GEOMAGNETIC,
        endpoint=NOAA_KP_URL,
        kp_index=clamp(kp, 0.0, KP_MAX),
        solar_wind=DEFAULT_SOLAR_WIND if solar_wind is None else max(0.0, solar_wind),
    )


async def fetch_geomagnetic(config: WorldStateConfig, transport: Transport) -> Geomagnetic:
    payload = await get_signal_json(
        transport,
        signal=GEOMAGNETIC,
        url=NOAA_KP_URL,
        timeout=config.timeouts.geomagnetic,
    )
    return parse_geomagnetic(payload)
