"""Road traffic flow from the TomTom Flow Segment Data API.

Only used when ``config.tomtom_api_key`` is set; otherwise traffic is
simulated from local time of day (see :mod:`pyworldstate.fallback`).
"""

from __future__ import annotations

from typing import Any

from pyworldstate._api._common import build_signal, clamp, get_signal_json, safe_float
from pyworldstate._constants import TOMTOM_FLOW_URL, TRAFFIC
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import Traffic


def parse_traffic(payload: Any) -> Traffic:
    segment = payload.get("flowSegmentData") if isinstance(payload, dict) else None
    if not isinstance(segment, dict):
        raise SignalFetchError("traffic: no flow segment", signal=TRAFFIC, endpoint=TOMTOM_FLOW_URL)

    current = safe_float(segment.get("currentSpeed"))
    free_flow = safe_float(segment.get("freeFlowSpeed"))
    if current is None:
        current = 30.0
    if free_flow is None:
        free_flow = 50.0

    speed_ratio = clamp(current / max(1.0, free_flow), 0.0, 1.0)
    return build_signal(
        Traffic,
        signal=TRAFFIC,
        endpoint=TOMTOM_FLOW_URL,
        density=1.0 - speed_ratio,
        speed_ratio=speed_ratio,
        source="tomtom",
    )


async def fetch_traffic(config: WorldStateConfig, transport: Transport, lat: float, lng: float) -> Traffic:
    api_key = config.tomtom_api_key
    if not api_key:
        raise SignalFetchError("traffic: no API key configured", signal=TRAFFIC)
    payload = await get_signal_json(
        transport,
        signal=TRAFFIC,
        url=TOMTOM_FLOW_URL,
        timeout=config.timeouts.traffic,
        params={"key": api_key, "point": f"{lat},{lng}", "unit": "kmph"},
    )
    return parse_traffic(payload)
