"""Current weather from Open-Meteo."""

from __future__ import annotations

from typing import Any

from pyworldstate._api._common import build_signal, clamp, get_signal_json, safe_float
from pyworldstate._constants import OPEN_METEO_URL, WEATHER
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import Weather

_CURRENT_FIELDS = "temperature_2m,wind_speed_10m,wind_direction_10m,uv_index,relative_humidity_2m"

# Individual missing fields are filled from here; a missing ``current`` block is a failure.
_FIELD_DEFAULTS: dict[str, float] = {
    "temperature_2m": 20.0,
    "wind_speed_10m": 10.0,
    "wind_direction_10m": 0.0,
    "uv_index": 3.0,
    "relative_humidity_2m": 60.0,
}


def _field(current: dict[str, Any], name: str) -> float:
    value = safe_float(current.get(name))
    return _FIELD_DEFAULTS[name] if value is None else value


def parse_weather(payload: Any) -> Weather:
    current = payload.get("current") if isinstance(payload, dict) else None
    if not isinstance(current, dict) or not current:
        raise SignalFetchError("weather: response has no current conditions", signal=WEATHER, endpoint=OPEN_METEO_URL)

    return build_signal(
        Weather,
        signal=WEATHER,
        endpoint=OPEN_METEO_URL,
        temp=_field(current, "temperature_2m"),
        wind=max(0.0, _field(current, "wind_speed_10m")),
        wind_dir=_field(current, "wind_direction_10m") % 360,
        uv=max(0.0, _field(current, "uv_index")),
        humidity=clamp(_field(current, "relative_humidity_2m"), 0.0, 100.0),
    )


async def fetch_weather(config: WorldStateConfig, transport: Transport, lat: float, lng: float) -> Weather:
    payload = await get_signal_json(
        transport,
        signal=WEATHER,
        url=OPEN_METEO_URL,
        timeout=config.timeouts.weather,
        params={
            "latitude": str(lat),
            "longitude": str(lng),
            "current": _CURRENT_FIELDS,
            "wind_speed_unit": "kmh",
        },
    )
    return parse_weather(payload)
