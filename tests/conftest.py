from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

import pytest

from pyworldstate._constants import (
    COINGECKO_MARKETS_URL,
    GDELT_DOC_URL,
    NOAA_KP_URL,
    NOMINATIM_REVERSE_URL,
    OPEN_METEO_URL,
    TOMTOM_FLOW_URL,
    TWITTER_TRENDS_URL,
    USGS_QUERY_URL,
    WIKIMEDIA_TOP_URL,
)
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import WorldStateTransportError


class RoutingTransport:
    """Answers GETs by URL prefix; unrouted URLs fail like a dead network."""

    def __init__(
        self,
        routes: Mapping[str, Any],
        *,
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self._routes = dict(routes)
        self._delays = dict(delays or {})
        self.calls: list[tuple[str, dict[str, str], dict[str, str]]] = []

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float,
    ) -> Any:
        self.calls.append((url, dict(params or {}), dict(headers or {})))
        for prefix, delay in self._delays.items():
            if url.startswith(prefix):
                await asyncio.sleep(delay)
        for prefix, payload in self._routes.items():
            if url.startswith(prefix):
                if isinstance(payload, Exception):
                    raise payload
                return payload
        raise WorldStateTransportError(f"connection refused: {url}", endpoint=url)

    def called(self, prefix: str) -> bool:
        return any(url.startswith(prefix) for url, _params, _headers in self.calls)


@pytest.fixture
def fixed_now() -> datetime:
    # A Wednesday, 18:00 UTC.
    return datetime(2024, 6, 12, 18, 0, tzinfo=UTC)


@pytest.fixture
def live_routes() -> dict[str, Any]:
    return {
        OPEN_METEO_URL: {
            "current": {
                "temperature_2m": 18.4,
                "wind_speed_10m": 12.0,
                "wind_direction_10m": 270,
                "uv_index": 5.2,
                "relative_humidity_2m": 55,
            }
        },
        GDELT_DOC_URL: {
            "articles": [
                {"title": "Peace talks resume", "V2Tone": "-2.5,1.0,3.5,4.5,20.1,0.5"},
                {"title": "Markets rally on rate cut", "V2Tone": "1.5,3.0,1.5,4.5,18.0,0.2"},
            ]
        },
        NOAA_KP_URL: [
            {"time_tag": "2024-06-12T17:58:00", "kp_index": 2, "estimated_kp": 2.33},
            {"time_tag": "2024-06-12T17:59:00", "kp_index": 3, "estimated_kp": 3.33},
        ],
        COINGECKO_MARKETS_URL: [
            {"id": "bitcoin", "price_change_percentage_24h": 2.0},
            {"id": "ethereum", "price_change_percentage_24h": 4.0},
        ],
        WIKIMEDIA_TOP_URL: {
            "items": [
                {
                    "articles": [
                        {"article": "Main_Page", "views": 5_000_000},
                        {"article": "Solar_eclipse", "views": 400_000},
                        {"article": "Champions_League", "views": 300_000},
                    ]
                }
            ]
        },
        USGS_QUERY_URL: {
            "features": [
                {"geometry": {"coordinates": [-99.0, 19.5, 10.0]}, "properties": {"mag": 4.2}},
                {"geometry": {"coordinates": [140.0, 35.0, 5.0]}, "properties": {"mag": 5.0}},
            ]
        },
        TWITTER_TRENDS_URL: [{"trends": [{"name": "#WorldCup", "tweet_volume": 250_000}]}],
        TOMTOM_FLOW_URL: {"flowSegmentData": {"currentSpeed": 30, "freeFlowSpeed": 60}},
        NOMINATIM_REVERSE_URL: {"address": {"city": "Mexico City", "country": "Mexico"}},
    }


@pytest.fixture
def make_transport() -> Callable[..., RoutingTransport]:
    def _make(routes: Mapping[str, Any], *, delays: Mapping[str, float] | None = None) -> RoutingTransport:
        return RoutingTransport(routes, delays=delays)

    return _make


@pytest.fixture
def credentialed_config() -> WorldStateConfig:
    return WorldStateConfig(tomtom_api_key="tt-key", twitter_bearer_token="tw-token")
