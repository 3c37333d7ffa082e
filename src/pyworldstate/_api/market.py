"""Crypto market volatility from CoinGecko's top-10 by market cap."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from pyworldstate._api._common import build_signal, get_signal_json, safe_float
from pyworldstate._constants import COINGECKO_MARKETS_URL, MARKET
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models._base import TrendDirection
from pyworldstate.models.signals import Market

#: Standard deviation (in percentage points) is scaled by this to land on 0-100.
VOLATILITY_SCALE = 5.0
TREND_THRESHOLD = 1.0


def mean_and_stddev(values: Sequence[float]) -> tuple[float, float]:
    """Population mean and standard deviation."""
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return mean, math.sqrt(variance)


def trend_direction(mean_change: float) -> TrendDirection:
    if mean_change > TREND_THRESHOLD:
        return TrendDirection.UP
    if mean_change < -TREND_THRESHOLD:
        return TrendDirection.DOWN
    return TrendDirection.NEUTRAL


def parse_market(payload: Any) -> Market:
    if not isinstance(payload, list) or not payload:
        raise SignalFetchError("market: empty coin list", signal=MARKET, endpoint=COINGECKO_MARKETS_URL)

    changes: list[float] = []
    for coin in payload:
        if not isinstance(coin, dict):
            continue
        change = safe_float(coin.get("price_change_percentage_24h"))
        changes.append(0.0 if change is None else change)
    if not changes:
        raise SignalFetchError("market: no price changes", signal=MARKET, endpoint=COINGECKO_MARKETS_URL)

    mean, stddev = mean_and_stddev(changes)
    return build_signal(
        Market,
        signal=MARKET,
        endpoint=COINGECKO_MARKETS_URL,
        volatility_index=min(100.0, stddev * VOLATILITY_SCALE),
        trend_dir=trend_direction(mean),
    )


async def fetch_market(config: WorldStateConfig, transport: Transport) -> Market:
    payload = await get_signal_json(
        transport,
        signal=MARKET,
        url=COINGECKO_MARKETS_URL,
        timeout=config.timeouts.market,
        params={
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": "10",
            "page": "1",
            "sparkline": "false",
            "price_change_percentage": "24h",
        },
    )
    return parse_market(payload)
