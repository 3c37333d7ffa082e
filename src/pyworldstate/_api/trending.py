"""Worldwide trending topics from the Twitter/X v1.1 trends API.

Only used when ``config.twitter_bearer_token`` is set; otherwise the
trending signal is derived from readership data (see
:mod:`pyworldstate.fallback`).
"""

from __future__ import annotations

from typing import Any

from pyworldstate._api._common import build_signal, clamp, get_signal_json, safe_float
from pyworldstate._constants import TRENDING, TWITTER_TRENDS_URL
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import Trending

#: Yahoo "Where On Earth" id for worldwide trends.
WORLDWIDE_WOEID = "1"
KEYWORD_MAX_LEN = 20
# Used when a trend has no published volume.
_DEFAULT_TWEET_VOLUME = 50_000.0
_FULL_SCORE_VOLUME = 1_000_000.0


def normalize_keyword(raw: str) -> str:
    return raw.strip().removeprefix("#").upper()[:KEYWORD_MAX_LEN]


def parse_trending(payload: Any) -> Trending:
    first = payload[0] if isinstance(payload, list) and payload else None
    trends = first.get("trends") if isinstance(first, dict) else None
    top = trends[0] if isinstance(trends, list) and trends else None
    if not isinstance(top, dict):
        raise SignalFetchError("trending: no trends", signal=TRENDING, endpoint=TWITTER_TRENDS_URL)

    keyword = normalize_keyword(str(top.get("name") or ""))
    if not keyword:
        raise SignalFetchError("trending: top trend has no name", signal=TRENDING, endpoint=TWITTER_TRENDS_URL)

    volume = safe_float(top.get("tweet_volume"))
    if volume is None:
        volume = _DEFAULT_TWEET_VOLUME
    return build_signal(
        Trending,
        signal=TRENDING,
        endpoint=TWITTER_TRENDS_URL,
        keyword=keyword,
        score=clamp(volume / _FULL_SCORE_VOLUME, 0.0, 1.0),
        source="twitter",
    )


async def fetch_trending(config: WorldStateConfig, transport: Transport) -> Trending:
    token = config.twitter_bearer_token
    if not token:
        raise SignalFetchError("trending: no bearer token configured", signal=TRENDING)
    payload = await get_signal_json(
        transport,
        signal=TRENDING,
        url=TWITTER_TRENDS_URL,
        timeout=config.timeouts.trending,
        params={"id": WORLDWIDE_WOEID},
        headers={"authorization": f"Bearer {token}"},
    )
    return parse_trending(payload)
