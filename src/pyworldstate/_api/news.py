"""Global news tone from the GDELT DOC 2.0 article list.

Each article carries a ``V2Tone`` field of the form
``"avgTone,posScore,negScore,polarity,actRef,selfRef"``; only the first
component is used.
"""

from __future__ import annotations

from typing import Any

from pyworldstate._api._common import build_signal, clamp, get_signal_json, safe_float
from pyworldstate._constants import GDELT_DOC_URL, NEWS
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import NewsSentiment, NewsTheme

TONE_LIMIT = 100.0

_CONFLICT_WORDS = ("war", "attack", "killed", "conflict")
_ECONOMY_WORDS = ("market", "economy", "trade")
_SCIENCE_WORDS = ("science", "research", "space")


def _article_tone(article: Any) -> float | None:
    if not isinstance(article, dict):
        return None
    raw = article.get("V2Tone")
    if not isinstance(raw, str):
        return None
    return safe_float(raw.split(",")[0])


def classify_theme(titles: str, tone: float) -> NewsTheme:
    """First matching keyword group wins; positive tone without keywords reads as culture."""
    if any(word in titles for word in _CONFLICT_WORDS):
        return "conflict"
    if any(word in titles for word in _ECONOMY_WORDS):
        return "economy"
    if any(word in titles for word in _SCIENCE_WORDS):
        return "science"
    if tone > 10:
        return "culture"
    return "politics"


def parse_news(payload: Any) -> NewsSentiment:
    articles = payload.get("articles") if isinstance(payload, dict) else None
    if not isinstance(articles, list) or not articles:
        raise SignalFetchError("news: no articles", signal=NEWS, endpoint=GDELT_DOC_URL)

    tones = [tone for tone in (_article_tone(a) for a in articles) if tone is not None]
    if not tones:
        raise SignalFetchError("news: no tone data", signal=NEWS, endpoint=GDELT_DOC_URL)

    avg_tone = clamp(sum(tones) / len(tones), -TONE_LIMIT, TONE_LIMIT)
    titles = " ".join(str(a.get("title") or "") for a in articles if isinstance(a, dict)).lower()

    return build_signal(
        NewsSentiment,
        signal=NEWS,
        endpoint=GDELT_DOC_URL,
        tone_score=avg_tone,
        conflict_density=max(0.0, -avg_tone) / TONE_LIMIT,
        dominant_theme=classify_theme(titles, avg_tone),
    )


async def fetch_news(config: WorldStateConfig, transport: Transport) -> NewsSentiment:
    payload = await get_signal_json(
        transport,
        signal=NEWS,
        url=GDELT_DOC_URL,
        timeout=config.timeouts.news,
        params={
            "query": "*",
            "mode": "artlist",
            "maxrecords": "25",
            "format": "json",
            "timespan": "30min",
        },
    )
    return parse_news(payload)
