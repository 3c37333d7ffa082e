"""Most-read English Wikipedia articles (Wikimedia pageviews).

Pageview totals are only published for complete days, so the request is
always for yesterday (UTC); today's date returns 404.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pyworldstate._api._common import build_signal, get_signal_json
from pyworldstate._constants import READERSHIP, WIKIMEDIA_TOP_URL
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models.signals import Readership

_EXCLUDED_ARTICLES = frozenset({"Main Page", "Special:Search"})
_MAX_ARTICLES = 10

# (keywords, theme); the theme doubles as the palette key.
_THEME_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("election", "president", "minister"), "politics"),
    (("war", "attack", "conflict"), "conflict"),
    (("science", "space", "research"), "science"),
    (("sport", "championship", "league"), "sports"),
)


def pageviews_url(when: datetime) -> str:
    day = when - timedelta(days=1)
    return f"{WIKIMEDIA_TOP_URL}/{day:%Y}/{day:%m}/{day:%d}"


def classify_readership(articles: list[str]) -> tuple[str, str]:
    """Return ``(top_theme, palette)`` for the article titles."""
    text = " ".join(articles).lower()
    for keywords, theme in _THEME_RULES:
        if any(word in text for word in keywords):
            return theme, theme
    return "culture", "default"


def parse_readership(payload: Any, *, endpoint: str = WIKIMEDIA_TOP_URL) -> Readership:
    items = payload.get("items") if isinstance(payload, dict) else None
    first = items[0] if isinstance(items, list) and items else None
    raw_articles = first.get("articles") if isinstance(first, dict) else None
    if not isinstance(raw_articles, list):
        raise SignalFetchError("readership: no article ranking", signal=READERSHIP, endpoint=endpoint)

    titles: list[str] = []
    for entry in raw_articles[:20]:
        name = entry.get("article") if isinstance(entry, dict) else None
        if not isinstance(name, str):
            continue
        title = name.replace("_", " ")
        if title not in _EXCLUDED_ARTICLES:
            titles.append(title)
    titles = titles[:_MAX_ARTICLES]

    top_theme, palette = classify_readership(titles)
    return build_signal(
        Readership,
        signal=READERSHIP,
        endpoint=endpoint,
        top_theme=top_theme,
        palette=palette,
        top_articles=titles,
    )


async def fetch_readership(config: WorldStateConfig, transport: Transport, when: datetime) -> Readership:
    url = pageviews_url(when)
    payload = await get_signal_json(
        transport,
        signal=READERSHIP,
        url=url,
        timeout=config.timeouts.readership,
    )
    return parse_readership(payload, endpoint=url)
