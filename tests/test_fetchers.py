from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from pyworldstate._api.geomagnetic import parse_geomagnetic
from pyworldstate._api.market import parse_market
from pyworldstate._api.news import fetch_news, parse_news
from pyworldstate._api.readership import fetch_readership, pageviews_url, parse_readership
from pyworldstate._api.seismic import fetch_seismic, parse_seismic
from pyworldstate._api.traffic import fetch_traffic, parse_traffic
from pyworldstate._api.trending import fetch_trending, normalize_keyword, parse_trending
from pyworldstate._api.weather import fetch_weather, parse_weather
from pyworldstate._constants import TOMTOM_FLOW_URL, TWITTER_TRENDS_URL, USGS_QUERY_URL, WIKIMEDIA_TOP_URL
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import SignalFetchError
from pyworldstate.models import TrendDirection

MakeTransport = Callable[..., Any]


# ── weather ──────────────────────────────────────────────────


def test_parse_weather_fills_missing_fields_from_defaults() -> None:
    weather = parse_weather({"current": {"temperature_2m": -4.5, "wind_direction_10m": 370}})
    assert weather.temp == -4.5
    assert weather.wind == 10.0
    assert weather.wind_dir == 10.0
    assert weather.humidity == 60.0


def test_parse_weather_treats_float_overflow_as_missing() -> None:
    payload = json.loads('{"current": {"temperature_2m": 1' + "0" * 400 + ', "uv_index": 4}}')
    weather = parse_weather(payload)
    assert weather.temp == 20.0
    assert weather.uv == 4


def test_parse_weather_without_current_block_fails() -> None:
    with pytest.raises(SignalFetchError) as exc_info:
        parse_weather({"current_units": {}})
    assert exc_info.value.signal == "weather"


@pytest.mark.asyncio
async def test_fetch_weather_maps_transport_failure_to_signal_error(make_transport: MakeTransport) -> None:
    with pytest.raises(SignalFetchError) as exc_info:
        await fetch_weather(WorldStateConfig(), make_transport({}), 19.43, -99.13)
    assert exc_info.value.signal == "weather"
    assert exc_info.value.__cause__ is not None


# ── news ─────────────────────────────────────────────────────


def test_parse_news_averages_tone_and_classifies_theme() -> None:
    news = parse_news(
        {
            "articles": [
                {"title": "Troops attack border town", "V2Tone": "-8.0,1,9"},
                {"title": "Talks stall", "V2Tone": "-4.0,1,5"},
                {"title": "No tone here"},
            ]
        }
    )
    assert news.tone_score == -6.0
    assert news.conflict_density == pytest.approx(0.06)
    assert news.dominant_theme == "conflict"


def test_parse_news_positive_tone_without_keywords_is_culture() -> None:
    news = parse_news({"articles": [{"title": "Festival opens", "V2Tone": "12.0,13,1"}]})
    assert news.dominant_theme == "culture"
    assert news.conflict_density == 0


@pytest.mark.parametrize("payload", [{}, {"articles": []}, {"articles": [{"title": "x"}]}, []])
def test_parse_news_without_tones_fails(payload: Any) -> None:
    with pytest.raises(SignalFetchError):
        parse_news(payload)


@pytest.mark.asyncio
async def test_fetch_news_requests_recent_article_list(
    make_transport: MakeTransport, live_routes: dict[str, Any]
) -> None:
    transport = make_transport(live_routes)
    news = await fetch_news(WorldStateConfig(), transport)
    assert news.tone_score == pytest.approx(-0.5)
    assert news.dominant_theme == "economy"
    _url, params, _headers = transport.calls[0]
    assert params["mode"] == "artlist"
    assert params["timespan"] == "30min"


# ── geomagnetic ──────────────────────────────────────────────


def test_parse_geomagnetic_uses_latest_sample() -> None:
    geo = parse_geomagnetic([{"kp_index": 1}, {"kp_index": 4, "solar_wind": 520}])
    assert geo.kp_index == 4
    assert geo.solar_wind == 520


def test_parse_geomagnetic_falls_back_to_estimated_kp_and_clamps() -> None:
    geo = parse_geomagnetic([{"estimated_kp": 12.5}])
    assert geo.kp_index == 9
    assert geo.solar_wind == 400


@pytest.mark.parametrize("payload", [[], [{"time_tag": "x"}], None, "oops"])
def test_parse_geomagnetic_rejects_unusable_feed(payload: Any) -> None:
    with pytest.raises(SignalFetchError):
        parse_geomagnetic(payload)


# ── market ───────────────────────────────────────────────────


def test_parse_market_volatility_and_trend() -> None:
    market = parse_market([{"price_change_percentage_24h": 2.0}, {"price_change_percentage_24h": 4.0}])
    assert market.volatility_index == pytest.approx(5.0)
    assert market.trend_dir is TrendDirection.UP


def test_parse_market_caps_volatility() -> None:
    market = parse_market([{"price_change_percentage_24h": -30}, {"price_change_percentage_24h": 30}])
    assert market.volatility_index == 100
    assert market.trend_dir is TrendDirection.NEUTRAL


def test_parse_market_treats_missing_change_as_zero() -> None:
    market = parse_market([{"price_change_percentage_24h": None}, {"price_change_percentage_24h": -4.0}])
    assert market.trend_dir is TrendDirection.DOWN


def test_parse_market_empty_list_fails() -> None:
    with pytest.raises(SignalFetchError):
        parse_market([])


# ── readership ───────────────────────────────────────────────


def test_pageviews_url_asks_for_yesterday() -> None:
    url = pageviews_url(datetime(2024, 1, 1, 0, 30, tzinfo=UTC))
    assert url == f"{WIKIMEDIA_TOP_URL}/2023/12/31"


def test_parse_readership_skips_special_pages_and_classifies() -> None:
    readership = parse_readership(
        {
            "items": [
                {
                    "articles": [
                        {"article": "Main_Page"},
                        {"article": "Special:Search"},
                        {"article": "2024_presidential_election"},
                        {"article": "Taylor_Swift"},
                    ]
                }
            ]
        }
    )
    assert readership.top_articles == ("2024 presidential election", "Taylor Swift")
    assert readership.top_theme == "politics"
    assert readership.palette == "politics"


def test_parse_readership_without_keywords_is_culture_with_default_palette() -> None:
    readership = parse_readership({"items": [{"articles": [{"article": "Taylor_Swift"}]}]})
    assert readership.top_theme == "culture"
    assert readership.palette == "default"


def test_parse_readership_without_ranking_fails() -> None:
    with pytest.raises(SignalFetchError):
        parse_readership({"detail": "not found"})


@pytest.mark.asyncio
async def test_fetch_readership_uses_dated_url(
    make_transport: MakeTransport, live_routes: dict[str, Any], fixed_now: datetime
) -> None:
    transport = make_transport(live_routes)
    readership = await fetch_readership(WorldStateConfig(), transport, fixed_now)
    assert readership.top_theme == "sports"
    assert transport.calls[0][0] == f"{WIKIMEDIA_TOP_URL}/2024/06/11"


# ── seismic ──────────────────────────────────────────────────


def test_parse_seismic_nearest_event_and_hourly_total(live_routes: dict[str, Any]) -> None:
    seismic = parse_seismic(live_routes[USGS_QUERY_URL], 19.43, -99.13)
    assert seismic.nearest_magnitude == 4.2
    assert seismic.total_last_hour == 2
    assert seismic.nearest_distance_km == float(int(seismic.nearest_distance_km))
    assert 0 < seismic.nearest_distance_km < 20


@pytest.mark.parametrize(
    "payload",
    [{"features": []}, {"features": [{"geometry": None}]}, {"type": "FeatureCollection"}],
)
def test_parse_seismic_empty_or_unusable_feed_fails(payload: Any) -> None:
    with pytest.raises(SignalFetchError):
        parse_seismic(payload, 0, 0)


@pytest.mark.asyncio
async def test_fetch_seismic_queries_last_hour(
    make_transport: MakeTransport, live_routes: dict[str, Any], fixed_now: datetime
) -> None:
    transport = make_transport(live_routes)
    await fetch_seismic(WorldStateConfig(), transport, 19.43, -99.13, fixed_now)
    _url, params, _headers = transport.calls[0]
    assert params["starttime"] == "2024-06-12T17:00:00"
    assert params["format"] == "geojson"


# ── trending ─────────────────────────────────────────────────


def test_normalize_keyword_strips_hash_and_truncates() -> None:
    assert normalize_keyword(" #WorldCup ") == "WORLDCUP"
    assert len(normalize_keyword("x" * 40)) == 20


def test_parse_trending_scores_by_volume() -> None:
    trending = parse_trending([{"trends": [{"name": "#Eclipse", "tweet_volume": 2_000_000}]}])
    assert trending.keyword == "ECLIPSE"
    assert trending.score == 1.0
    assert trending.source == "twitter"


def test_parse_trending_without_trends_fails() -> None:
    with pytest.raises(SignalFetchError):
        parse_trending([{"trends": []}])


@pytest.mark.asyncio
async def test_fetch_trending_requires_token(make_transport: MakeTransport, live_routes: dict[str, Any]) -> None:
    transport = make_transport(live_routes)
    with pytest.raises(SignalFetchError):
        await fetch_trending(WorldStateConfig(), transport)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_fetch_trending_sends_bearer_token(make_transport: MakeTransport, live_routes: dict[str, Any]) -> None:
    transport = make_transport(live_routes)
    trending = await fetch_trending(WorldStateConfig(twitter_bearer_token="tw-token"), transport)
    assert trending.keyword == "WORLDCUP"
    assert trending.score == pytest.approx(0.25)
    url, _params, headers = transport.calls[0]
    assert url == TWITTER_TRENDS_URL
    assert headers["authorization"] == "Bearer tw-token"


# ── traffic ──────────────────────────────────────────────────


def test_parse_traffic_density_is_inverse_speed_ratio() -> None:
    traffic = parse_traffic({"flowSegmentData": {"currentSpeed": 45, "freeFlowSpeed": 60}})
    assert traffic.speed_ratio == pytest.approx(0.75)
    assert traffic.density == pytest.approx(0.25)
    assert traffic.source == "tomtom"


def test_parse_traffic_without_segment_fails() -> None:
    with pytest.raises(SignalFetchError):
        parse_traffic({"error": "quota"})


@pytest.mark.asyncio
async def test_fetch_traffic_sends_key_and_point(make_transport: MakeTransport, live_routes: dict[str, Any]) -> None:
    transport = make_transport(live_routes)
    traffic = await fetch_traffic(WorldStateConfig(tomtom_api_key="tt-key"), transport, 19.43, -99.13)
    assert traffic.density == pytest.approx(0.5)
    url, params, _headers = transport.calls[0]
    assert url == TOMTOM_FLOW_URL
    assert params["key"] == "tt-key"
    assert params["point"] == "19.43,-99.13"


@pytest.mark.asyncio
async def test_fetch_traffic_requires_key(make_transport: MakeTransport) -> None:
    with pytest.raises(SignalFetchError):
        await fetch_traffic(WorldStateConfig(), make_transport({}), 0, 0)
