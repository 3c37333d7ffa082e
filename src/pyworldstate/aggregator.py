"""High-level async aggregator of world-state signals."""

from __future__ import annotations

import asyncio
import dataclasses
import itertools
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

import aiohttp

from pyworldstate._api.geocoding import (
    CoordinateGeocoder,
    Geocoder,
    NominatimGeocoder,
    coordinate_code,
    label_location,
)
from pyworldstate._api.geomagnetic import fetch_geomagnetic
from pyworldstate._api.market import fetch_market
from pyworldstate._api.news import fetch_news
from pyworldstate._api.readership import fetch_readership
from pyworldstate._api.seismic import fetch_seismic
from pyworldstate._api.traffic import fetch_traffic
from pyworldstate._api.trending import fetch_trending
from pyworldstate._api.weather import fetch_weather
from pyworldstate._cache import SignalCache
from pyworldstate._constants import (
    CROWD,
    GEOMAGNETIC,
    MARKET,
    NEWS,
    READERSHIP,
    SEISMIC,
    SIGNAL_NAMES,
    SOLAR,
    TRAFFIC,
    TRENDING,
    WEATHER,
)
from pyworldstate._transport import HttpTransport, Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import WorldStateError
from pyworldstate.fallback import STATIC_DEFAULTS, FallbackContext, synthesize
from pyworldstate.geo import cache_key, validate_coordinates
from pyworldstate.health import HealthReporter
from pyworldstate.models._base import SignalModel
from pyworldstate.models.signals import (
    Crowd,
    Geomagnetic,
    Market,
    NewsSentiment,
    Readership,
    Seismic,
    Solar,
    Traffic,
    Trending,
    Weather,
)
from pyworldstate.models.world_state import Location, WorldState
from pyworldstate.seed import generate_seed

_logger = logging.getLogger(__name__)

T = TypeVar("T")
TModel = TypeVar("TModel", bound=SignalModel)

# Shared by every aggregator in the process; one tick per assembled state.
_editions = itertools.count(1)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclasses.dataclass(frozen=True)
class SignalOutcome(Generic[T]):
    """Settled result of one fetch: a value or the error that replaced it."""

    signal: str
    value: T | None
    error: BaseException | None
    latency_ms: float

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None


async def settle(signal: str, call: Awaitable[T], timeout: float) -> SignalOutcome[T]:
    """Await *call* under *timeout* and capture its outcome instead of raising.

    Upstream failures (:class:`WorldStateError`) and timeouts become a
    failed outcome.  Anything else is a bug and propagates.
    """
    started = time.perf_counter()
    try:
        value = await asyncio.wait_for(call, timeout)
    except (WorldStateError, asyncio.TimeoutError) as exc:
        latency_ms = (time.perf_counter() - started) * 1000
        _logger.debug("%s fetch failed after %.0f ms: %s", signal, latency_ms, exc or type(exc).__name__)
        return SignalOutcome(signal=signal, value=None, error=exc, latency_ms=latency_ms)
    latency_ms = (time.perf_counter() - started) * 1000
    return SignalOutcome(signal=signal, value=value, error=None, latency_ms=latency_ms)


def _narrow(model_cls: type[TModel], value: SignalModel) -> TModel:
    if not isinstance(value, model_cls):
        raise TypeError(f"expected {model_cls.__name__}, got {type(value).__name__}")
    return value


def _substitute(model_cls: type[TModel], signal: str, context: FallbackContext) -> TModel:
    return _narrow(model_cls, synthesize(signal, context))


def _static(model_cls: type[TModel], signal: str) -> TModel:
    return _narrow(model_cls, STATIC_DEFAULTS[signal])


def static_world_state(lat: float, lng: float, *, when: datetime | None = None) -> WorldState:
    """A complete snapshot built only from static defaults.

    Used when aggregation itself breaks.  No provider is consulted, every
    signal is reported as ``fallback`` and the edition number is 0.
    """
    when = when or _utcnow()
    health = HealthReporter()
    for name in SIGNAL_NAMES:
        health.record_fallback(name)

    weather = _static(Weather, WEATHER)
    news = _static(NewsSentiment, NEWS)
    geomagnetic = _static(Geomagnetic, GEOMAGNETIC)
    market = _static(Market, MARKET)
    seismic = _static(Seismic, SEISMIC)
    location = Location(lat=lat, lng=lng, city_code=coordinate_code(lat, lng))
    return WorldState(
        location=location,
        generated_at=when,
        weather=weather,
        news=news,
        geomagnetic=geomagnetic,
        market=market,
        readership=_static(Readership, READERSHIP),
        seismic=seismic,
        solar=_static(Solar, SOLAR),
        trending=_static(Trending, TRENDING),
        traffic=_static(Traffic, TRAFFIC),
        crowd=_static(Crowd, CROWD),
        api_health=health.entries(),
        seed=generate_seed(
            location=location,
            generated_at=when,
            weather=weather,
            geomagnetic=geomagnetic,
            market=market,
            news=news,
            seismic=seismic,
        ),
        edition_number=0,
    )


class WorldStateAggregator:
    """Fetch, reconcile and cache world-state snapshots.

    Usage::

        async with WorldStateAggregator(config) as aggregator:
            state, cached = await aggregator.get_world_state(19.43, -99.13)

    Parameters
    ----------
    config : WorldStateConfig or None
        Aggregator configuration.  Defaults to :meth:`WorldStateConfig.from_env`.
    session : aiohttp.ClientSession or None
        Borrowed HTTP session.  When omitted, one is created on enter and
        closed on exit.
    transport : Transport or None
        Replaces the HTTP transport entirely (tests pass fakes here).
    geocoder : Geocoder or None
        Reverse geocoder.  Defaults to Nominatim when geocoding is enabled.
    cache : SignalCache or None
        Snapshot cache.  A private one is created when omitted.
    clock : callable or None
        Returns the current UTC ``datetime`` used as ``generated_at``.
    """

    def __init__(
        self,
        config: WorldStateConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        geocoder: Geocoder | None = None,
        cache: SignalCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or WorldStateConfig.from_env()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._owns_transport = transport is None
        self._geocoder = geocoder
        self._cache = cache if cache is not None else SignalCache()
        self._clock = clock or _utcnow

    @property
    def config(self) -> WorldStateConfig:
        return self._config

    @property
    def cache(self) -> SignalCache:
        return self._cache

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> WorldStateAggregator:
        if self._owns_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, user_agent=self._config.user_agent)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise WorldStateError("Aggregator not initialized. Use 'async with WorldStateAggregator(...) as agg:'")
        return self._transport

    def _resolve_geocoder(self, transport: Transport) -> Geocoder:
        if self._geocoder is not None:
            return self._geocoder
        if self._config.geocoding_enabled:
            return NominatimGeocoder(self._config, transport)
        return CoordinateGeocoder()

    def _timeout(self, signal: str) -> float:
        return self._config.timeouts.for_signal(signal)

    @staticmethod
    def _accept(outcome: SignalOutcome[TModel], health: HealthReporter) -> TModel | None:
        if outcome.ok:
            health.record_live(outcome.signal, outcome.latency_ms)
            return outcome.value
        health.record_fallback(outcome.signal, outcome.latency_ms)
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_world_state(self, lat: float, lng: float) -> tuple[WorldState, bool]:
        """Return ``(state, cached)`` for a coordinate.

        Upstream problems never raise: failed signals are replaced by
        substitutes and reported in ``api_health``.

        Raises
        ------
        InvalidCoordinatesError
            If *lat*/*lng* are not finite numbers within range.
        WorldStateError
            If the aggregator was not entered and no transport was given.
        """
        lat, lng = validate_coordinates(lat, lng)
        key = cache_key(lat, lng)

        hit = self._cache.get(key)
        if hit is not None:
            _logger.debug("World state cache hit for %s", key)
            return hit, True

        purged = self._cache.purge_expired()
        if purged:
            _logger.debug("Dropped %d expired world states", purged)

        state = await self._assemble(lat, lng)
        self._cache.put(key, state, self._config.cache_ttl)
        return state, False

    async def _assemble(self, lat: float, lng: float) -> WorldState:
        config = self._config
        transport = self._require_transport()
        geocoder = self._resolve_geocoder(transport)
        when = self._clock()
        health = HealthReporter()

        (
            weather_outcome,
            news_outcome,
            geomagnetic_outcome,
            market_outcome,
            readership_outcome,
            seismic_outcome,
            place,
        ) = await asyncio.gather(
            settle(WEATHER, fetch_weather(config, transport, lat, lng), self._timeout(WEATHER)),
            settle(NEWS, fetch_news(config, transport), self._timeout(NEWS)),
            settle(GEOMAGNETIC, fetch_geomagnetic(config, transport), self._timeout(GEOMAGNETIC)),
            settle(MARKET, fetch_market(config, transport), self._timeout(MARKET)),
            settle(READERSHIP, fetch_readership(config, transport, when), self._timeout(READERSHIP)),
            settle(SEISMIC, fetch_seismic(config, transport, lat, lng, when), self._timeout(SEISMIC)),
            label_location(geocoder, lat, lng),
        )

        trending_outcome, traffic_outcome = await asyncio.gather(
            self._fetch_trending(transport),
            self._fetch_traffic(transport, lat, lng),
        )

        context = FallbackContext(lat=lat, lng=lng, when=when)

        weather = self._accept(weather_outcome, health) or _substitute(Weather, WEATHER, context)
        geomagnetic = self._accept(geomagnetic_outcome, health) or _substitute(Geomagnetic, GEOMAGNETIC, context)
        market = self._accept(market_outcome, health) or _substitute(Market, MARKET, context)
        seismic = self._accept(seismic_outcome, health) or _substitute(Seismic, SEISMIC, context)
        readership = self._accept(readership_outcome, health) or _substitute(Readership, READERSHIP, context)
        context = dataclasses.replace(
            context,
            geomagnetic=geomagnetic,
            market=market,
            seismic=seismic,
            readership=readership,
        )

        news = self._accept(news_outcome, health) or _substitute(NewsSentiment, NEWS, context)
        context = dataclasses.replace(context, news=news)

        trending = self._resolve_optional(trending_outcome, health, TRENDING, Trending, context)
        traffic = self._resolve_optional(traffic_outcome, health, TRAFFIC, Traffic, context)

        solar = _substitute(Solar, SOLAR, context)
        health.record_live(SOLAR)
        crowd = _substitute(Crowd, CROWD, context)
        health.record_simulated(CROWD)

        city, city_code = place
        location = Location(lat=lat, lng=lng, city=city, city_code=city_code)

        degraded = health.degraded()
        if degraded:
            _logger.warning("World state for %.4f,%.4f degraded: %s", lat, lng, ", ".join(degraded))

        return WorldState(
            location=location,
            generated_at=when,
            weather=weather,
            news=news,
            geomagnetic=geomagnetic,
            market=market,
            readership=readership,
            seismic=seismic,
            solar=solar,
            trending=trending,
            traffic=traffic,
            crowd=crowd,
            api_health=health.entries(),
            seed=generate_seed(
                location=location,
                generated_at=when,
                weather=weather,
                geomagnetic=geomagnetic,
                market=market,
                news=news,
                seismic=seismic,
            ),
            edition_number=next(_editions),
        )

    async def _fetch_trending(self, transport: Transport) -> SignalOutcome[Trending] | None:
        if not self._config.twitter_bearer_token:
            return None
        return await settle(TRENDING, fetch_trending(self._config, transport), self._timeout(TRENDING))

    async def _fetch_traffic(self, transport: Transport, lat: float, lng: float) -> SignalOutcome[Traffic] | None:
        if not self._config.tomtom_api_key:
            return None
        return await settle(TRAFFIC, fetch_traffic(self._config, transport, lat, lng), self._timeout(TRAFFIC))

    def _resolve_optional(
        self,
        outcome: SignalOutcome[TModel] | None,
        health: HealthReporter,
        signal: str,
        model_cls: type[TModel],
        context: FallbackContext,
    ) -> TModel:
        """Resolve a signal whose provider needs a credential.

        Without a credential no fetch happens and the signal is simulated.
        """
        if outcome is None:
            health.record_simulated(signal)
            return _substitute(model_cls, signal, context)
        return self._accept(outcome, health) or _substitute(model_cls, signal, context)
