"""``GET /world-state`` over :mod:`aiohttp.web`."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping

from aiohttp import web

from pyworldstate._constants import DEFAULT_LAT, DEFAULT_LNG
from pyworldstate.aggregator import WorldStateAggregator, static_world_state
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import InvalidCoordinatesError, RateLimitExceededError
from pyworldstate.geo import validate_coordinates
from pyworldstate.models.world_state import WorldState, WorldStateResponse
from pyworldstate.ratelimit import RateLimiter, client_identity

_logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", WorldStateConfig)
AGGREGATOR_KEY = web.AppKey("aggregator", WorldStateAggregator)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RateLimiter)


def _respond(
    body: WorldStateResponse,
    *,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
) -> web.Response:
    return web.json_response(body.to_json_dict(), status=status, headers=headers)


def parse_coordinates(query: Mapping[str, str]) -> tuple[float, float]:
    """Read ``lat``/``lng`` from a query, defaulting each one when absent.

    Raises
    ------
    InvalidCoordinatesError
        If either value is unparsable, NaN or out of range.
    """
    lat = query.get("lat")
    lng = query.get("lng")
    return validate_coordinates(
        DEFAULT_LAT if lat is None else lat,  # type: ignore[arg-type]
        DEFAULT_LNG if lng is None else lng,  # type: ignore[arg-type]
    )


def _log_abandoned_failure(task: asyncio.Future[tuple[WorldState, bool]]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _logger.error("World state aggregation failed after client disconnect", exc_info=exc)


async def handle_world_state(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    limiter = request.app[RATE_LIMITER_KEY]
    aggregator = request.app[AGGREGATOR_KEY]

    try:
        limiter.check(client_identity(request.headers))
    except RateLimitExceededError as exc:
        _logger.info("%s", exc)
        return _respond(
            WorldStateResponse(error=f"Rate limit exceeded. Max {exc.limit} req/min."),
            status=429,
        )

    try:
        lat, lng = parse_coordinates(request.query)
    except InvalidCoordinatesError:
        return _respond(WorldStateResponse(error="Invalid coordinates"), status=400)

    # A client disconnect cancels this handler but not the aggregation,
    # so the result still lands in the cache.
    task = asyncio.ensure_future(aggregator.get_world_state(lat, lng))
    try:
        state, cached = await asyncio.shield(task)
    except asyncio.CancelledError:
        task.add_done_callback(_log_abandoned_failure)
        raise
    except Exception:
        _logger.exception("World state aggregation failed for %.4f,%.4f", lat, lng)
        return _respond(WorldStateResponse(data=static_world_state(lat, lng)))

    headers = None if cached else {"Cache-Control": f"public, max-age={int(config.cache_ttl)}"}
    return _respond(WorldStateResponse(data=state, cached=cached), headers=headers)


def create_app(
    config: WorldStateConfig | None = None,
    *,
    aggregator: WorldStateAggregator | None = None,
    rate_limiter: RateLimiter | None = None,
) -> web.Application:
    """Build the application.

    The aggregator is entered on startup and exited on cleanup, whether it
    was passed in or created here.
    """
    if config is None:
        config = aggregator.config if aggregator is not None else WorldStateConfig.from_env()
    agg = aggregator if aggregator is not None else WorldStateAggregator(config)

    app = web.Application()
    app[CONFIG_KEY] = config
    app[RATE_LIMITER_KEY] = rate_limiter or RateLimiter(config.rate_limit, config.rate_window)

    async def _aggregator_ctx(app: web.Application) -> AsyncIterator[None]:
        async with agg:
            app[AGGREGATOR_KEY] = agg
            yield

    app.cleanup_ctx.append(_aggregator_ctx)
    app.router.add_get("/world-state", handle_world_state)
    return app
