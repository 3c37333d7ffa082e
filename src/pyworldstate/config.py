"""Aggregator configuration for pyworldstate."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyworldstate._constants import DEFAULT_CACHE_TTL, DEFAULT_RATE_LIMIT, DEFAULT_RATE_WINDOW, USER_AGENT
from pyworldstate.exceptions import WorldStateConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[float] | type[int]) -> float | int:
    try:
        return cast(value)
    except ValueError as exc:
        raise WorldStateConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FetchTimeouts:
    """Per-upstream request timeouts in seconds.

    Upstream latencies differ by an order of magnitude, so every fetcher
    gets its own bound instead of one shared deadline.
    """

    weather: float = 5.0
    news: float = 5.0
    geomagnetic: float = 5.0
    market: float = 5.0
    readership: float = 5.0
    seismic: float = 5.0
    trending: float = 4.0
    traffic: float = 4.0
    geocoding: float = 4.0

    def for_signal(self, name: str) -> float:
        """Return the timeout for *name* (a field of this dataclass)."""
        value: float = getattr(self, name)
        return value


@dataclasses.dataclass(frozen=True)
class WorldStateConfig:
    """Aggregator configuration.

    Parameters
    ----------
    user_agent : str
        ``User-Agent`` header sent to every upstream provider.
    cache_ttl : float
        Seconds a computed world state stays valid for its quantized
        location.  Also advertised in ``Cache-Control: max-age``.
    rate_limit : int
        Maximum admitted requests per caller identity per window.
    rate_window : float
        Length of the fixed rate-limit window in seconds.
    tomtom_api_key : str or None
        Enables live traffic flow.  Without it traffic is simulated.
    twitter_bearer_token : str or None
        Enables live trending topics.  Without it trending is derived
        from readership data.
    geocoding_enabled : bool
        Resolve a place name through Nominatim.  When disabled, only the
        coordinate-derived placeholder code is used.
    timeouts : FetchTimeouts
        Per-upstream request timeouts.
    """

    user_agent: str = USER_AGENT
    cache_ttl: float = DEFAULT_CACHE_TTL
    rate_limit: int = DEFAULT_RATE_LIMIT
    rate_window: float = DEFAULT_RATE_WINDOW
    tomtom_api_key: str | None = None
    twitter_bearer_token: str | None = None
    geocoding_enabled: bool = True
    timeouts: FetchTimeouts = dataclasses.field(default_factory=FetchTimeouts)

    def __post_init__(self) -> None:
        if self.cache_ttl < 0:
            raise WorldStateConfigError(f"cache_ttl must be >= 0, got {self.cache_ttl}")
        if self.rate_limit < 1:
            raise WorldStateConfigError(f"rate_limit must be >= 1, got {self.rate_limit}")
        if self.rate_window <= 0:
            raise WorldStateConfigError(f"rate_window must be > 0, got {self.rate_window}")

    @classmethod
    def from_env(cls, **overrides: Any) -> WorldStateConfig:
        """Create configuration from environment variables.

        Reads optional ``WORLDSTATE_*`` variables (plus the provider
        credentials ``TOMTOM_API_KEY`` and ``TWITTER_BEARER_TOKEN``).
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        WorldStateConfig
            Populated configuration.

        Raises
        ------
        WorldStateConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        timeout_kwargs: dict[str, float] = {}
        for timeout_field in dataclasses.fields(FetchTimeouts):
            env_key = f"WORLDSTATE_TIMEOUT_{timeout_field.name.upper()}"
            val = env.get(env_key)
            if val is not None:
                timeout_kwargs[timeout_field.name] = float(_env_number(env_key, val, float))

        # Allow overriding timeouts via a nested dict
        timeout_overrides = overrides.pop("timeouts", None)
        if isinstance(timeout_overrides, dict):
            timeout_kwargs.update(timeout_overrides)
        elif isinstance(timeout_overrides, FetchTimeouts):
            timeout_kwargs = dataclasses.asdict(timeout_overrides)

        timeouts = FetchTimeouts(**timeout_kwargs) if timeout_kwargs else FetchTimeouts()

        _ENV_CONFIG_MAP = {
            "WORLDSTATE_USER_AGENT": "user_agent",
            "TOMTOM_API_KEY": "tomtom_api_key",
            "TWITTER_BEARER_TOKEN": "twitter_bearer_token",
        }
        config_kwargs: dict[str, Any] = {"timeouts": timeouts}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[float] | type[int]]] = {
            "WORLDSTATE_CACHE_TTL": ("cache_ttl", float),
            "WORLDSTATE_RATE_LIMIT": ("rate_limit", int),
            "WORLDSTATE_RATE_WINDOW": ("rate_window", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        if "geocoding_enabled" not in overrides:
            config_kwargs["geocoding_enabled"] = _env_bool(env.get("WORLDSTATE_GEOCODING_ENABLED"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
