from __future__ import annotations

import pytest

from pyworldstate.config import FetchTimeouts, WorldStateConfig
from pyworldstate.exceptions import WorldStateConfigError

_ENV_KEYS = (
    "WORLDSTATE_USER_AGENT",
    "WORLDSTATE_CACHE_TTL",
    "WORLDSTATE_RATE_LIMIT",
    "WORLDSTATE_RATE_WINDOW",
    "WORLDSTATE_GEOCODING_ENABLED",
    "WORLDSTATE_TIMEOUT_WEATHER",
    "TOMTOM_API_KEY",
    "TWITTER_BEARER_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_defaults() -> None:
    config = WorldStateConfig.from_env()
    assert config.cache_ttl == 300
    assert config.rate_limit == 10
    assert config.rate_window == 60
    assert config.tomtom_api_key is None
    assert config.twitter_bearer_token is None
    assert config.geocoding_enabled
    assert config.timeouts == FetchTimeouts()


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORLDSTATE_CACHE_TTL", "120")
    monkeypatch.setenv("WORLDSTATE_RATE_LIMIT", "25")
    monkeypatch.setenv("WORLDSTATE_GEOCODING_ENABLED", "off")
    monkeypatch.setenv("WORLDSTATE_TIMEOUT_WEATHER", "2.5")
    monkeypatch.setenv("TOMTOM_API_KEY", "tt-key")

    config = WorldStateConfig.from_env()

    assert config.cache_ttl == 120
    assert config.rate_limit == 25
    assert not config.geocoding_enabled
    assert config.timeouts.weather == 2.5
    assert config.timeouts.news == 5.0
    assert config.tomtom_api_key == "tt-key"


def test_explicit_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORLDSTATE_RATE_LIMIT", "25")
    monkeypatch.setenv("WORLDSTATE_GEOCODING_ENABLED", "false")

    config = WorldStateConfig.from_env(rate_limit=3, geocoding_enabled=True, timeouts={"traffic": 1.0})

    assert config.rate_limit == 3
    assert config.geocoding_enabled
    assert config.timeouts.traffic == 1.0


def test_unparsable_number_raises_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORLDSTATE_CACHE_TTL", "five minutes")
    with pytest.raises(WorldStateConfigError, match="WORLDSTATE_CACHE_TTL"):
        WorldStateConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [{"cache_ttl": -1}, {"rate_limit": 0}, {"rate_window": 0}],
)
def test_out_of_range_values_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(WorldStateConfigError):
        WorldStateConfig(**kwargs)  # type: ignore[arg-type]


def test_timeout_lookup_by_signal_name() -> None:
    timeouts = FetchTimeouts(seismic=7.0)
    assert timeouts.for_signal("seismic") == 7.0
    assert timeouts.for_signal("geocoding") == 4.0
