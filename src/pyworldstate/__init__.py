"""pyworldstate - Async aggregator of live planetary signals into one world-state snapshot."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyworldstate")
except PackageNotFoundError:
    __version__ = "0+local"
from pyworldstate._cache import CacheEntry, SignalCache
from pyworldstate.aggregator import SignalOutcome, WorldStateAggregator, static_world_state
from pyworldstate.config import FetchTimeouts, WorldStateConfig
from pyworldstate.exceptions import (
    InvalidCoordinatesError,
    RateLimitExceededError,
    SignalFetchError,
    WorldStateConfigError,
    WorldStateError,
    WorldStateTransportError,
)
from pyworldstate.models import (
    Crowd,
    Geomagnetic,
    HealthEntry,
    HealthStatus,
    Location,
    Market,
    NewsSentiment,
    Readership,
    Seismic,
    Solar,
    Traffic,
    TrendDirection,
    Trending,
    Weather,
    WorldState,
    WorldStateResponse,
)
from pyworldstate.ratelimit import RateLimiter, client_identity
from pyworldstate.seed import generate_seed, seed_to_number
from pyworldstate.share import build_share_query, decode_share_payload, encode_share_payload

__all__ = [
    "__version__",
    "CacheEntry",
    "Crowd",
    "FetchTimeouts",
    "Geomagnetic",
    "HealthEntry",
    "HealthStatus",
    "InvalidCoordinatesError",
    "Location",
    "Market",
    "NewsSentiment",
    "RateLimitExceededError",
    "RateLimiter",
    "Readership",
    "Seismic",
    "SignalCache",
    "SignalFetchError",
    "SignalOutcome",
    "Solar",
    "Traffic",
    "TrendDirection",
    "Trending",
    "Weather",
    "WorldState",
    "WorldStateAggregator",
    "WorldStateConfig",
    "WorldStateConfigError",
    "WorldStateError",
    "WorldStateResponse",
    "WorldStateTransportError",
    "build_share_query",
    "client_identity",
    "decode_share_payload",
    "encode_share_payload",
    "generate_seed",
    "seed_to_number",
    "static_world_state",
]
