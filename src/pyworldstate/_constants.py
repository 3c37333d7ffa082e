"""Internal constants shared across the library."""

USER_AGENT = "pyworldstate/1.0 (+https://github.com/pyworldstate/pyworldstate)"

# ------------------------------------------------------------------
# Upstream endpoints
# ------------------------------------------------------------------

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
GDELT_DOC_URL = "https://api.gdeltproject.org/api/v2/doc/doc"
NOAA_KP_URL = "https://services.swpc.noaa.gov/json/planetary_k_index_1m.json"
COINGECKO_MARKETS_URL = "https://api.coingecko.com/api/v3/coins/markets"
WIKIMEDIA_TOP_URL = "https://wikimedia.org/api/rest_v1/metrics/pageviews/top/en.wikipedia/all-access"
USGS_QUERY_URL = "https://earthquake.usgs.gov/fdsnws/event/1/query"
TWITTER_TRENDS_URL = "https://api.twitter.com/1.1/trends/place.json"
TOMTOM_FLOW_URL = "https://api.tomtom.com/traffic/services/4/flowSegmentData/absolute/10/json"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# ------------------------------------------------------------------
# Aggregation policy
# ------------------------------------------------------------------

DEFAULT_CACHE_TTL: float = 5 * 60
DEFAULT_RATE_LIMIT: int = 10
DEFAULT_RATE_WINDOW: float = 60.0
# Identities tracked before stale windows are swept on the next admission.
RATE_LIMIT_SWEEP_THRESHOLD: int = 1024

#: Width of the time bucket folded into the seed (5 minutes, in ms).
SEED_TIME_WINDOW_MS: int = 5 * 60 * 1000

#: Coordinates are rounded to this many decimals (~1 km) for cache keys and seeds.
COORDINATE_PRECISION: int = 2

#: Used when the request omits ``lat``/``lng`` (Mexico City).
DEFAULT_LAT: float = 19.4326
DEFAULT_LNG: float = -99.1332

#: Identity bucket for callers without a forwarded-IP header.
UNKNOWN_IDENTITY = "unknown"

# ------------------------------------------------------------------
# Signal names (keys of ``WorldState.api_health``)
# ------------------------------------------------------------------

WEATHER = "weather"
NEWS = "news"
GEOMAGNETIC = "geomagnetic"
MARKET = "market"
READERSHIP = "readership"
SEISMIC = "seismic"
SOLAR = "solar"
TRENDING = "trending"
TRAFFIC = "traffic"
CROWD = "crowd"

SIGNAL_NAMES: tuple[str, ...] = (
    WEATHER,
    NEWS,
    GEOMAGNETIC,
    MARKET,
    READERSHIP,
    SEISMIC,
    SOLAR,
    TRENDING,
    TRAFFIC,
    CROWD,
)
