"""Reverse geocoding and short place codes.

Two :class:`Geocoder` implementations exist: :class:`NominatimGeocoder`
(OpenStreetMap, best-effort) and :class:`CoordinateGeocoder`, which never
resolves a name so the location is labelled with a coordinate-derived
placeholder code.  :func:`label_location` turns either outcome into the
``(city, city_code)`` pair stored on the world state.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Protocol

from pyworldstate._api._common import get_signal_json
from pyworldstate._constants import NOMINATIM_REVERSE_URL
from pyworldstate._transport import Transport
from pyworldstate.config import WorldStateConfig
from pyworldstate.exceptions import WorldStateError
from pyworldstate.geo import round_half_up

_logger = logging.getLogger(__name__)

CITY_CODES: dict[str, str] = {
    # Mexico
    "ciudad de méxico": "CDMX", "ciudad de mexico": "CDMX", "cdmx": "CDMX", "mexico city": "CDMX",
    "guadalajara": "GDL", "monterrey": "MTY", "puebla": "PUE",
    "tijuana": "TIJ", "cancún": "CUN", "cancun": "CUN", "mérida": "MID", "merida": "MID",
    "leon": "LEO", "léon": "LEO", "zapopan": "ZAP", "ecatepec": "ECA",
    # United States
    "new york city": "NYC", "new york": "NYC",
    "los angeles": "LAX", "chicago": "CHI", "houston": "HOU",
    "miami": "MIA", "san francisco": "SFO", "seattle": "SEA",
    "boston": "BOS", "atlanta": "ATL", "dallas": "DAL",
    "denver": "DEN", "phoenix": "PHX", "washington": "WDC",
    "las vegas": "LAS", "portland": "PDX", "minneapolis": "MSP",
    "detroit": "DET", "baltimore": "BAL", "nashville": "BNA",
    # Europe
    "madrid": "MAD", "barcelona": "BCN", "seville": "SVQ", "sevilla": "SVQ",
    "paris": "PAR", "marseille": "MRS", "lyon": "LYS", "toulouse": "TLS",
    "london": "LON", "manchester": "MAN", "birmingham": "BHX", "edinburgh": "EDI",
    "berlin": "BER", "munich": "MUC", "münchen": "MUC", "hamburg": "HAM", "frankfurt": "FRA",
    "cologne": "CGN", "köln": "CGN", "dusseldorf": "DUS", "düsseldorf": "DUS",
    "rome": "ROM", "roma": "ROM", "milan": "MIL", "milano": "MIL", "naples": "NAP", "napoli": "NAP",
    "amsterdam": "AMS", "rotterdam": "RTM", "the hague": "HAG",
    "brussels": "BRU", "bruxelles": "BRU", "antwerp": "ANT",
    "vienna": "VIE", "wien": "VIE", "graz": "GRZ",
    "zurich": "ZRH", "zürich": "ZRH", "geneva": "GVA", "genève": "GVA",
    "lisbon": "LIS", "lisboa": "LIS", "porto": "OPO",
    "athens": "ATH", "thessaloniki": "SKG",
    "warsaw": "WAW", "krakow": "KRK", "kraków": "KRK",
    "prague": "PRG", "brno": "BRQ",
    "budapest": "BUD", "stockholm": "STO", "gothenburg": "GOT", "göteborg": "GOT",
    "oslo": "OSL", "copenhagen": "CPH", "københavn": "CPH",
    "helsinki": "HEL", "bucharest": "OTP",
    "kyiv": "KBP", "kiev": "KBP",
    "moscow": "MOW", "saint petersburg": "LED",
    # Latin America
    "buenos aires": "BUE", "córdoba": "COR", "cordoba": "COR", "rosario": "ROS",
    "bogotá": "BOG", "bogota": "BOG", "medellín": "MDE", "medellin": "MDE", "cali": "CLO",
    "santiago": "SCL", "lima": "LIM", "quito": "UIO",
    "caracas": "CCS", "la paz": "LPZ", "montevideo": "MVD",
    "são paulo": "SAO", "sao paulo": "SAO", "rio de janeiro": "RIO", "brasília": "BSB", "brasilia": "BSB",
    "havana": "HAV", "santo domingo": "SDQ", "san juan": "SJU", "panama city": "PTY",
    "san josé": "SJO", "san jose": "SJO",
    # Asia
    "tokyo": "TYO", "osaka": "OSA", "kyoto": "KYO",
    "seoul": "SEL", "busan": "PUS",
    "beijing": "BJS", "shanghai": "SHA", "guangzhou": "CAN", "shenzhen": "SZX", "hong kong": "HKG",
    "singapore": "SIN", "bangkok": "BKK", "jakarta": "JKT",
    "mumbai": "BOM", "delhi": "DEL", "new delhi": "DEL", "bangalore": "BLR", "bengaluru": "BLR",
    "karachi": "KHI", "lahore": "LHE", "dhaka": "DAC",
    "tehran": "THR", "riyadh": "RUH", "dubai": "DXB", "abu dhabi": "AUH", "doha": "DOH",
    "tel aviv": "TLV", "jerusalem": "JRS", "beirut": "BEY", "istanbul": "IST", "ankara": "ANK",
    # Africa
    "cairo": "CAI", "casablanca": "CAS", "marrakech": "RAK", "marrakesh": "RAK",
    "lagos": "LOS", "accra": "ACC", "nairobi": "NBO",
    "johannesburg": "JNB", "cape town": "CPT", "addis ababa": "ADD", "kinshasa": "FIH",
    # Oceania
    "sydney": "SYD", "melbourne": "MEL", "brisbane": "BNE", "perth": "PER",
    "auckland": "AKL", "wellington": "WLG",
    # Canada
    "toronto": "YYZ", "montreal": "YUL", "montréal": "YUL",
    "vancouver": "YVR", "calgary": "YYC", "ottawa": "YOW",
}  # fmt: skip

# (lat_min, lat_max, lng_min, lng_max, code); bounds are exclusive.
_COORDINATE_BOXES: tuple[tuple[float, float, float, float, str], ...] = (
    (18, 21, -100, -98, "CDMX"),
    (40, 42, -4, -2, "MAD"),
    (40, 41, -75, -73, "NYC"),
    (33, 35, -119, -117, "LAX"),
    (48, 49, 2, 3, "PAR"),
    (51, 52, -1, 1, "LON"),
    (35, 36, 139, 140, "TYO"),
    (52, 53, 13, 14, "BER"),
    (41, 42, 12, 13, "ROM"),
    (25, 26, 55, 56, "DXB"),
    (-34, -33, -71, -70, "SCL"),
    (-24, -22, -44, -42, "RIO"),
)

_NAME_KEYS = ("city", "town", "village", "county", "state")


def city_name_to_code(name: str) -> str:
    """Map a place name to a short code.

    Exact table match first, then a prefix match in either direction,
    then the first three consonants of the ASCII-folded name.
    """
    key = name.strip().lower()
    code = CITY_CODES.get(key)
    if code is not None:
        return code

    for table_key, table_code in CITY_CODES.items():
        if key.startswith(table_key) or table_key.startswith(key):
            return table_code

    folded = unicodedata.normalize("NFD", name)
    letters = re.sub(r"[^a-zA-Z]", "", folded.encode("ascii", "ignore").decode()).upper()
    consonants = re.sub(r"[AEIOU]", "", letters)
    code = consonants[:3] if len(consonants) >= 3 else letters[:3]
    return code or "UNK"


def coordinate_code(lat: float, lng: float) -> str:
    """Placeholder code for a coordinate when no place name is available."""
    for lat_min, lat_max, lng_min, lng_max, code in _COORDINATE_BOXES:
        if lat_min < lat < lat_max and lng_min < lng < lng_max:
            return code
    return f"L{abs(int(round_half_up(lat))):02d}"


class Geocoder(Protocol):
    async def resolve_place(self, lat: float, lng: float) -> str | None:
        ...


class CoordinateGeocoder:
    """Never resolves a name; the location keeps only its placeholder code."""

    async def resolve_place(self, lat: float, lng: float) -> str | None:
        return None


class NominatimGeocoder:
    """OpenStreetMap Nominatim reverse geocoding at city zoom."""

    def __init__(self, config: WorldStateConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def resolve_place(self, lat: float, lng: float) -> str | None:
        payload: Any = await get_signal_json(
            self._transport,
            signal="geocoding",
            url=NOMINATIM_REVERSE_URL,
            timeout=self._config.timeouts.geocoding,
            params={"lat": str(lat), "lon": str(lng), "format": "json", "zoom": "10"},
            headers={"accept-language": "en"},
        )
        address = payload.get("address") if isinstance(payload, dict) else None
        if not isinstance(address, dict):
            return None
        for key in _NAME_KEYS:
            value = address.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None


async def label_location(geocoder: Geocoder, lat: float, lng: float) -> tuple[str | None, str]:
    """Return ``(city, city_code)``; geocoder failures degrade to the placeholder code."""
    try:
        city = await geocoder.resolve_place(lat, lng)
    except WorldStateError:
        _logger.debug("Reverse geocoding failed for %s,%s", lat, lng, exc_info=True)
        city = None
    if city:
        return city, city_name_to_code(city)
    return None, coordinate_code(lat, lng)
