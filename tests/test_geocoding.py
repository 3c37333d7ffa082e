from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pyworldstate._api.geocoding import (
    CoordinateGeocoder,
    NominatimGeocoder,
    city_name_to_code,
    coordinate_code,
    label_location,
)
from pyworldstate._constants import NOMINATIM_REVERSE_URL
from pyworldstate.config import WorldStateConfig

MakeTransport = Callable[..., Any]


@pytest.mark.parametrize(
    ("name", "code"),
    [
        ("Ciudad de México", "CDMX"),
        ("Madrid", "MAD"),
        ("  TOKYO ", "TYO"),
        ("New York County", "NYC"),
        ("Xalapa", "XLP"),
        ("Iea", "IEA"),
        ("---", "UNK"),
    ],
)
def test_city_name_to_code(name: str, code: str) -> None:
    assert city_name_to_code(name) == code


@pytest.mark.parametrize(
    ("lat", "lng", "code"),
    [
        (19.43, -99.13, "CDMX"),
        (40.42, -3.70, "MAD"),
        (-33.45, -70.66, "SCL"),
        (45.5, 10.0, "L46"),
        (-7.2, 110.0, "L07"),
    ],
)
def test_coordinate_code(lat: float, lng: float, code: str) -> None:
    assert coordinate_code(lat, lng) == code


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("address", "city"),
    [
        ({"city": "Guadalajara"}, "Guadalajara"),
        ({"town": "Tepoztlán", "state": "Morelos"}, "Tepoztlán"),
        ({"state": "Yukon"}, "Yukon"),
        ({"country": "Antarctica"}, None),
    ],
)
async def test_nominatim_picks_most_specific_place(
    make_transport: MakeTransport, address: dict[str, str], city: str | None
) -> None:
    transport = make_transport({NOMINATIM_REVERSE_URL: {"address": address}})
    geocoder = NominatimGeocoder(WorldStateConfig(), transport)
    assert await geocoder.resolve_place(20.67, -103.35) == city
    _url, params, headers = transport.calls[0]
    assert params["zoom"] == "10"
    assert headers["accept-language"] == "en"


@pytest.mark.asyncio
async def test_label_location_uses_geocoded_name(make_transport: MakeTransport) -> None:
    transport = make_transport({NOMINATIM_REVERSE_URL: {"address": {"city": "Guadalajara"}}})
    assert await label_location(NominatimGeocoder(WorldStateConfig(), transport), 20.67, -103.35) == (
        "Guadalajara",
        "GDL",
    )


@pytest.mark.asyncio
async def test_label_location_degrades_to_placeholder_on_failure(make_transport: MakeTransport) -> None:
    geocoder = NominatimGeocoder(WorldStateConfig(), make_transport({}))
    assert await label_location(geocoder, 19.43, -99.13) == (None, "CDMX")


@pytest.mark.asyncio
async def test_coordinate_geocoder_never_names_a_place() -> None:
    assert await label_location(CoordinateGeocoder(), 45.2, 10.0) == (None, "L45")
