"""Tests for the geocoding providers and the fallback chain."""

import asyncio

import httpx
import pytest

from internship_map.config import GeoConfig
from internship_map.core.exceptions import ProviderError
from internship_map.core.interfaces import GeoProvider
from internship_map.core.models import Coordinates
from internship_map.geo.area import is_target_area
from internship_map.geo.providers import (
    MapboxGeocoder,
    NominatimGeocoder,
    ProviderChain,
    build_geocoder_chain,
    parse_nominatim_address,
)

MAPBOX_FEATURE = {
    "center": [-79.9436, 40.4433],
    "place_name": "5000 Forbes Avenue, Pittsburgh, Pennsylvania 15213, United States",
    "text": "Forbes Avenue",
    "properties": {"address": "5000"},
    "context": [
        {"id": "postcode.1", "text": "15213"},
        {"id": "place.2", "text": "Pittsburgh"},
        {"id": "region.3", "text": "Pennsylvania"},
    ],
}
OHIO_FEATURE = {
    "center": [-82.99, 39.96],
    "place_name": "5000 Forbes Road, Columbus, Ohio 43215, United States",
    "text": "Forbes Road",
    "context": [{"id": "place.9", "text": "Columbus"}],
}
NOMINATIM_RESULT = {
    "lat": "40.4433",
    "lon": "-79.9436",
    "display_name": "5000, Forbes Avenue, Squirrel Hill North, Pittsburgh, "
    "Allegheny County, Pennsylvania, 15213, United States",
    "address": {
        "house_number": "5000",
        "road": "Forbes Avenue",
        "city": "Pittsburgh",
        "state": "Pennsylvania",
        "postcode": "15213",
    },
}


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def config():
    return GeoConfig(mapbox_access_token="tok")


# ============================================================================
# Mapbox
# ============================================================================


async def test_mapbox_geocode(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [MAPBOX_FEATURE]})

    async with make_client(handler) as client:
        coords = await MapboxGeocoder(config, client).geocode("5000 Forbes Ave")

    assert coords == Coordinates(lat=40.4433, lng=-79.9436)
    request = seen[0]
    assert request.url.host == "api.mapbox.com"
    assert request.url.path.endswith(".json")
    assert "5000" in request.url.path
    assert request.url.params["access_token"] == "tok"
    assert request.url.params["proximity"] == "-79.9959,40.4406"
    assert request.url.params["country"] == "us"
    assert request.url.params["limit"] == "1"
    assert "types" not in request.url.params


async def test_mapbox_search_parses_and_filters(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"features": [MAPBOX_FEATURE, OHIO_FEATURE]})

    async with make_client(handler) as client:
        candidates = await MapboxGeocoder(config, client).search("5000 Forbes", 5)

    assert seen[0].url.params["types"] == "address"
    assert seen[0].url.params["limit"] == "5"
    assert len(candidates) == 1
    address = candidates[0].address
    assert address.street == "5000 Forbes Avenue"
    assert address.city == "Pittsburgh"
    assert address.state == "Pennsylvania"
    assert address.zip == "15213"
    assert address.full_address == MAPBOX_FEATURE["place_name"]
    assert candidates[0].display == MAPBOX_FEATURE["place_name"]


async def test_mapbox_without_token_is_unavailable():
    geocoder = MapboxGeocoder(GeoConfig())
    assert not geocoder.available
    with pytest.raises(ProviderError):
        await geocoder.geocode("anything")


async def test_mapbox_malformed_response(config):
    async with make_client(lambda request: httpx.Response(200, json={"oops": 1})) as client:
        with pytest.raises(ProviderError):
            await MapboxGeocoder(config, client).geocode("x")


# ============================================================================
# Nominatim
# ============================================================================


async def test_nominatim_search_request_and_parsing(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[NOMINATIM_RESULT])

    async with make_client(handler) as client:
        candidates = await NominatimGeocoder(config, client).search("5000 Forbes", 5)

    request = seen[0]
    assert request.url.host == "nominatim.openstreetmap.org"
    assert request.url.params["q"] == "5000 Forbes Pittsburgh PA"
    assert request.url.params["format"] == "json"
    assert request.url.params["addressdetails"] == "1"
    assert request.url.params["bounded"] == "1"
    assert request.url.params["viewbox"] == "-80.1,40.35,-79.9,40.5"
    assert request.headers["User-Agent"] == "Pittsburgh-Internship-Map/1.0"

    assert len(candidates) == 1
    assert candidates[0].coordinates == Coordinates(lat=40.4433, lng=-79.9436)
    assert candidates[0].address.full_address == (
        "5000 Forbes Avenue, Pittsburgh, Pennsylvania, 15213"
    )


async def test_nominatim_geocode_is_unbounded(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[NOMINATIM_RESULT])

    async with make_client(handler) as client:
        coords = await NominatimGeocoder(config, client).geocode("5000 Forbes Ave")

    assert coords.lat == pytest.approx(40.4433)
    assert "bounded" not in seen[0].url.params
    assert seen[0].url.params["limit"] == "1"


async def test_nominatim_no_results(config):
    async with make_client(lambda request: httpx.Response(200, json=[])) as client:
        assert await NominatimGeocoder(config, client).geocode("nowhere") is None


def test_nominatim_house_number_from_display_name():
    address = parse_nominatim_address(
        {
            "display_name": "412, Grant Street, Downtown, Pittsburgh, Pennsylvania",
            "address": {"road": "Grant Street", "city": "Pittsburgh"},
        }
    )
    assert address.street == "412 Grant Street"
    assert address.state == "Pennsylvania"
    assert address.full_address == "412 Grant Street, Pittsburgh, Pennsylvania"


def test_nominatim_without_street_keeps_display_name():
    address = parse_nominatim_address(
        {"display_name": "Schenley Park, Pittsburgh, Pennsylvania", "address": {}}
    )
    assert address.street == ""
    assert address.city == "Pittsburgh"
    assert address.full_address == "Schenley Park, Pittsburgh, Pennsylvania"
    assert is_target_area(address)


# ============================================================================
# Fallback chain
# ============================================================================


class FakeProvider:
    def __init__(self, name, result=None, error=None, delay=0.0, available=True):
        self.name = name
        self.result = result
        self.error = error
        self.delay = delay
        self._available = available
        self.calls = 0

    @property
    def available(self):
        return self._available

    async def geocode(self, address):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result

    async def search(self, query, limit):
        return await self.geocode(query) or []


HERE = Coordinates(lat=40.44, lng=-79.99)


def test_providers_satisfy_protocol(config):
    assert isinstance(MapboxGeocoder(config), GeoProvider)
    assert isinstance(NominatimGeocoder(config), GeoProvider)


async def test_chain_uses_first_answer():
    first = FakeProvider("a", result=HERE)
    second = FakeProvider("b", result=Coordinates(lat=1, lng=1))
    result = await ProviderChain([first, second]).geocode("x")
    assert result.ok
    assert result.data == HERE
    assert result.provider == "a"
    assert second.calls == 0


@pytest.mark.parametrize(
    "failing",
    [
        FakeProvider("a", error=httpx.ConnectError("down")),
        FakeProvider("a", error=ProviderError("a", "bad payload")),
        FakeProvider("a", result=None),
        FakeProvider("a", result=HERE, available=False),
    ],
)
async def test_chain_falls_through(failing):
    result = await ProviderChain([failing, FakeProvider("b", result=HERE)]).geocode("x")
    assert result.provider == "b"
    assert result.data == HERE


async def test_chain_times_out_slow_provider():
    slow = FakeProvider("slow", result=HERE, delay=1.0)
    result = await ProviderChain(
        [slow, FakeProvider("b", result=HERE)], timeout=0.01
    ).geocode("x")
    assert result.provider == "b"


async def test_chain_all_failing_is_no_result():
    result = await ProviderChain(
        [FakeProvider("a", error=httpx.ReadTimeout("slow")), FakeProvider("b")]
    ).search("x", 5)
    assert not result.ok
    assert result.data is None


async def test_default_chain_falls_back_to_nominatim_on_http_error(config):
    def handler(request):
        if request.url.host == "api.mapbox.com":
            return httpx.Response(500)
        return httpx.Response(200, json=[NOMINATIM_RESULT])

    async with make_client(handler) as client:
        result = await build_geocoder_chain(config, client).geocode("5000 Forbes Ave")

    assert result.provider == "nominatim"


async def test_default_chain_skips_mapbox_without_token():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        return httpx.Response(200, json=[NOMINATIM_RESULT])

    async with make_client(handler) as client:
        result = await build_geocoder_chain(GeoConfig(), client).search("5000 Forbes", 5)

    assert result.ok
    assert hosts == ["nominatim.openstreetmap.org"]
