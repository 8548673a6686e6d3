"""
Geocoding and address search providers.

Mapbox is preferred when an access token is configured; Nominatim
(OpenStreetMap) needs no key and serves as the fallback. Providers raise
on failure and the ``ProviderChain`` turns every failure into a no-result.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Awaitable, Callable, Sequence, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger

from ..config import GeoConfig
from ..core.exceptions import ProviderError
from ..core.interfaces import AddressCandidate, GeoProvider, ProviderResult
from ..core.models import Coordinates, InternshipAddress

T = TypeVar("T")

DEFAULT_CITY = "Pittsburgh"
DEFAULT_STATE = "Pennsylvania"

_STATE_PATTERN = re.compile(r"\b(pa|pennsylvania)\b")
_LEADING_NUMBER = re.compile(r"^(\d+)[,\s]+")


def _in_metro_area(*texts: str) -> bool:
    """Lenient area filter: Pittsburgh or anywhere in Pennsylvania."""
    for text in texts:
        lowered = (text or "").lower()
        if "pittsburgh" in lowered or _STATE_PATTERN.search(lowered):
            return True
    return False


def _join(*parts: str) -> str:
    return ", ".join(p for p in parts if p).strip()


class _HttpProvider:
    """Shared httpx plumbing; a client may be injected for tests."""

    name = "http"

    def __init__(self, config: GeoConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()


class MapboxGeocoder(_HttpProvider):
    name = "mapbox"

    @property
    def available(self) -> bool:
        return bool(self.config.mapbox_access_token)

    def _url(self, text: str) -> str:
        return f"{self.config.mapbox_url}/{quote(text, safe='')}.json"

    def _params(self, limit: int, address_only: bool) -> dict[str, Any]:
        center = self.config.metro_center
        params: dict[str, Any] = {
            "access_token": self.config.mapbox_access_token,
            "limit": limit,
            "proximity": f"{center.lng},{center.lat}",
            "country": "us",
        }
        if address_only:
            params["types"] = "address"
        return params

    async def _features(
        self, text: str, limit: int, address_only: bool
    ) -> list[dict[str, Any]]:
        if not self.available:
            raise ProviderError(self.name, "No access token configured")
        data = await self._get_json(self._url(text), self._params(limit, address_only))
        features = data.get("features") if isinstance(data, dict) else None
        if features is None:
            raise ProviderError(self.name, "Malformed response: no 'features'")
        return features

    async def geocode(self, address: str) -> Coordinates | None:
        features = await self._features(address, 1, address_only=False)
        if not features:
            return None
        lng, lat = features[0]["center"][:2]
        return Coordinates(lat=lat, lng=lng)

    async def search(self, query: str, limit: int) -> list[AddressCandidate]:
        features = await self._features(query, limit, address_only=True)
        candidates = []
        for feature in features:
            context = feature.get("context") or []
            place = _context_text(context, "place.")
            if not _in_metro_area(feature.get("place_name", ""), place):
                continue
            lng, lat = feature["center"][:2]
            candidates.append(
                AddressCandidate(
                    display=feature.get("place_name") or feature.get("text") or query,
                    address=parse_mapbox_address(feature),
                    coordinates=Coordinates(lat=lat, lng=lng),
                )
            )
        return candidates[:limit]


def _context_text(context: Sequence[dict[str, Any]], prefix: str) -> str:
    for entry in context:
        if str(entry.get("id", "")).startswith(prefix):
            return entry.get("text", "")
    return ""


def parse_mapbox_address(feature: dict[str, Any]) -> InternshipAddress:
    """Address parts from a Mapbox feature: number + street, then context."""
    context = feature.get("context") or []
    number = str((feature.get("properties") or {}).get("address") or "")
    street_name = feature.get("text") or _context_text(context, "street")
    street = " ".join(p for p in (number, street_name) if p).strip()

    city = _context_text(context, "place") or DEFAULT_CITY
    state = _context_text(context, "region") or DEFAULT_STATE
    zip_code = _context_text(context, "postcode")

    return InternshipAddress(
        street=street,
        city=city,
        state=state,
        zip=zip_code,
        full_address=feature.get("place_name") or _join(street, city, state, zip_code),
    )


class NominatimGeocoder(_HttpProvider):
    name = "nominatim"

    @property
    def available(self) -> bool:
        return True

    def _params(self, text: str, limit: int, bounded: bool) -> dict[str, Any]:
        params: dict[str, Any] = {
            "format": "json",
            "q": f"{text} Pittsburgh PA",
            "limit": limit,
            "addressdetails": 1,
        }
        if bounded:
            params["bounded"] = 1
            params["viewbox"] = ",".join(str(v) for v in self.config.viewbox)
        return params

    async def _results(
        self, text: str, limit: int, bounded: bool
    ) -> list[dict[str, Any]]:
        # Nominatim's usage policy requires an identifying User-Agent
        data = await self._get_json(
            self.config.nominatim_url,
            self._params(text, limit, bounded),
            headers={"User-Agent": self.config.user_agent},
        )
        if not isinstance(data, list):
            raise ProviderError(self.name, "Malformed response: expected a list")
        return data

    async def geocode(self, address: str) -> Coordinates | None:
        results = await self._results(address, 1, bounded=False)
        if not results:
            return None
        return Coordinates(lat=float(results[0]["lat"]), lng=float(results[0]["lon"]))

    async def search(self, query: str, limit: int) -> list[AddressCandidate]:
        results = await self._results(query, limit, bounded=True)
        candidates = []
        for result in results:
            details = result.get("address") or {}
            city = (
                details.get("city")
                or details.get("town")
                or details.get("municipality")
                or ""
            )
            if not _in_metro_area(city, result.get("display_name", "")):
                continue
            candidates.append(
                AddressCandidate(
                    display=result.get("display_name") or result.get("name") or query,
                    address=parse_nominatim_address(result),
                    coordinates=Coordinates(
                        lat=float(result["lat"]), lng=float(result["lon"])
                    ),
                )
            )
        return candidates[:limit]


def parse_nominatim_address(result: dict[str, Any]) -> InternshipAddress:
    """
    Address parts from a Nominatim result.

    The house number falls back to a leading number in ``display_name``;
    when a street is known the full address is rebuilt as
    "street, city, state, zip" instead of Nominatim's long display name.
    """
    details = result.get("address") or {}
    display_name = result.get("display_name") or ""

    number = details.get("house_number") or ""
    if not number and display_name:
        match = _LEADING_NUMBER.match(display_name)
        if match:
            number = match.group(1)

    road = details.get("road") or details.get("street") or details.get("pedestrian") or ""
    street = " ".join(p for p in (number, road) if p).strip()
    city = (
        details.get("city")
        or details.get("town")
        or details.get("village")
        or details.get("municipality")
        or DEFAULT_CITY
    )
    state = details.get("state") or DEFAULT_STATE
    zip_code = details.get("postcode") or ""

    if street or not display_name:
        full_address = _join(street, city, state, zip_code)
    else:
        full_address = display_name.strip()

    return InternshipAddress(
        street=street, city=city, state=state, zip=zip_code, full_address=full_address
    )


class ProviderChain:
    """
    Ordered fallback over geo providers.

    Each provider gets ``timeout`` seconds. Exceptions, timeouts and empty
    answers all count as no-result and the next provider is tried.
    """

    def __init__(self, providers: Sequence[GeoProvider], timeout: float = 5.0):
        self.providers = list(providers)
        self.timeout = timeout

    async def _first(
        self, call: Callable[[GeoProvider], Awaitable[T | None]], what: str
    ) -> ProviderResult[T]:
        for provider in self.providers:
            if not provider.available:
                logger.debug(f"[{provider.name}] not configured, skipping {what}")
                continue
            try:
                data = await asyncio.wait_for(call(provider), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[{provider.name}] {what} timed out after {self.timeout}s")
                continue
            except httpx.HTTPStatusError as e:
                logger.warning(
                    f"[{provider.name}] {what} failed: HTTP {e.response.status_code}"
                )
                continue
            except (httpx.HTTPError, ProviderError, KeyError, ValueError, TypeError) as e:
                logger.warning(f"[{provider.name}] {what} failed: {e}")
                continue

            if data:
                return ProviderResult.success(data, provider.name)
            logger.debug(f"[{provider.name}] {what}: no result")

        return ProviderResult.no_result()

    async def geocode(self, address: str) -> ProviderResult[Coordinates]:
        return await self._first(lambda p: p.geocode(address), "geocode")

    async def search(self, query: str, limit: int) -> ProviderResult[list[AddressCandidate]]:
        return await self._first(lambda p: p.search(query, limit), "search")


def build_geocoder_chain(
    config: GeoConfig, client: httpx.AsyncClient | None = None
) -> ProviderChain:
    """Mapbox first (when a token is set), then Nominatim."""
    return ProviderChain(
        [MapboxGeocoder(config, client), NominatimGeocoder(config, client)],
        timeout=config.timeout_seconds,
    )
