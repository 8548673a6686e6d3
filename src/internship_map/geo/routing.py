"""
Travel time from the school to an internship site.

Durations come from OSRM. Bus times are not available from any free
routing service, so they are always left for the student to enter.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Sequence

import httpx
from loguru import logger

from ..config import GeoConfig
from ..core.exceptions import ProviderError
from ..core.interfaces import RouteProvider
from ..core.models import Coordinates, TravelTime

ROUTING_PROFILES = ("driving", "walking")

# Vehicle names for servers that host one OSRM instance per profile
_VEHICLES = {"driving": "car", "walking": "foot"}


def seconds_to_minutes(seconds: float) -> int:
    """Nearest whole minute, halves rounded up."""
    return math.floor(seconds / 60 + 0.5)


class OsrmRouter:
    """
    One OSRM server.

    ``base_url`` may contain ``{vehicle}``, which is filled with ``car`` or
    ``foot`` depending on the routing profile.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.name = f"osrm:{httpx.URL(base_url.replace('{vehicle}', 'x')).host}"
        self._client = client
        self.timeout = timeout

    def route_url(
        self, origin: Coordinates, destination: Coordinates, profile: str
    ) -> str:
        base = self.base_url.replace("{vehicle}", _VEHICLES.get(profile, profile))
        # OSRM takes longitude first
        return (
            f"{base}/{profile}/"
            f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        )

    async def _fetch(self, url: str) -> Any:
        params = {"overview": "false"}
        headers = {"Accept": "application/json"}
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

    async def duration_minutes(
        self, origin: Coordinates, destination: Coordinates, profile: str
    ) -> int | None:
        data = await self._fetch(self.route_url(origin, destination, profile))
        if not isinstance(data, dict) or data.get("code") != "Ok":
            code = data.get("code") if isinstance(data, dict) else None
            raise ProviderError(self.name, f"No {profile} route (code={code})")
        routes = data.get("routes") or []
        if not routes:
            return None
        return seconds_to_minutes(routes[0].get("duration") or 0)


class TravelTimeCalculator:
    """
    Driving and walking minutes from a fixed origin.

    Routers are tried in order; the first one that answers both profiles
    wins. When every router fails the result is all zeros, which the rest
    of the application treats as unknown.
    """

    def __init__(
        self,
        routers: Sequence[RouteProvider],
        origin: Coordinates,
        timeout: float = 5.0,
    ):
        self.routers = list(routers)
        self.origin = origin
        self.timeout = timeout

    async def _from_router(
        self, router: RouteProvider, destination: Coordinates
    ) -> dict[str, int] | None:
        minutes = {}
        for profile in ROUTING_PROFILES:
            value = await asyncio.wait_for(
                router.duration_minutes(self.origin, destination, profile),
                timeout=self.timeout,
            )
            if value is None:
                return None
            minutes[profile] = value
        return minutes

    async def calculate(self, destination: Coordinates) -> TravelTime:
        for router in self.routers:
            try:
                minutes = await self._from_router(router, destination)
            except asyncio.TimeoutError:
                logger.warning(f"[{router.name}] routing timed out")
                continue
            except (httpx.HTTPError, ProviderError, KeyError, ValueError, TypeError) as e:
                logger.warning(f"[{router.name}] routing failed: {e}")
                continue
            if minutes is None:
                logger.debug(f"[{router.name}] no route to {destination}")
                continue
            return TravelTime(
                driving=minutes["driving"], walking=minutes["walking"], bus=0
            )

        logger.error(f"Could not calculate travel time to {destination}")
        return TravelTime(driving=0, walking=0, bus=0)


def build_travel_time_calculator(
    config: GeoConfig, client: httpx.AsyncClient | None = None
) -> TravelTimeCalculator:
    routers = [
        OsrmRouter(url, client=client, timeout=config.timeout_seconds)
        for url in config.osrm_urls
    ]
    return TravelTimeCalculator(
        routers, config.travel_origin, timeout=config.timeout_seconds
    )


def format_travel_time(minutes: float | None) -> str:
    if minutes is None or minutes <= 0:
        return "N/A"
    if minutes < 1:
        return "< 1 min"
    if minutes == 1:
        return "1 min"
    return f"{minutes} min"
