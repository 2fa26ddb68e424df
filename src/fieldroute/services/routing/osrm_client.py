"""OSRM implementation of the routing adapter."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinates
from ...models.errors import RoutingError
from .geocoder import NominatimGeocoder
from .http import ProviderHTTP
from .models import STATUS_OK, Location, RouteLeg, RouteResult, TravelMode

logger = logging.getLogger(__name__)


class OSRMRoutingAdapter:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        geocoder: NominatimGeocoder | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout or settings.routing_timeout_seconds
        self.geocoder = geocoder or NominatimGeocoder(timeout=self.timeout, client=client)
        self._http = ProviderHTTP("OSRM", self.timeout, client)

    async def _resolve(self, location: Location) -> Coordinates:
        if isinstance(location, Coordinates):
            return location
        return await self.geocoder.geocode(location)

    async def route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        mode: TravelMode = TravelMode.DRIVING,
    ) -> RouteResult:
        """Route through every location in order using the OSRM route endpoint.

        OSRM has a single profile per server path, so ``mode`` only selects the
        configured driving profile.
        """
        path = [origin, *waypoints, destination]
        coordinates = [await self._resolve(location) for location in path]

        # OSRM route endpoint expects coordinates as "lon,lat;lon,lat;..."
        coordinate_str = ";".join(f"{point.lng},{point.lat}" for point in coordinates)
        params = {
            "overview": "false",
            "steps": "false",
        }
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        logger.debug(f"Requesting OSRM route through {len(coordinates)} locations")
        data = await self._http.get_json(url, params=params)

        code = data.get("code")
        if code != "Ok":
            logger.warning(f"OSRM route request failed: {code} {data.get('message', '')}")
            return RouteResult(status=str(code or "UNKNOWN_ERROR"))

        routes = data.get("routes") or []
        if not routes:
            return RouteResult(status="ZERO_RESULTS")

        try:
            legs = [
                RouteLeg(
                    duration_seconds=max(0, round(float(leg["duration"]))),
                    distance_meters=max(0, round(float(leg["distance"]))),
                )
                for leg in routes[0].get("legs", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingError("INVALID_RESPONSE", "OSRM returned malformed legs") from e
        return RouteResult(status=STATUS_OK, legs=legs)


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by making a simple route request.

    Public OSRM endpoints may not have a /health endpoint, so we test
    connectivity by routing between two fixed coordinates.
    """
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        data = response.json()
        return data.get("code") == "Ok"
    except (httpx.HTTPError, ValueError):
        return False
