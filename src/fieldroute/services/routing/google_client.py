"""Google Directions implementation of the routing adapter."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.errors import RoutingError
from .http import ProviderHTTP
from .models import STATUS_OK, Location, RouteLeg, RouteResult, TravelMode, describe_location

logger = logging.getLogger(__name__)


class GoogleDirectionsAdapter:
    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.url = url or settings.google_directions_url
        self._http = ProviderHTTP("Google Directions", timeout or settings.routing_timeout_seconds, client)

    async def route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        mode: TravelMode = TravelMode.DRIVING,
    ) -> RouteResult:
        params = {
            "origin": describe_location(origin),
            "destination": describe_location(destination),
            "mode": mode.value,
            "key": self.api_key,
        }
        if waypoints:
            # Stop-over waypoints in schedule order; never "optimize:true".
            params["waypoints"] = "|".join(describe_location(point) for point in waypoints)

        data = await self._http.get_json(self.url, params=params)

        status = str(data.get("status") or "UNKNOWN_ERROR")
        if status != STATUS_OK:
            logger.warning(f"Directions request failed due to {status}")
            return RouteResult(status=status)

        routes = data.get("routes") or []
        if not routes:
            return RouteResult(status="ZERO_RESULTS")

        try:
            legs = [
                RouteLeg(
                    duration_seconds=int(leg["duration"]["value"]),
                    distance_meters=int(leg["distance"]["value"]),
                )
                for leg in routes[0].get("legs", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingError("INVALID_RESPONSE", "Directions response had malformed legs") from e
        return RouteResult(status=STATUS_OK, legs=legs)


def check_health(api_key: str | None = None) -> bool:
    """Report whether the Directions API is configured; no billable request is made."""
    return bool(api_key or settings.google_maps_api_key)
