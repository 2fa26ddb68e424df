"""Nominatim address lookup used by coordinate-based routing providers."""

from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...models.domain import Coordinates
from ...models.errors import RoutingError
from .http import ProviderHTTP

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Resolve free-form addresses to coordinates, caching every hit."""

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.nominatim_base_url).rstrip("/")
        self.user_agent = user_agent or settings.nominatim_user_agent
        self._http = ProviderHTTP("Nominatim", timeout or settings.routing_timeout_seconds, client)
        self._cache: dict[str, Coordinates] = {}

    async def geocode(self, address: str) -> Coordinates:
        key = " ".join(address.lower().split())
        if key in self._cache:
            return self._cache[key]

        results = await self._http.get_json(
            f"{self.base_url}/search",
            params={"q": address, "format": "jsonv2", "limit": 1},
            headers={"User-Agent": self.user_agent},
        )
        if not isinstance(results, list) or not results:
            logger.warning(f"No geocoding match for address '{address}'")
            raise RoutingError("NOT_FOUND", f"Address could not be located: {address}")

        try:
            coordinates = Coordinates(float(results[0]["lat"]), float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise RoutingError("INVALID_RESPONSE", f"Malformed geocoding result for {address}") from e

        self._cache[key] = coordinates
        return coordinates
