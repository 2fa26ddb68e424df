"""Shared async HTTP plumbing for routing providers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

import httpx

from ...models.errors import RoutingError

logger = logging.getLogger(__name__)


class ProviderHTTP:
    """Owns or borrows an ``httpx.AsyncClient`` and maps transport failures.

    Failures are never retried here; the next triggering event retries.
    """

    def __init__(self, provider: str, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self.provider = provider
        self.timeout = timeout
        self._client = client

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0)) as client:
            yield client

    async def get_json(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        async with self._session() as client:
            try:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                code = e.response.status_code
                logger.warning(f"{self.provider} request returned HTTP {code}")
                raise RoutingError(f"HTTP_{code}", f"{self.provider} responded with HTTP {code}") from e
            except httpx.TimeoutException as e:
                logger.warning(f"{self.provider} request timed out after {self.timeout}s")
                raise RoutingError("TIMEOUT", f"{self.provider} request timed out") from e
            except httpx.HTTPError as e:
                logger.warning(f"{self.provider} request failed: {e}")
                raise RoutingError("NETWORK_ERROR", f"Failed to reach {self.provider}: {e}") from e
            except ValueError as e:
                raise RoutingError("INVALID_RESPONSE", f"{self.provider} returned malformed JSON") from e
