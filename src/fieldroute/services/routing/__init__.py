"""Routing provider adapters."""

from __future__ import annotations

from ...config import Settings, settings
from .google_client import GoogleDirectionsAdapter
from .google_client import check_health as google_health_check
from .models import STATUS_OK, Location, RouteLeg, RouteResult, RoutingAdapter, TravelMode
from .osrm_client import OSRMRoutingAdapter
from .osrm_client import check_health as osrm_health_check


def build_routing_adapter(config: Settings | None = None) -> RoutingAdapter:
    """Instantiate the configured provider; raises ValueError when it is not configured."""
    config = config or settings
    if config.routing_provider == "google":
        return GoogleDirectionsAdapter(api_key=config.google_maps_api_key, timeout=config.routing_timeout_seconds)
    return OSRMRoutingAdapter(
        base_url=config.osrm_base_url,
        profile=config.osrm_profile,
        timeout=config.routing_timeout_seconds,
    )


def check_routing_health(config: Settings | None = None) -> bool:
    config = config or settings
    if config.routing_provider == "google":
        return google_health_check(config.google_maps_api_key)
    return osrm_health_check(config.osrm_base_url)


__all__ = [
    "STATUS_OK",
    "Location",
    "RouteLeg",
    "RouteResult",
    "RoutingAdapter",
    "TravelMode",
    "GoogleDirectionsAdapter",
    "OSRMRoutingAdapter",
    "build_routing_adapter",
    "check_routing_health",
]
