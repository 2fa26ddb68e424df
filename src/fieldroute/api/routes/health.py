"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_routing_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing import check_routing_health

    return check_routing_health


@router.get("/health/routing", status_code=status.HTTP_200_OK)
def health_routing() -> dict:
    """Check routing provider health."""
    try:
        routing_health_check = _get_routing_health_check()
        status_flag = routing_health_check()
        return {"service": settings.routing_provider, "healthy": status_flag}
    except Exception as e:
        return {"service": settings.routing_provider, "healthy": False, "error": str(e)}
