"""Timeline endpoints."""

from __future__ import annotations

import logging
from typing import Literal, NoReturn

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...models.errors import InputError, RoutingError
from ...schemas.timeline import RouteTimelineModel, StopSelectionRequest, StopSelectionResponse, TimelineRequest
from ...services.routing import RoutingAdapter, build_routing_adapter
from ...services.timeline.service import (
    export_timeline_csv,
    export_timeline_json,
    project_timeline,
    select_stops_for_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/timeline", tags=["timeline"])


def routing_adapter_or_503() -> RoutingAdapter:
    try:
        return build_routing_adapter()
    except ValueError as exc:
        logger.error(f"Routing provider initialization failed: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Routing provider is not configured: {exc}",
        ) from exc


def raise_for_core_error(exc: Exception) -> NoReturn:
    """Translate core error values into HTTP errors."""
    if isinstance(exc, InputError):
        raise HTTPException(
            status_code=422,
            detail={"message": exc.message, "stop_ids": list(exc.stop_ids)},
        ) from exc
    if isinstance(exc, RoutingError):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": exc.message, "provider_status": exc.status},
        ) from exc
    logger.exception(f"Unexpected timeline failure: {exc}")
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to compute timeline: {str(exc)}",
    ) from exc


@router.post("/stops", response_model=StopSelectionResponse, status_code=status.HTTP_200_OK)
def select_stops(payload: StopSelectionRequest) -> StopSelectionResponse:
    """Filter and order the day's jobs into stops."""
    return select_stops_for_request(payload)


@router.post("/project", response_model=RouteTimelineModel, status_code=status.HTTP_200_OK)
async def project(payload: TimelineRequest) -> RouteTimelineModel:
    adapter = routing_adapter_or_503()
    try:
        return await project_timeline(payload, adapter)
    except Exception as exc:
        raise_for_core_error(exc)


@router.post("/export", status_code=status.HTTP_200_OK)
async def export(
    payload: TimelineRequest,
    format: Literal["csv", "json"] = Query(default="csv"),
) -> Response:
    """Download the projected timeline as CSV or JSON."""
    adapter = routing_adapter_or_503()
    filename = f"route_{payload.date.isoformat()}.{format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    try:
        if format == "json":
            return JSONResponse(await export_timeline_json(payload, adapter), headers=headers)
        content = await export_timeline_csv(payload, adapter)
    except Exception as exc:
        raise_for_core_error(exc)
    return PlainTextResponse(content, media_type="text/csv", headers=headers)
