"""Live adherence endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...schemas.timeline import AdherenceRequest, AdherenceResponse
from ...services.timeline.service import classify_adherence
from . import timeline as timeline_routes

router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.post("/classify", response_model=AdherenceResponse, status_code=status.HTTP_200_OK)
async def classify(payload: AdherenceRequest) -> AdherenceResponse:
    adapter = timeline_routes.routing_adapter_or_503()
    try:
        return await classify_adherence(payload, adapter)
    except Exception as exc:
        timeline_routes.raise_for_core_error(exc)
