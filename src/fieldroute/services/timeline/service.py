"""Request orchestration for the timeline and adherence endpoints."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import HOME_TARGET_ID, AdherenceStatus, RouteTimeline, Stop
from ...models.errors import FieldRouteError
from ...schemas.timeline import (
    AdherenceRequest,
    AdherenceResponse,
    AdherenceStatusModel,
    RouteTimelineModel,
    StopModel,
    StopSelectionRequest,
    StopSelectionResponse,
    TimelineEntryModel,
    TimelineRequest,
)
from ..adherence.classifier import classify
from ..outputs.formatter import format_clock, format_duration, render_on_my_way
from ..outputs.timeline_formatter import timeline_to_csv, timeline_to_json
from ..routing.models import RoutingAdapter
from ..stops.selector import select_stops
from .clock import resolve_timezone
from .projector import project

logger = logging.getLogger(__name__)


def _resolve_home(payload: TimelineRequest) -> Optional[str]:
    if payload.home_address and payload.home_address.strip():
        return payload.home_address.strip()
    if payload.use_default_home:
        return settings.home_address
    return None


def _stops_for_request(payload: TimelineRequest) -> list[Stop]:
    if payload.jobs is not None:
        return select_stops([job.to_domain() for job in payload.jobs], payload.date)
    return [stop.to_domain() for stop in payload.stops or []]


def _stop_model(stop: Stop) -> StopModel:
    return StopModel(
        id=stop.id,
        address=stop.address,
        sequence_index=stop.sequence_index,
        scheduled_time=stop.scheduled_time,
        estimated_duration_minutes=stop.estimated_duration_minutes,
        label=stop.label,
    )


def select_stops_for_request(payload: StopSelectionRequest) -> StopSelectionResponse:
    stops = select_stops([job.to_domain() for job in payload.jobs], payload.date)
    return StopSelectionResponse(date=payload.date, stops=[_stop_model(stop) for stop in stops])


def build_timeline_model(
    payload: TimelineRequest,
    timeline: RouteTimeline,
    stops: Sequence[Stop],
    home_address: Optional[str],
) -> RouteTimelineModel:
    return RouteTimelineModel(
        date=payload.date,
        home_address=home_address,
        stops=[_stop_model(stop) for stop in stops],
        entries=[
            TimelineEntryModel(
                stop_id=entry.stop_id,
                scheduled_at=entry.scheduled_at,
                estimated_arrival=entry.estimated_arrival,
                estimated_start=entry.estimated_start,
                estimated_departure=entry.estimated_departure,
                status=entry.status.value,
                delay_minutes=entry.delay_minutes,
                travel_seconds=entry.travel_seconds,
                travel_meters=entry.travel_meters,
                arrival_display=format_clock(entry.estimated_arrival),
                departure_display=format_clock(entry.estimated_departure),
                travel_display=format_duration(entry.travel_seconds) if entry.travel_seconds is not None else None,
            )
            for entry in timeline.entries
        ],
        leave_home_by=timeline.leave_home_by,
        leave_home_by_display=format_clock(timeline.leave_home_by) or None,
        home_arrival=timeline.home_arrival,
        home_arrival_display=format_clock(timeline.home_arrival) or None,
        total_drive_seconds=timeline.total_drive_seconds,
        total_distance_meters=timeline.total_distance_meters,
    )


async def _project(
    payload: TimelineRequest,
    routing_adapter: RoutingAdapter,
) -> tuple[RouteTimeline, list[Stop], Optional[str]]:
    stops = _stops_for_request(payload)
    home_address = _resolve_home(payload)
    result = await project(stops, home_address, routing_adapter, service_date=payload.date)
    if isinstance(result, FieldRouteError):
        raise result
    return result, stops, home_address


async def project_timeline(payload: TimelineRequest, routing_adapter: RoutingAdapter) -> RouteTimelineModel:
    timeline, stops, home_address = await _project(payload, routing_adapter)
    logger.info(f"Projected {len(timeline.entries)} stops for {payload.date.isoformat()}")
    return build_timeline_model(payload, timeline, stops, home_address)


async def export_timeline_csv(payload: TimelineRequest, routing_adapter: RoutingAdapter) -> str:
    timeline, stops, _ = await _project(payload, routing_adapter)
    return timeline_to_csv(timeline, stops, settings.distance_unit)


async def export_timeline_json(payload: TimelineRequest, routing_adapter: RoutingAdapter) -> dict:
    timeline, _, home_address = await _project(payload, routing_adapter)
    return {"home_address": home_address, **timeline_to_json(timeline)}


def _on_my_way_message(status: AdherenceStatus, stops: Sequence[Stop]) -> Optional[str]:
    if status.target_stop_id == HOME_TARGET_ID:
        return None
    stop = next((stop for stop in stops if stop.id == status.target_stop_id), None)
    if stop is None or not stop.label:
        return None
    return render_on_my_way(
        settings.on_my_way_template,
        customer_name=stop.label,
        business_name=settings.business_name,
        eta_minutes=max(1, round(status.travel_seconds / 60)),
    )


async def classify_adherence(payload: AdherenceRequest, routing_adapter: RoutingAdapter) -> AdherenceResponse:
    timeline, stops, home_address = await _project(payload, routing_adapter)
    now = payload.now or datetime.now(resolve_timezone())
    if now.tzinfo is None:
        now = now.replace(tzinfo=resolve_timezone())
    position = payload.position.to_domain(default_timestamp=now)

    result = await classify(
        position,
        timeline,
        stops,
        routing_adapter,
        home_address=home_address,
        now=now,
    )
    if isinstance(result, FieldRouteError):
        raise result

    timeline_model = build_timeline_model(payload, timeline, stops, home_address)
    if result is None:
        return AdherenceResponse(status=None, timeline=timeline_model)

    return AdherenceResponse(
        status=AdherenceStatusModel(
            state=result.state.value,
            delta_minutes=result.delta_minutes,
            target_stop_id=result.target_stop_id,
            estimated_arrival_at_target=result.estimated_arrival_at_target,
            estimated_arrival_display=format_clock(result.estimated_arrival_at_target),
            travel_seconds=result.travel_seconds,
        ),
        on_my_way_message=_on_my_way_message(result, stops),
        timeline=timeline_model,
    )
