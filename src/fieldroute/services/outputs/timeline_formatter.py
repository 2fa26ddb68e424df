"""Serializers for route timeline outputs."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional, Sequence

from ...models.domain import RouteTimeline, Stop
from .formatter import format_clock, format_distance, format_duration


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def timeline_to_json(timeline: RouteTimeline) -> dict:
    return {
        "service_date": timeline.service_date.isoformat() if timeline.service_date else None,
        "leave_home_by": _iso(timeline.leave_home_by),
        "home_arrival": _iso(timeline.home_arrival),
        "total_drive_seconds": timeline.total_drive_seconds,
        "total_distance_meters": timeline.total_distance_meters,
        "entries": [
            {
                "stop_id": entry.stop_id,
                "scheduled_at": _iso(entry.scheduled_at),
                "estimated_arrival": _iso(entry.estimated_arrival),
                "estimated_start": _iso(entry.estimated_start),
                "estimated_departure": _iso(entry.estimated_departure),
                "status": entry.status.value,
                "delay_minutes": entry.delay_minutes,
                "travel_seconds": entry.travel_seconds,
                "travel_meters": entry.travel_meters,
            }
            for entry in timeline.entries
        ],
    }


def timeline_to_csv(timeline: RouteTimeline, stops: Sequence[Stop], unit: str = "mi") -> str:
    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "stop_id",
        "label",
        "address",
        "scheduled",
        "arrival",
        "work_start",
        "departure",
        "status",
        "delay_minutes",
        "drive",
        "distance",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    by_id = {stop.id: stop for stop in stops}
    for entry in timeline.entries:
        stop = by_id.get(entry.stop_id)
        writer.writerow(
            {
                "sequence": stop.sequence_index if stop else "",
                "stop_id": entry.stop_id,
                "label": (stop.label or "") if stop else "",
                "address": stop.address if stop else "",
                "scheduled": format_clock(entry.scheduled_at) or "Anytime",
                "arrival": format_clock(entry.estimated_arrival),
                "work_start": format_clock(entry.estimated_start),
                "departure": format_clock(entry.estimated_departure),
                "status": entry.status.value,
                "delay_minutes": entry.delay_minutes,
                "drive": format_duration(entry.travel_seconds),
                "distance": format_distance(entry.travel_meters, unit),
            }
        )
    return buffer.getvalue()
