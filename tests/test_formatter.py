import csv
import io
from datetime import date, datetime, timezone

from fieldroute.config import DEFAULT_ON_MY_WAY_TEMPLATE
from fieldroute.models.domain import Leg, RouteTimeline, Stop, StopStatus, TimelineEntry
from fieldroute.services.outputs.formatter import (
    format_clock,
    format_distance,
    format_duration,
    render_on_my_way,
    render_template,
)
from fieldroute.services.outputs.timeline_formatter import timeline_to_csv, timeline_to_json

UTC = timezone.utc


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 19, hour, minute, tzinfo=UTC)


def test_format_clock_uses_twelve_hour_time():
    assert format_clock(_at(9, 5)) == "9:05 AM"
    assert format_clock(_at(0, 30)) == "12:30 AM"
    assert format_clock(_at(12, 0)) == "12:00 PM"
    assert format_clock(_at(17, 45)) == "5:45 PM"
    assert format_clock(None) == ""


def test_format_duration():
    assert format_duration(0) == "0 mins"
    assert format_duration(60) == "1 min"
    assert format_duration(20 * 60) == "20 mins"
    assert format_duration(3600) == "1 hour"
    assert format_duration(65 * 60) == "1 hour 5 mins"
    assert format_duration(2 * 3600 + 60) == "2 hours 1 min"
    assert format_duration(None) == ""


def test_format_distance():
    assert format_distance(1609, "mi") == "1.0 mi"
    assert format_distance(12500, "km") == "12.5 km"
    assert format_distance(None) == ""


def test_render_template_leaves_unknown_placeholders():
    assert render_template("Hi {{ name }}, see {{other}}", {"name": "Sam"}) == "Hi Sam, see {{other}}"


def test_render_on_my_way_fills_message():
    message = render_on_my_way(
        DEFAULT_ON_MY_WAY_TEMPLATE,
        customer_name="Dana",
        business_name="Acme Plumbing",
        eta_minutes=12,
    )

    assert "Dana" in message
    assert "Acme Plumbing" in message
    assert "12" in message
    assert "{{" not in message


def _timeline() -> tuple[RouteTimeline, list[Stop]]:
    stops = [
        Stop(id="A", address="A Main St", sequence_index=1, scheduled_time="09:00", label="Dana"),
        Stop(id="B", address="B Main St", sequence_index=2),
    ]
    entries = (
        TimelineEntry(
            stop_id="A",
            estimated_arrival=_at(9),
            estimated_start=_at(9),
            estimated_departure=_at(10),
            status=StopStatus.ON_TIME,
            delay_minutes=0,
            scheduled_at=_at(9),
            travel_seconds=1200,
            travel_meters=16093,
        ),
        TimelineEntry(
            stop_id="B",
            estimated_arrival=_at(10, 20),
            estimated_start=_at(10, 20),
            estimated_departure=_at(11, 20),
            status=StopStatus.ON_TIME,
            delay_minutes=0,
            travel_seconds=1200,
            travel_meters=8047,
        ),
    )
    timeline = RouteTimeline(
        entries=entries,
        legs=(Leg(0, 1, 1200, 16093), Leg(1, 2, 1200, 8047), Leg(2, 3, 1800, 20000)),
        service_date=date(2026, 10, 19),
        leave_home_by=_at(8, 40),
        home_arrival=_at(11, 50),
        total_drive_seconds=4200,
        total_distance_meters=44140,
    )
    return timeline, stops


def test_timeline_to_csv_writes_one_row_per_stop():
    timeline, stops = _timeline()

    rows = list(csv.DictReader(io.StringIO(timeline_to_csv(timeline, stops))))

    assert [row["stop_id"] for row in rows] == ["A", "B"]
    assert rows[0]["label"] == "Dana"
    assert rows[0]["scheduled"] == "9:00 AM"
    assert rows[0]["departure"] == "10:00 AM"
    assert rows[0]["drive"] == "20 mins"
    assert rows[0]["distance"] == "10.0 mi"
    assert rows[1]["scheduled"] == "Anytime"
    assert rows[1]["arrival"] == "10:20 AM"


def test_timeline_to_json_serializes_timestamps():
    timeline, _ = _timeline()

    payload = timeline_to_json(timeline)

    assert payload["service_date"] == "2026-10-19"
    assert payload["leave_home_by"] == "2026-10-19T08:40:00+00:00"
    assert payload["entries"][1]["scheduled_at"] is None
    assert payload["entries"][0]["status"] == "on_time"
    assert payload["total_drive_seconds"] == 4200
