import csv
import io

import pytest
from fastapi.testclient import TestClient

from fieldroute.config import settings
from fieldroute.main import create_app
from fieldroute.models.domain import Coordinates
from fieldroute.services.routing.models import RouteLeg, RouteResult

DAY = "2026-10-19"
HOME = "1 Home Way"

WORKED_STOPS = [
    {"id": "A", "address": "A Main St", "sequence_index": 1, "scheduled_time": "09:00",
     "estimated_duration_minutes": 60, "label": "Dana"},
    {"id": "B", "address": "B Main St", "sequence_index": 2, "scheduled_time": "10:30",
     "estimated_duration_minutes": 45, "label": "Lee"},
]


class DummyRouting:
    def __init__(self, leg_minutes=(20, 15, 25), live_minutes=40, status="OK"):
        self.leg_minutes = list(leg_minutes)
        self.live_minutes = live_minutes
        self.status = status
        self.calls = []

    async def route(self, origin, destination, waypoints=(), mode=None):
        self.calls.append((origin, destination, list(waypoints)))
        if self.status != "OK":
            return RouteResult(status=self.status)
        if isinstance(origin, Coordinates):
            return RouteResult(status="OK", legs=[RouteLeg(self.live_minutes * 60, 5000)])
        legs = [RouteLeg(int(m * 60), 1000) for m in self.leg_minutes[: len(waypoints) + 1]]
        return RouteResult(status="OK", legs=legs)


@pytest.fixture
def routing(monkeypatch: pytest.MonkeyPatch) -> DummyRouting:
    adapter = DummyRouting()
    monkeypatch.setattr("fieldroute.api.routes.timeline.build_routing_adapter", lambda: adapter)
    monkeypatch.setattr(settings, "timezone", "UTC")
    return adapter


@pytest.fixture
def api_client() -> TestClient:
    return TestClient(create_app())


def _timeline_payload(**overrides) -> dict:
    payload = {"date": DAY, "stops": WORKED_STOPS, "home_address": HOME}
    payload.update(overrides)
    return payload


def test_health_endpoints(api_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("fieldroute.services.routing.check_routing_health", lambda: True)

    assert api_client.get("/api/health").json() == {"status": "ok"}
    routing_health = api_client.get("/api/health/routing").json()
    assert routing_health["healthy"] is True
    assert routing_health["service"] == settings.routing_provider
    assert api_client.get("/").json()["status"] == "running"


def test_select_stops_from_jobs(api_client: TestClient) -> None:
    jobs = [
        {"id": "late", "date": DAY, "status": "Scheduled", "time": "13:00", "job_location": "C Main St"},
        {"id": "early", "date": DAY, "status": "Scheduled", "time": "08:30",
         "contact_address": "D Main St", "contact_name": "Robin"},
        {"id": "declined", "date": DAY, "status": "declined", "time": "10:00", "job_location": "E Main St"},
        {"id": "tomorrow", "date": "2026-10-20", "status": "Scheduled", "time": "09:00", "job_location": "F Main St"},
        {"id": "anytime", "date": DAY, "status": "Scheduled", "job_location": "G Main St"},
    ]

    response = api_client.post("/api/timeline/stops", json={"date": DAY, "jobs": jobs})

    assert response.status_code == 200
    stops = response.json()["stops"]
    assert [stop["id"] for stop in stops] == ["early", "late", "anytime"]
    assert [stop["sequence_index"] for stop in stops] == [1, 2, 3]
    assert stops[0]["address"] == "D Main St"
    assert stops[0]["label"] == "Robin"


def test_project_timeline(api_client: TestClient, routing: DummyRouting) -> None:
    response = api_client.post("/api/timeline/project", json=_timeline_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["leave_home_by_display"] == "8:40 AM"
    assert body["home_arrival_display"] == "11:40 AM"
    assert [entry["status"] for entry in body["entries"]] == ["on_time", "on_time"]
    assert body["entries"][1]["arrival_display"] == "10:15 AM"
    assert body["entries"][1]["departure_display"] == "11:15 AM"
    assert body["total_drive_seconds"] == 3600
    assert routing.calls == [(HOME, HOME, ["A Main St", "B Main St"])]


def test_project_timeline_from_jobs(api_client: TestClient, routing: DummyRouting) -> None:
    jobs = [
        {"id": "J1", "date": DAY, "status": "Scheduled", "time": "09:00", "duration_minutes": 60,
         "job_location": "A Main St"},
        {"id": "J2", "date": DAY, "status": "Cancelled", "time": "09:30", "job_location": "X Main St"},
    ]
    routing.leg_minutes = [20, 25]

    response = api_client.post("/api/timeline/project", json={"date": DAY, "jobs": jobs, "home_address": HOME})

    assert response.status_code == 200
    assert [entry["stop_id"] for entry in response.json()["entries"]] == ["J1"]


def test_export_timeline_csv(api_client: TestClient, routing: DummyRouting) -> None:
    response = api_client.post("/api/timeline/export", json=_timeline_payload())

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert f"route_{DAY}.csv" in response.headers["content-disposition"]
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [row["stop_id"] for row in rows] == ["A", "B"]
    assert rows[1]["work_start"] == "10:30 AM"


def test_export_timeline_json(api_client: TestClient, routing: DummyRouting) -> None:
    response = api_client.post("/api/timeline/export?format=json", json=_timeline_payload())

    assert response.status_code == 200
    assert f"route_{DAY}.json" in response.headers["content-disposition"]
    body = response.json()
    assert body["home_address"] == HOME
    assert body["service_date"] == DAY
    assert body["leave_home_by"] == f"{DAY}T08:40:00+00:00"
    assert [entry["stop_id"] for entry in body["entries"]] == ["A", "B"]


def test_classify_adherence_with_on_my_way_message(api_client: TestClient, routing: DummyRouting) -> None:
    payload = _timeline_payload(
        position={"lat": 40.1, "lng": -75.1},
        now=f"{DAY}T08:30:00+00:00",
    )

    response = api_client.post("/api/adherence/classify", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["status"]["state"] == "behind"
    assert body["status"]["delta_minutes"] == 10
    assert body["status"]["target_stop_id"] == "A"
    assert body["status"]["estimated_arrival_display"] == "9:10 AM"
    assert "Dana" in body["on_my_way_message"]
    assert "40" in body["on_my_way_message"]
    assert routing.calls[-1] == (Coordinates(40.1, -75.1), "A Main St", [])


def test_invalid_stop_is_rejected(api_client: TestClient, routing: DummyRouting) -> None:
    stops = [dict(WORKED_STOPS[0]), dict(WORKED_STOPS[1], address="  ")]

    response = api_client.post("/api/timeline/project", json=_timeline_payload(stops=stops))

    assert response.status_code == 422
    assert response.json()["detail"]["stop_ids"] == ["B"]
    assert routing.calls == []


def test_missing_stops_and_jobs_is_rejected(api_client: TestClient) -> None:
    response = api_client.post("/api/timeline/project", json={"date": DAY})

    assert response.status_code == 422


def test_provider_failure_maps_to_bad_gateway(api_client: TestClient, routing: DummyRouting) -> None:
    routing.status = "ZERO_RESULTS"

    response = api_client.post("/api/timeline/project", json=_timeline_payload())

    assert response.status_code == 502
    assert response.json()["detail"]["provider_status"] == "ZERO_RESULTS"


def test_unconfigured_provider_is_unavailable(api_client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def _unconfigured():
        raise ValueError("OSRM base URL is not configured.")

    monkeypatch.setattr("fieldroute.api.routes.timeline.build_routing_adapter", _unconfigured)

    response = api_client.post("/api/timeline/project", json=_timeline_payload())

    assert response.status_code == 503
