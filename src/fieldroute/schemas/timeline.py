"""Timeline and adherence request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..models.domain import JobRecord, PositionFix, Stop


class JobRecordModel(BaseModel):
    id: str
    date: date
    status: str
    time: Optional[str] = Field(default=None, description="24h scheduled time, e.g. '14:30'.")
    duration_minutes: Optional[int] = None
    job_location: Optional[str] = Field(default=None, description="Service address; defaults to the contact address.")
    contact_address: Optional[str] = None
    contact_name: Optional[str] = None

    def to_domain(self) -> JobRecord:
        return JobRecord(**self.model_dump())


class StopModel(BaseModel):
    id: str
    address: str
    sequence_index: int
    scheduled_time: Optional[str] = None
    estimated_duration_minutes: int = Field(default=60, ge=1)
    label: Optional[str] = None

    def to_domain(self) -> Stop:
        return Stop(**self.model_dump())


class StopSelectionRequest(BaseModel):
    date: date
    jobs: List[JobRecordModel]


class StopSelectionResponse(BaseModel):
    date: date
    stops: List[StopModel]


class TimelineRequest(BaseModel):
    date: date
    stops: Optional[List[StopModel]] = Field(
        default=None,
        description="Ordered stops. Ignored when jobs are supplied.",
    )
    jobs: Optional[List[JobRecordModel]] = Field(
        default=None,
        description="Raw job records; the day's stops are selected from them.",
    )
    home_address: Optional[str] = Field(
        default=None,
        description="Home base for this request. Falls back to the configured home address.",
    )
    use_default_home: bool = True

    @model_validator(mode="after")
    def _require_stops_or_jobs(self) -> "TimelineRequest":
        if self.stops is None and self.jobs is None:
            raise ValueError("Either 'stops' or 'jobs' must be provided.")
        return self


class TimelineEntryModel(BaseModel):
    stop_id: str
    scheduled_at: Optional[datetime] = None
    estimated_arrival: datetime
    estimated_start: datetime
    estimated_departure: datetime
    status: str
    delay_minutes: int
    travel_seconds: Optional[int] = None
    travel_meters: Optional[int] = None
    arrival_display: str
    departure_display: str
    travel_display: Optional[str] = None


class RouteTimelineModel(BaseModel):
    date: date
    home_address: Optional[str] = None
    stops: List[StopModel]
    entries: List[TimelineEntryModel]
    leave_home_by: Optional[datetime] = None
    leave_home_by_display: Optional[str] = None
    home_arrival: Optional[datetime] = None
    home_arrival_display: Optional[str] = None
    total_drive_seconds: int
    total_distance_meters: int


class PositionModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    timestamp: Optional[datetime] = None
    accuracy_meters: Optional[float] = Field(default=None, ge=0.0)

    def to_domain(self, default_timestamp: datetime) -> PositionFix:
        return PositionFix(
            lat=self.lat,
            lng=self.lng,
            timestamp=self.timestamp or default_timestamp,
            accuracy_meters=self.accuracy_meters,
        )


class AdherenceRequest(TimelineRequest):
    position: PositionModel
    now: Optional[datetime] = Field(default=None, description="Override for the wall clock, mainly for replay.")


class AdherenceStatusModel(BaseModel):
    state: str
    delta_minutes: int
    target_stop_id: str
    estimated_arrival_at_target: datetime
    estimated_arrival_display: str
    travel_seconds: int


class AdherenceResponse(BaseModel):
    status: Optional[AdherenceStatusModel] = None
    on_my_way_message: Optional[str] = None
    timeline: RouteTimelineModel
