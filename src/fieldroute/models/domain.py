"""Domain models for jobs, stops and the daily route timeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

HOME_TARGET_ID = "home"


class StopStatus(str, Enum):
    ON_TIME = "on_time"
    EARLY = "early"
    LATE = "late"


class AdherenceState(str, Enum):
    AHEAD = "ahead"
    ON_TIME = "on_time"
    BEHIND = "behind"


@dataclass(slots=True)
class JobRecord:
    """A job ticket as read from the surrounding application."""

    id: str
    date: date
    status: str
    time: Optional[str] = None
    duration_minutes: Optional[int] = None
    job_location: Optional[str] = None
    contact_address: Optional[str] = None
    contact_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Stop:
    """One scheduled service visit for the day."""

    id: str
    address: str
    sequence_index: int
    scheduled_time: Optional[str] = None
    estimated_duration_minutes: int = 60
    label: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Leg:
    from_index: int
    to_index: int
    duration_seconds: int
    distance_meters: int


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    stop_id: str
    estimated_arrival: datetime
    estimated_start: datetime
    estimated_departure: datetime
    status: StopStatus
    delay_minutes: int
    scheduled_at: Optional[datetime] = None
    travel_seconds: Optional[int] = None
    travel_meters: Optional[int] = None


@dataclass(frozen=True, slots=True)
class RouteTimeline:
    entries: tuple[TimelineEntry, ...] = ()
    legs: tuple[Leg, ...] = ()
    service_date: Optional[date] = None
    leave_home_by: Optional[datetime] = None
    home_arrival: Optional[datetime] = None
    total_drive_seconds: int = 0
    total_distance_meters: int = 0


@dataclass(frozen=True, slots=True)
class AdherenceStatus:
    state: AdherenceState
    delta_minutes: int
    target_stop_id: str
    estimated_arrival_at_target: datetime
    travel_seconds: int = 0


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class PositionFix:
    """A single geodetic fix from the device's positioning source."""

    lat: float
    lng: float
    timestamp: datetime
    accuracy_meters: Optional[float] = field(default=None, compare=False)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.lat, self.lng)
