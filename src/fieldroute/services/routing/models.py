"""Routing provider contract and result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Protocol, Sequence, Union

from ...models.domain import Coordinates

STATUS_OK = "OK"

Location = Union[str, Coordinates]


class TravelMode(str, Enum):
    DRIVING = "driving"


@dataclass(frozen=True, slots=True)
class RouteLeg:
    duration_seconds: int
    distance_meters: int


@dataclass(slots=True)
class RouteResult:
    status: str
    legs: List[RouteLeg] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class RoutingAdapter(Protocol):
    """Anything that can route an ordered list of stop-over locations.

    Implementations must keep the waypoint order as given and must not
    optimize it. Transport failures are raised as ``RoutingError``; a
    provider-level rejection may instead come back as a non-OK status.
    """

    async def route(
        self,
        origin: Location,
        destination: Location,
        waypoints: Sequence[Location] = (),
        mode: TravelMode = TravelMode.DRIVING,
    ) -> RouteResult: ...


def describe_location(location: Location) -> str:
    if isinstance(location, Coordinates):
        return f"{location.lat:.6f},{location.lng:.6f}"
    return location
