"""Live schedule-adherence classification against the projected plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ...config import settings
from ...models.domain import (
    HOME_TARGET_ID,
    AdherenceState,
    AdherenceStatus,
    PositionFix,
    RouteTimeline,
    Stop,
)
from ...models.errors import RoutingError
from ..routing.models import RoutingAdapter, TravelMode
from ..timeline.clock import classify_offset, resolve_timezone, round_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Target:
    stop_id: str
    address: str
    scheduled_at: Optional[datetime]


def select_target(
    timeline: RouteTimeline,
    stops: Sequence[Stop],
    now: datetime,
    home_address: Optional[str] = None,
) -> Optional[Target]:
    """Pick the first stop still ahead of ``now``, else home, else nothing.

    Unscheduled stops are judged by their projected arrival.
    """
    by_id = {stop.id: stop for stop in stops}
    for entry in timeline.entries:
        stop = by_id.get(entry.stop_id)
        if stop is None:
            continue
        reference = entry.scheduled_at or entry.estimated_arrival
        if reference > now:
            return Target(stop.id, stop.address, entry.scheduled_at)

    if home_address and home_address.strip():
        return Target(HOME_TARGET_ID, home_address.strip(), None)
    return None


async def classify(
    position: PositionFix,
    timeline: RouteTimeline,
    stops: Sequence[Stop],
    routing_adapter: RoutingAdapter,
    *,
    home_address: Optional[str] = None,
    now: Callable[[], datetime] | datetime | None = None,
    tolerance_minutes: int | None = None,
) -> AdherenceStatus | RoutingError | None:
    """Estimate arrival at the next relevant stop from ``position``.

    Returns None when nothing is left to classify and a ``RoutingError`` when
    the provider fails; nothing is raised past this call.
    """
    tolerance = settings.adherence_tolerance_minutes if tolerance_minutes is None else tolerance_minutes
    if callable(now):
        current = now()
    elif now is not None:
        current = now
    else:
        current = datetime.now(resolve_timezone())

    target = select_target(timeline, stops, current, home_address)
    if target is None:
        return None

    try:
        result = await routing_adapter.route(
            origin=position.coordinates,
            destination=target.address,
            mode=TravelMode.DRIVING,
        )
    except RoutingError as e:
        logger.warning(f"Adherence route to {target.stop_id} failed: {e.status}")
        return e
    except Exception as e:
        logger.exception(f"Unexpected routing failure classifying adherence for {target.stop_id}")
        return RoutingError("UNKNOWN_ERROR", str(e))

    if not result.ok:
        logger.warning(f"Adherence route to {target.stop_id} rejected: {result.status}")
        return RoutingError(result.status)
    if not result.legs:
        return RoutingError("MISSING_LEGS", "Routing provider returned no legs for the target stop.")

    travel_seconds = sum(max(0, leg.duration_seconds) for leg in result.legs)
    eta = current + timedelta(seconds=travel_seconds)

    if target.scheduled_at is None:
        state, delta_minutes = AdherenceState.ON_TIME, 0
    else:
        delta = round_minutes(eta - target.scheduled_at)
        state = {
            1: AdherenceState.BEHIND,
            -1: AdherenceState.AHEAD,
            0: AdherenceState.ON_TIME,
        }[classify_offset(delta, tolerance)]
        delta_minutes = abs(delta)

    return AdherenceStatus(
        state=state,
        delta_minutes=delta_minutes,
        target_stop_id=target.stop_id,
        estimated_arrival_at_target=eta,
        travel_seconds=travel_seconds,
    )
