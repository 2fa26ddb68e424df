"""Cascading arrival/departure projection for one day's stops."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import Leg, RouteTimeline, Stop, StopStatus, TimelineEntry
from ...models.errors import InputError, RoutingError
from ..routing.models import RouteResult, RoutingAdapter, TravelMode
from .clock import at_clock, classify_offset, resolve_timezone, round_minutes

logger = logging.getLogger(__name__)


def _validate_stops(stops: Sequence[Stop], service_date: date, tz: tzinfo) -> list[Optional[datetime]]:
    missing = [stop.id for stop in stops if not stop.address.strip()]
    if missing:
        raise InputError(f"Stops have no resolvable address: {', '.join(missing)}", missing)

    invalid_duration = [stop.id for stop in stops if stop.estimated_duration_minutes <= 0]
    if invalid_duration:
        raise InputError(f"Stops need a positive duration: {', '.join(invalid_duration)}", invalid_duration)

    previous = None
    for stop in stops:
        if previous is not None and stop.sequence_index <= previous:
            raise InputError("Stop sequence indexes must be strictly increasing.", [stop.id])
        previous = stop.sequence_index

    scheduled: list[Optional[datetime]] = []
    for stop in stops:
        if stop.scheduled_time is None:
            scheduled.append(None)
            continue
        try:
            scheduled.append(at_clock(service_date, stop.scheduled_time, tz))
        except InputError as e:
            raise InputError(e.message, [stop.id]) from e
    return scheduled


async def _request_legs(
    path: Sequence[str],
    routing_adapter: RoutingAdapter,
) -> list[Leg]:
    if len(path) < 2:
        return []

    result: RouteResult = await routing_adapter.route(
        origin=path[0],
        destination=path[-1],
        waypoints=list(path[1:-1]),
        mode=TravelMode.DRIVING,
    )
    if not result.ok:
        raise RoutingError(result.status)

    expected = len(path) - 1
    if len(result.legs) != expected:
        raise RoutingError(
            "MISSING_LEGS",
            f"Routing provider returned {len(result.legs)} legs for {expected} route segments.",
        )
    return [
        Leg(
            from_index=index,
            to_index=index + 1,
            duration_seconds=max(0, int(leg.duration_seconds)),
            distance_meters=max(0, int(leg.distance_meters)),
        )
        for index, leg in enumerate(result.legs)
    ]


async def project(
    stops: Sequence[Stop],
    home_address: Optional[str],
    routing_adapter: RoutingAdapter,
    *,
    service_date: date,
    tz: tzinfo | None = None,
    day_start: str | None = None,
    tolerance_minutes: int | None = None,
) -> RouteTimeline | RoutingError | InputError:
    """Project arrival, work start and departure for every stop.

    Delay only propagates forward: a stop never starts before its scheduled
    time, so an early arrival is absorbed by waiting while a late departure
    pushes every later stop back. Errors are returned, not raised.
    """
    tz = tz or resolve_timezone()
    tolerance = settings.plan_tolerance_minutes if tolerance_minutes is None else tolerance_minutes

    if not stops:
        return RouteTimeline(service_date=service_date)

    try:
        scheduled = _validate_stops(stops, service_date, tz)
        origin_clock = at_clock(service_date, day_start or settings.day_start, tz)
    except InputError as e:
        logger.warning(f"Cannot project timeline: {e.message}")
        return e

    home = home_address.strip() if home_address and home_address.strip() else None
    addresses = [stop.address for stop in stops]
    path = [home, *addresses, home] if home else addresses

    try:
        legs = await _request_legs(path, routing_adapter)
    except RoutingError as e:
        logger.warning(f"Route request for {len(stops)} stops failed: {e.status}")
        return e
    except Exception as e:
        logger.exception(f"Unexpected routing failure for {len(stops)} stops")
        return RoutingError("UNKNOWN_ERROR", str(e))

    # With a home base, legs[i] arrives at stop i and the final leg returns home.
    # Without one, the first stop is the implicit origin and legs[i - 1] arrives at stop i.
    offset = 0 if home else -1
    inbound = [legs[i + offset] if i + offset >= 0 else None for i in range(len(stops))]

    leave_home_by = None
    if scheduled[0] is not None:
        clock = scheduled[0]
        if home:
            leave_home_by = scheduled[0] - timedelta(seconds=inbound[0].duration_seconds)
    elif home:
        clock = origin_clock + timedelta(seconds=inbound[0].duration_seconds)
    else:
        clock = origin_clock

    entries: list[TimelineEntry] = []
    departure: Optional[datetime] = None
    for index, stop in enumerate(stops):
        leg = inbound[index]
        if index == 0:
            arrival = clock
        else:
            arrival = departure + timedelta(seconds=leg.duration_seconds)

        target = scheduled[index]
        if target is not None:
            delay = round_minutes(arrival - target)
            offset_sign = classify_offset(delay, tolerance)
            if offset_sign > 0:
                status, delay_minutes = StopStatus.LATE, delay
            elif offset_sign < 0:
                status, delay_minutes = StopStatus.EARLY, abs(delay)
            else:
                status, delay_minutes = StopStatus.ON_TIME, 0
            start = max(arrival, target)
        else:
            status, delay_minutes = StopStatus.ON_TIME, 0
            start = arrival

        departure = start + timedelta(minutes=stop.estimated_duration_minutes)
        entries.append(
            TimelineEntry(
                stop_id=stop.id,
                estimated_arrival=arrival,
                estimated_start=start,
                estimated_departure=departure,
                status=status,
                delay_minutes=delay_minutes,
                scheduled_at=target,
                travel_seconds=leg.duration_seconds if leg else None,
                travel_meters=leg.distance_meters if leg else None,
            )
        )

    home_arrival = None
    if home:
        home_arrival = departure + timedelta(seconds=legs[-1].duration_seconds)

    return RouteTimeline(
        entries=tuple(entries),
        legs=tuple(legs),
        service_date=service_date,
        leave_home_by=leave_home_by,
        home_arrival=home_arrival,
        total_drive_seconds=sum(leg.duration_seconds for leg in legs),
        total_distance_meters=sum(leg.distance_meters for leg in legs),
    )
