"""Select and order the day's service stops from job records."""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Iterable, Optional, Sequence

from ...config import settings
from ...models.domain import JobRecord, Stop
from ...models.errors import InputError
from ..timeline.clock import parse_clock

logger = logging.getLogger(__name__)


def _normalized_time(job: JobRecord) -> Optional[str]:
    """Return the job's ``HH:MM`` time, or None when it is blank or malformed."""
    if job.time is None:
        return None
    value = job.time.strip()
    if not value:
        return None
    try:
        parse_clock(value)
    except InputError:
        logger.warning(f"Job {job.id} has unreadable time '{value}', treating it as unscheduled")
        return None
    return value


def _sort_key(scheduled_time: Optional[str]) -> tuple[bool, time]:
    # Untimed stops share the trailing group; sorted() keeps their input order.
    if scheduled_time is None:
        return (True, time.max)
    return (False, parse_clock(scheduled_time))


def _resolve_address(job: JobRecord) -> str:
    return (job.job_location or "").strip() or (job.contact_address or "").strip()


def select_stops(
    jobs: Iterable[JobRecord],
    service_date: date,
    *,
    excluded_statuses: Sequence[str] | None = None,
    default_duration_minutes: int | None = None,
) -> list[Stop]:
    """Return the ordered stop list for ``service_date``.

    Jobs in a terminal declined/cancelled state are dropped. Each surviving job
    uses its site address, falling back to the customer's address, and its
    declared duration, falling back to the configured default. Timed stops come
    first in ascending order; untimed stops follow in their input order. A time
    that is not ``HH:MM`` makes the stop unscheduled rather than failing the day.
    """
    excluded = {
        status.strip().lower()
        for status in (excluded_statuses if excluded_statuses is not None else settings.excluded_job_statuses)
    }
    fallback_duration = default_duration_minutes or settings.default_stop_duration_minutes

    candidates = [
        job for job in jobs if job.date == service_date and (job.status or "").strip().lower() not in excluded
    ]
    timed = [(job, _normalized_time(job)) for job in candidates]
    ordered = sorted(timed, key=lambda item: _sort_key(item[1]))

    stops: list[Stop] = []
    for index, (job, scheduled_time) in enumerate(ordered, start=1):
        duration = job.duration_minutes if job.duration_minutes and job.duration_minutes > 0 else fallback_duration
        stops.append(
            Stop(
                id=job.id,
                address=_resolve_address(job),
                sequence_index=index,
                scheduled_time=scheduled_time,
                estimated_duration_minutes=duration,
                label=job.contact_name,
            )
        )
    return stops
