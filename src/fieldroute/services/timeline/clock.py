"""Wall-clock helpers for HH:MM job times."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from ...config import settings
from ...models.errors import InputError


def resolve_timezone(name: str | None = None) -> tzinfo:
    return ZoneInfo(name or settings.timezone)


def parse_clock(value: str) -> time:
    """Parse a 24h ``HH:MM`` string."""
    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        raise InputError(f"Invalid time '{value}', expected HH:MM.")
    hour, minute = int(hours), int(minutes)
    if hour > 23 or minute > 59:
        raise InputError(f"Invalid time '{value}', expected HH:MM.")
    return time(hour, minute)


def at_clock(service_date: date, value: str, tz: tzinfo | None = None) -> datetime:
    return datetime.combine(service_date, parse_clock(value), tzinfo=tz or resolve_timezone())


def round_minutes(delta: timedelta) -> int:
    """Round a time difference to whole minutes, halves away from zero."""
    minutes = delta.total_seconds() / 60.0
    return int(math.copysign(math.floor(abs(minutes) + 0.5), minutes))


def classify_offset(delta_minutes: int, tolerance_minutes: int) -> int:
    """Return -1 when earlier than the window, 1 when later, 0 inside it."""
    if delta_minutes > tolerance_minutes:
        return 1
    if delta_minutes < -tolerance_minutes:
        return -1
    return 0
