"""Human-readable formatting for clock times, drive durations and distances."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Mapping, Optional

METERS_PER_MILE = 1609.344

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def format_clock(value: Optional[datetime]) -> str:
    """Format a timestamp as a 12-hour clock time, e.g. ``9:05 AM``."""
    if value is None:
        return ""
    suffix = "PM" if value.hour >= 12 else "AM"
    hours = value.hour % 12 or 12
    return f"{hours}:{value.minute:02d} {suffix}"


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return ""
    total_minutes = max(0, round(seconds / 60))
    hours, minutes = divmod(total_minutes, 60)
    parts = []
    if hours:
        parts.append(f"{hours} hour" + ("s" if hours != 1 else ""))
    if minutes or not hours:
        parts.append(f"{minutes} min" + ("s" if minutes != 1 else ""))
    return " ".join(parts)


def format_distance(meters: Optional[int], unit: str = "mi") -> str:
    if meters is None:
        return ""
    if unit == "km":
        return f"{meters / 1000:.1f} km"
    return f"{meters / METERS_PER_MILE:.1f} mi"


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` placeholders; unknown names are left as written."""

    def _substitute(match: re.Match) -> str:
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)


def render_on_my_way(
    template: str,
    *,
    customer_name: str,
    business_name: str,
    eta_minutes: int,
) -> str:
    return render_template(
        template,
        {
            "customerName": customer_name,
            "businessName": business_name,
            "etaMinutes": str(max(0, eta_minutes)),
        },
    )
