"""Typed failures surfaced by the route timeline core."""

from __future__ import annotations

from typing import Sequence


class FieldRouteError(Exception):
    """Base class for errors the core resolves to instead of raising."""


class RoutingError(FieldRouteError):
    """The routing provider rejected or failed a request."""

    def __init__(self, status: str, message: str | None = None) -> None:
        self.status = status
        self.message = message or f"Routing request failed with status {status}"
        super().__init__(self.message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RoutingError):
            return NotImplemented
        return (self.status, self.message) == (other.status, other.message)

    def __hash__(self) -> int:
        return hash((self.status, self.message))


class PositionUnavailable(FieldRouteError):
    """Positioning permission was denied or the sensor failed."""

    def __init__(self, reason: str = "Position source unavailable") -> None:
        self.reason = reason
        super().__init__(reason)


class InputError(FieldRouteError):
    """A stop cannot be used as given, e.g. it has no resolvable address."""

    def __init__(self, message: str, stop_ids: Sequence[str] = ()) -> None:
        self.message = message
        self.stop_ids = tuple(stop_ids)
        super().__init__(message)
