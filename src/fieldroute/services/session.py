"""Route-view session: event-driven recompute with stale result discarding."""

from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Callable, Optional, Sequence

from ..models.domain import AdherenceStatus, PositionFix, RouteTimeline, Stop
from ..models.errors import FieldRouteError, PositionUnavailable
from .adherence.classifier import classify
from .routing.models import RoutingAdapter
from .timeline.clock import resolve_timezone
from .timeline.projector import project
from .tracking.position import PositionTracker

logger = logging.getLogger(__name__)


class RecomputeReason(str, Enum):
    STOPS_CHANGED = "stops_changed"
    HOME_CHANGED = "home_changed"
    DATE_CHANGED = "date_changed"
    POSITION_FIX = "position_fix"
    MANUAL_REFRESH = "manual_refresh"


class ComputationState(str, Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    READY = "ready"
    STALE = "stale"
    ERROR = "error"


class RequestGate:
    """Mint monotonically increasing tokens; only the latest one may apply."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self.latest = 0

    def issue(self) -> int:
        self.latest = next(self._counter)
        return self.latest

    def is_current(self, token: int) -> bool:
        return token == self.latest


Listener = Callable[["RouteSession"], None]


class RouteSession:
    """Owns the timeline and adherence status for one route view.

    Every trigger goes through :meth:`recompute`. Each computation carries a
    token from a :class:`RequestGate`; when it resolves after a newer one was
    issued its result is dropped, so the exposed values always belong to the
    most recently issued request. Failures keep the last good value visible, and
    ``timeline_stops`` always holds the stops the visible timeline was built from.
    """

    def __init__(
        self,
        routing_adapter: RoutingAdapter,
        *,
        stops: Sequence[Stop] = (),
        home_address: Optional[str] = None,
        service_date: Optional[date] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        plan_tolerance_minutes: Optional[int] = None,
        adherence_tolerance_minutes: Optional[int] = None,
    ) -> None:
        self.routing_adapter = routing_adapter
        self.tz = tz or resolve_timezone()
        self._clock = clock or (lambda: datetime.now(self.tz))
        self.stops: tuple[Stop, ...] = tuple(stops)
        self.home_address = home_address
        self.service_date = service_date or self._clock().date()
        self.plan_tolerance_minutes = plan_tolerance_minutes
        self.adherence_tolerance_minutes = adherence_tolerance_minutes

        self.timeline: Optional[RouteTimeline] = None
        self.timeline_stops: tuple[Stop, ...] = ()
        self.timeline_state = ComputationState.IDLE
        self.timeline_error: Optional[FieldRouteError] = None
        self.adherence: Optional[AdherenceStatus] = None
        self.adherence_state = ComputationState.IDLE
        self.adherence_error: Optional[FieldRouteError] = None
        self.position: Optional[PositionFix] = None
        self.position_error: Optional[PositionUnavailable] = None
        self.stale_discards = 0

        self._timeline_gate = RequestGate()
        self._adherence_gate = RequestGate()
        self._adherence_settled = ComputationState.IDLE
        self._adherence_inflight = 0
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()
        self._tracking: Optional[asyncio.Task] = None

    # -- triggers ---------------------------------------------------------

    async def update_stops(self, stops: Sequence[Stop]) -> ComputationState:
        self.stops = tuple(stops)
        return await self.recompute(RecomputeReason.STOPS_CHANGED)

    async def set_home_address(self, home_address: Optional[str]) -> ComputationState:
        self.home_address = home_address
        return await self.recompute(RecomputeReason.HOME_CHANGED)

    async def set_service_date(self, service_date: date, stops: Sequence[Stop]) -> ComputationState:
        self.service_date = service_date
        self.stops = tuple(stops)
        return await self.recompute(RecomputeReason.DATE_CHANGED)

    def push_position(self, fix: PositionFix) -> asyncio.Task:
        """Record a fix and reclassify in the background; returns the task."""
        self.position = fix
        task = asyncio.create_task(self.recompute(RecomputeReason.POSITION_FIX))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def recompute(self, reason: RecomputeReason) -> ComputationState:
        """Single entry point for every change of stops, home, date or position."""
        logger.debug(f"Recompute requested: {reason.value}")
        if reason is RecomputeReason.POSITION_FIX:
            return await self._reclassify()

        state = await self._reproject()
        if state is ComputationState.READY and self.position is not None:
            await self._reclassify()
        return state

    # -- computations -----------------------------------------------------

    async def _reproject(self) -> ComputationState:
        token = self._timeline_gate.issue()
        stops = self.stops
        # A plan change invalidates any classification still running against the old plan.
        self._adherence_gate.issue()
        self.timeline_state = ComputationState.COMPUTING

        result = await project(
            stops,
            self.home_address,
            self.routing_adapter,
            service_date=self.service_date,
            tz=self.tz,
            tolerance_minutes=self.plan_tolerance_minutes,
        )

        if not self._timeline_gate.is_current(token):
            self.stale_discards += 1
            logger.info(f"Discarding stale timeline result (token {token}, latest {self._timeline_gate.latest})")
            return ComputationState.STALE

        if isinstance(result, FieldRouteError):
            self.timeline_error = result
            self.timeline_state = ComputationState.ERROR
        else:
            self.timeline = result
            self.timeline_stops = stops
            self.timeline_error = None
            self.timeline_state = ComputationState.READY
        self._notify()
        return self.timeline_state

    async def _reclassify(self) -> ComputationState:
        position, timeline, stops = self.position, self.timeline, self.timeline_stops
        if position is None or timeline is None:
            return self.adherence_state

        token = self._adherence_gate.issue()
        self.adherence_state = ComputationState.COMPUTING
        self._adherence_inflight += 1
        try:
            result = await classify(
                position,
                timeline,
                stops,
                self.routing_adapter,
                home_address=self.home_address,
                now=self._clock,
                tolerance_minutes=self.adherence_tolerance_minutes,
            )
        finally:
            self._adherence_inflight -= 1

        if not self._adherence_gate.is_current(token):
            self.stale_discards += 1
            logger.info(f"Discarding stale adherence result (token {token}, latest {self._adherence_gate.latest})")
            if self._adherence_inflight == 0:
                self.adherence_state = self._adherence_settled
            return ComputationState.STALE

        if isinstance(result, FieldRouteError):
            self.adherence_error = result
            self.adherence_state = ComputationState.ERROR
        else:
            self.adherence = result
            self.adherence_error = None
            self.adherence_state = ComputationState.READY
        self._adherence_settled = self.adherence_state
        self._notify()
        return self.adherence_state

    # -- position tracking ------------------------------------------------

    async def track(self, tracker: PositionTracker) -> None:
        """Feed fixes from ``tracker`` until it ends or becomes unavailable."""
        if tracker.closed:
            logger.warning("Position tracker is already closed, adherence updates paused")
            self.position_error = PositionUnavailable("tracker closed")
            self._notify()
            return
        try:
            async with tracker.subscribe() as subscription:
                async for fix in subscription:
                    self.push_position(fix)
        except PositionUnavailable as e:
            # Adherence stops updating; the static timeline stays valid.
            logger.warning(f"Live position unavailable, adherence updates paused: {e.reason}")
            self.position_error = e
            self._notify()

    def start_tracking(self, tracker: PositionTracker) -> asyncio.Task:
        if self._tracking is not None and not self._tracking.done():
            self._tracking.cancel()
        self.position_error = None
        self._tracking = asyncio.create_task(self.track(tracker))
        return self._tracking

    # -- listeners and lifecycle ------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Route session listener failed")

    async def aclose(self) -> None:
        pending = [task for task in (self._tracking, *self._tasks) if task is not None and not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tracking = None
        self._listeners.clear()

    async def __aenter__(self) -> RouteSession:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
