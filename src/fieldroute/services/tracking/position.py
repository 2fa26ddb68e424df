"""Live position stream with latest-fix-wins subscriptions."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterable, AsyncIterator, Optional

from ...models.domain import PositionFix
from ...models.errors import PositionUnavailable

logger = logging.getLogger(__name__)


class PositionSubscription:
    """Async iterator over the most recent fix.

    Fixes that arrive while the consumer is busy overwrite each other; only the
    latest is delivered. Iteration raises ``PositionUnavailable`` once the source
    reports a terminal failure and stops when the subscription is released.
    """

    def __init__(self) -> None:
        self._latest: Optional[PositionFix] = None
        self._failure: Optional[PositionUnavailable] = None
        self._pending = False
        self._closed = False
        self._wakeup = asyncio.Event()

    @property
    def latest(self) -> Optional[PositionFix]:
        return self._latest

    def _offer(self, fix: PositionFix) -> None:
        self._latest = fix
        self._pending = True
        self._wakeup.set()

    def _fail(self, failure: PositionUnavailable) -> None:
        self._failure = failure
        self._wakeup.set()

    def _close(self) -> None:
        self._closed = True
        self._wakeup.set()

    def __aiter__(self) -> PositionSubscription:
        return self

    async def __anext__(self) -> PositionFix:
        while True:
            if self._pending:
                self._pending = False
                return self._latest
            if self._failure is not None:
                raise self._failure
            if self._closed:
                raise StopAsyncIteration
            self._wakeup.clear()
            await self._wakeup.wait()


class PositionTracker:
    """Fan a single positioning source out to scoped subscribers.

    The source is pumped while at least one subscriber is attached. Once the
    pump ends, by exhaustion, failure or release of the last subscriber, the
    tracker is closed for good; a permission change needs a new tracker.
    """

    def __init__(self, source: Optional[AsyncIterable[PositionFix]] = None) -> None:
        self._source = source
        self._subscribers: list[PositionSubscription] = []
        self._pump: Optional[asyncio.Task] = None
        self._closed = False
        self._failure: Optional[PositionUnavailable] = None
        self.latest: Optional[PositionFix] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, fix: PositionFix) -> None:
        if self._closed:
            return
        if self.latest is not None and fix.timestamp < self.latest.timestamp:
            logger.debug("Ignoring out-of-order position fix")
            return
        self.latest = fix
        for subscriber in self._subscribers:
            subscriber._offer(fix)

    def fail(self, reason: str | PositionUnavailable) -> None:
        if self._closed:
            return
        failure = reason if isinstance(reason, PositionUnavailable) else PositionUnavailable(reason)
        logger.warning(f"Position source unavailable: {failure.reason}")
        self._failure = failure
        for subscriber in self._subscribers:
            subscriber._fail(failure)
        self._shutdown()

    def _shutdown(self) -> None:
        self._closed = True
        for subscriber in self._subscribers:
            subscriber._close()

    async def _run_source(self) -> None:
        try:
            async for fix in self._source:
                self.publish(fix)
        except asyncio.CancelledError:
            raise
        except PositionUnavailable as e:
            self.fail(e)
        except Exception as e:
            self.fail(PositionUnavailable(f"Position source error: {e}"))
        else:
            self._shutdown()

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[PositionSubscription]:
        if self._closed:
            raise RuntimeError("Position tracker has been closed and cannot be restarted.")

        subscription = PositionSubscription()
        if self.latest is not None:
            subscription._offer(self.latest)
        self._subscribers.append(subscription)
        if self._source is not None and self._pump is None:
            self._pump = asyncio.create_task(self._run_source())
        try:
            yield subscription
        finally:
            self._subscribers.remove(subscription)
            subscription._close()
            if not self._subscribers:
                await self._release()

    async def _release(self) -> None:
        pump, self._pump = self._pump, None
        if pump is not None and not pump.done():
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass
        if not self._closed:
            self._shutdown()
        close = getattr(self._source, "aclose", None)
        if close is not None:
            await close()
