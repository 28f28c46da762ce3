"""
scrimcord.services.dispatch — Fire-and-Forget Ledger Forwarding
================================================================

``submit()`` never blocks and never raises.  Each event becomes an asyncio
task held in an in-flight set until it settles; the task's done-callback
removes it and logs any failure.  Failed writes are dropped, not retried:
a burst of ledger errors degrades reward recording but never stalls the
gateway listeners.

``drain()`` waits for whatever is still in flight, so shutdown can give
outstanding writes a chance to land before the HTTP client closes.
"""

from __future__ import annotations

import asyncio
import logging

from scrimcord.engine.events import TrackableEvent
from scrimcord.services.ledger import LedgerSink

logger = logging.getLogger(__name__)


class DispatchQueue:
    """Forwards :class:`TrackableEvent` objects to a :class:`LedgerSink`.

    Parameters
    ----------
    ledger:
        Where events go.
    max_in_flight:
        Upper bound on concurrent ledger writes.  Extra tasks wait on a
        semaphore; ``submit`` itself still returns immediately.  ``0``
        disables the bound.
    """

    def __init__(self, ledger: LedgerSink, max_in_flight: int = 0) -> None:
        self.ledger = ledger
        self._in_flight: set[asyncio.Task] = set()
        self._gate = asyncio.Semaphore(max_in_flight) if max_in_flight > 0 else None
        self.submitted = 0
        self.succeeded = 0
        self.failed = 0

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def stats(self) -> dict[str, int]:
        return {
            "in_flight": self.in_flight,
            "submitted": self.submitted,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }

    def submit(self, event: TrackableEvent) -> asyncio.Task:
        """Schedule *event* for delivery and return its task (rarely needed)."""
        logger.info("Tracking event: %s for user %s", event.event_type, event.user_id)
        task = asyncio.get_running_loop().create_task(
            self._deliver(event), name=f"track-{event.event_type}"
        )
        self._in_flight.add(task)
        self.submitted += 1
        task.add_done_callback(lambda t: self._settle(t, event))
        return task

    async def _deliver(self, event: TrackableEvent) -> None:
        if self._gate is None:
            await self._write(event)
            return
        async with self._gate:
            await self._write(event)

    async def _write(self, event: TrackableEvent) -> None:
        if event.dedupe_key is not None:
            await self.ledger.track_once(
                event.user_id, event.event_type, event.dedupe_key, event.payload
            )
        else:
            await self.ledger.track(event.user_id, event.event_type, event.payload)

    def _settle(self, task: asyncio.Task, event: TrackableEvent) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            self.failed += 1
            logger.warning(
                "Tracking cancelled: %s for user %s", event.event_type, event.user_id
            )
            return
        exc = task.exception()
        if exc is not None:
            self.failed += 1
            logger.error(
                "Failed to track %s for user %s (key=%s): %s",
                event.event_type, event.user_id, event.dedupe_key, exc,
            )
            return
        self.succeeded += 1

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for in-flight writes to settle.

        Returns the number of writes still pending when *timeout* expired
        (``0`` when everything settled).
        """
        if not self._in_flight:
            return 0
        pending_count = len(self._in_flight)
        logger.info("Draining %d in-flight ledger writes…", pending_count)
        _, pending = await asyncio.wait(set(self._in_flight), timeout=timeout)
        if pending:
            logger.warning("%d ledger writes still pending after drain", len(pending))
        return len(pending)
