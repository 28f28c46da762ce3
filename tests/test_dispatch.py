"""
tests/test_dispatch.py — Dispatch Queue
========================================

Covers:
- track_once vs. track selection by dedupe key presence
- submit is non-blocking; failures are logged, counted and dropped
- drain() waits for in-flight work and reports leftovers on timeout
- max_in_flight bounds concurrent ledger writes
"""

from __future__ import annotations

import asyncio
import logging

from scrimcord.engine.events import TrackableEvent
from scrimcord.errors import LedgerError
from scrimcord.services.dispatch import DispatchQueue
from tests.fakes import RecordingLedger, run_async


def _event(user="1", event_type="discordMessageSent", key: str | None = "m-1") -> TrackableEvent:
    return TrackableEvent(user_id=user, event_type=event_type, dedupe_key=key, payload={"n": 1})


class GatedLedger(RecordingLedger):
    """Blocks every write until ``release`` is set; tracks peak concurrency."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()
        self.active = 0
        self.peak = 0

    async def _hold(self) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await self.release.wait()
        finally:
            self.active -= 1

    async def track_once(self, user_id, data_type, event_id, body):
        await self._hold()
        return await super().track_once(user_id, data_type, event_id, body)

    async def track(self, user_id, data_type, body):
        await self._hold()
        return await super().track(user_id, data_type, body)


class TestWriteSelection:

    def test_dedupe_key_uses_track_once(self, ledger: RecordingLedger):
        async def scenario():
            queue = DispatchQueue(ledger)
            queue.submit(_event(key="m-1"))
            await queue.drain()

        run_async(scenario())
        assert ledger.track_once_calls == [("1", "discordMessageSent", "m-1", {"n": 1})]
        assert ledger.track_calls == []

    def test_missing_dedupe_key_uses_track(self, ledger: RecordingLedger):
        async def scenario():
            queue = DispatchQueue(ledger)
            queue.submit(_event(key=None))
            await queue.drain()

        run_async(scenario())
        assert ledger.track_calls == [("1", "discordMessageSent", {"n": 1})]
        assert ledger.track_once_calls == []

    def test_duplicates_always_go_through_track_once(self, ledger: RecordingLedger):
        """Suppression belongs to the ledger; the queue never falls back to track."""
        async def scenario():
            queue = DispatchQueue(ledger)
            queue.submit(_event(key="m-1"))
            queue.submit(_event(key="m-1"))
            await queue.drain()

        run_async(scenario())
        assert len(ledger.track_once_calls) == 2
        assert ledger.track_calls == []
        assert ledger.recorded == [("1", "discordMessageSent", "m-1")]


class TestFailureIsolation:

    def test_submit_returns_before_the_write(self):
        async def scenario():
            ledger = GatedLedger()
            queue = DispatchQueue(ledger)
            queue.submit(_event())
            assert queue.in_flight == 1
            assert ledger.track_once_calls == []
            ledger.release.set()
            await queue.drain()
            return ledger, queue

        ledger, queue = run_async(scenario())
        assert len(ledger.track_once_calls) == 1
        assert queue.in_flight == 0

    def test_failure_is_logged_and_dropped(self, caplog):
        ledger = RecordingLedger(fail_types={"discordBroken"})

        async def scenario():
            queue = DispatchQueue(ledger)
            queue.submit(_event(event_type="discordBroken"))
            queue.submit(_event(event_type="discordMessageSent", key="m-2"))
            await queue.drain()
            return queue

        with caplog.at_level(logging.ERROR, logger="scrimcord.services.dispatch"):
            queue = run_async(scenario())

        assert "Failed to track discordBroken" in caplog.text
        assert queue.stats() == {"in_flight": 0, "submitted": 2, "succeeded": 1, "failed": 1}
        assert ledger.recorded == [("1", "discordMessageSent", "m-2")]

    def test_failure_is_not_retried(self):
        ledger = RecordingLedger(fail_types={"discordBroken"})

        async def scenario():
            queue = DispatchQueue(ledger)
            queue.submit(_event(event_type="discordBroken"))
            await queue.drain()
            await asyncio.sleep(0)

        run_async(scenario())
        assert len(ledger.track_once_calls) == 1

    def test_unexpected_exception_is_contained(self):
        class ExplodingLedger(RecordingLedger):
            async def track(self, user_id, data_type, body):
                raise RuntimeError("socket closed")

        async def scenario():
            queue = DispatchQueue(ExplodingLedger())
            queue.submit(_event(key=None))
            await queue.drain()
            return queue

        queue = run_async(scenario())
        assert queue.failed == 1


class TestDrain:

    def test_drain_with_nothing_in_flight(self, ledger: RecordingLedger):
        async def scenario():
            return await DispatchQueue(ledger).drain()

        assert run_async(scenario()) == 0

    def test_drain_timeout_reports_pending(self):
        async def scenario():
            ledger = GatedLedger()
            queue = DispatchQueue(ledger)
            queue.submit(_event())
            queue.submit(_event(key="m-2"))
            pending = await queue.drain(timeout=0.01)
            ledger.release.set()
            await queue.drain()
            return pending, queue

        pending, queue = run_async(scenario())
        assert pending == 2
        assert queue.in_flight == 0
        assert queue.succeeded == 2

    def test_max_in_flight_bounds_concurrency(self):
        async def scenario():
            ledger = GatedLedger()
            queue = DispatchQueue(ledger, max_in_flight=2)
            for i in range(5):
                queue.submit(_event(key=f"m-{i}"))
            await asyncio.sleep(0.01)
            assert ledger.active == 2
            ledger.release.set()
            await queue.drain()
            return ledger

        ledger = run_async(scenario())
        assert ledger.peak == 2
        assert len(ledger.recorded) == 5


def test_ledger_error_carries_status():
    exc = LedgerError("nope", status_code=503)
    assert exc.status_code == 503
