"""Tests for ProgressBus and ExecutionHistory."""

import asyncio

import pytest

from surveilens.domain.models import COMPLETED, ExecutionRecord
from surveilens.domain.progress import ExecutionHistory, ProgressBus


def _snapshot(execution_id="e1", done=False):
    record = ExecutionRecord(execution_id=execution_id, triggered_by="t")
    if done:
        record.complete()
    return record.snapshot()


class TestProgressBus:
    def test_sync_observer_receives_snapshot(self):
        bus = ProgressBus()
        seen = []
        bus.subscribe(seen.append)
        bus.publish(_snapshot())
        assert [s.execution_id for s in seen] == ["e1"]

    def test_unsubscribe(self):
        bus = ProgressBus()
        seen = []
        unsubscribe = bus.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        bus.publish(_snapshot())
        assert seen == []
        assert bus.observer_count == 0

    def test_failing_observer_isolated(self):
        bus = ProgressBus()
        seen = []

        def broken(snapshot):
            raise RuntimeError("observer bug")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.publish(_snapshot())
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_async_observer_not_awaited_by_publish(self):
        bus = ProgressBus()
        gate = asyncio.Event()
        seen = []

        async def slow(snapshot):
            await gate.wait()
            seen.append(snapshot.execution_id)

        bus.subscribe(slow)
        bus.publish(_snapshot())
        assert seen == []
        gate.set()
        await bus.drain()
        assert seen == ["e1"]

    @pytest.mark.asyncio
    async def test_async_observer_failure_is_contained(self):
        bus = ProgressBus()

        async def broken(snapshot):
            raise RuntimeError("async observer bug")

        bus.subscribe(broken)
        bus.publish(_snapshot())
        await bus.drain()

    def test_async_observer_without_loop_is_dropped(self):
        bus = ProgressBus()

        async def observer(snapshot):
            pass

        bus.subscribe(observer)
        bus.publish(_snapshot())

    @pytest.mark.asyncio
    async def test_queue_drops_when_full(self):
        bus = ProgressBus()
        queue = bus.subscribe_queue(maxsize=2)
        for i in range(5):
            bus.publish(_snapshot(f"e{i}"))
        assert queue.qsize() == 2
        assert queue.get_nowait().execution_id == "e0"
        bus.unsubscribe_queue(queue)
        assert bus.observer_count == 0


class TestExecutionHistory:
    def test_live_then_finished(self):
        history = ExecutionHistory(max_finished=2)
        history(_snapshot("e1"))
        assert [s.execution_id for s in history.live()] == ["e1"]

        history(_snapshot("e1", done=True))
        assert history.live() == []
        assert history.get("e1").status == COMPLETED

    def test_finished_is_bounded_newest_first(self):
        history = ExecutionHistory(max_finished=2)
        for i in range(3):
            history(_snapshot(f"e{i}", done=True))
        assert [s.execution_id for s in history.finished()] == ["e2", "e1"]
        assert history.get("e0") is None
