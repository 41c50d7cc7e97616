"""Tests for Runtime wiring and its event queue."""

import asyncio

import pytest

from surveilens.config import AppConfig, EngineConfig
from surveilens.domain.models import DetectionEvent
from surveilens.ports.inbound import DetectionBatch
from surveilens.runtime import Runtime


def _batch(event_type="PERSON_ENTERED"):
    return DetectionBatch(events=[DetectionEvent(type=event_type)])


@pytest.fixture
def runtime(tmp_path):
    settings = AppConfig(
        storage_dir=str(tmp_path),
        engine=EngineConfig(level_pause_seconds=0, event_queue_size=1),
    )
    return Runtime(settings=settings, senders={})


class TestEventQueue:
    def test_enqueue_without_consumer(self, runtime):
        assert runtime.is_consuming is False
        assert runtime.enqueue(_batch()) is False

    @pytest.mark.asyncio
    async def test_queue_is_bounded(self, runtime):
        await runtime.start()
        try:
            assert runtime.event_queue.maxsize == 1
            assert runtime.enqueue(_batch()) is True
            with pytest.raises(asyncio.QueueFull):
                runtime.enqueue(_batch())
        finally:
            await runtime.stop()

    @pytest.mark.asyncio
    async def test_consumer_drains_queue(self, runtime):
        await runtime.start()
        try:
            assert runtime.enqueue(_batch()) is True
            for _ in range(50):
                if len(runtime.history):
                    break
                await asyncio.sleep(0.01)
            assert len(runtime.history) == 1
            assert runtime.enqueue(_batch()) is True
        finally:
            await runtime.stop()
        assert runtime.is_consuming is False
