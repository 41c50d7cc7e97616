"""Tests for UsageTracker"""

import pytest

from surveilens.infrastructure.usage import UsageLimitExceeded, UsageTracker


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _tracker(clock, **limits):
    base = {"max_calls_per_minute": 3, "min_call_interval_seconds": 0.0, "paused": False}
    base.update(limits)
    return UsageTracker(limits=base, clock=clock)


class TestLimits:
    def test_under_limit(self, clock):
        tracker = _tracker(clock)
        tracker.check_limits()
        tracker.record_call()
        tracker.check_limits()

    def test_per_minute_limit(self, clock):
        tracker = _tracker(clock)
        for _ in range(3):
            tracker.record_call()
        with pytest.raises(UsageLimitExceeded, match="Per-minute"):
            tracker.check_limits()

    def test_window_slides(self, clock):
        tracker = _tracker(clock)
        for _ in range(3):
            tracker.record_call()
        clock.now += 61
        tracker.check_limits()

    def test_min_interval(self, clock):
        tracker = _tracker(clock, min_call_interval_seconds=5.0)
        tracker.record_call()
        clock.now += 2
        with pytest.raises(UsageLimitExceeded, match="Cooldown"):
            tracker.check_limits()
        clock.now += 4
        tracker.check_limits()

    def test_paused(self, clock):
        tracker = _tracker(clock, paused=True)
        with pytest.raises(UsageLimitExceeded, match="paused"):
            tracker.check_limits()


class TestStatus:
    def test_status(self, clock):
        tracker = _tracker(clock)
        tracker.record_call()
        tracker.record_call()
        status = tracker.get_status()
        assert status["calls_this_minute"] == 2
        assert status["total_calls"] == 2
        assert status["limits"]["per_minute"] == 3
        assert status["paused"] is False

    def test_defaults_from_config(self, monkeypatch):
        monkeypatch.setattr(
            "surveilens.config.CONFIG",
            {"oracle_limits": {"max_calls_per_minute": 7, "min_call_interval_seconds": 0, "paused": False}},
        )
        assert UsageTracker().limits["max_calls_per_minute"] == 7
