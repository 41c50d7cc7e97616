"""Tests for CooldownGovernor."""

import random
import threading

import pytest

from surveilens.domain.cooldown import CooldownGovernor


class TestTryFire:
    def test_first_fire_allowed(self):
        gov = CooldownGovernor(60)
        assert gov.try_fire("t1", now=0.0) is True

    def test_fire_within_window_suppressed(self):
        gov = CooldownGovernor(60)
        assert gov.try_fire("t1", now=0.0) is True
        assert gov.try_fire("t1", now=30.0) is False
        assert gov.try_fire("t1", now=61.0) is True

    def test_exact_window_boundary_allows(self):
        gov = CooldownGovernor(60)
        gov.try_fire("t1", now=100.0)
        assert gov.try_fire("t1", now=160.0) is True

    def test_suppressed_fire_does_not_extend_window(self):
        gov = CooldownGovernor(60)
        gov.try_fire("t1", now=0.0)
        gov.try_fire("t1", now=59.0)
        assert gov.snapshot() == {"t1": 0.0}
        assert gov.try_fire("t1", now=60.0) is True

    def test_triggers_are_independent(self):
        gov = CooldownGovernor(60)
        assert gov.try_fire("t1", now=0.0) is True
        assert gov.try_fire("t2", now=1.0) is True
        assert gov.try_fire("t1", now=2.0) is False

    def test_uses_clock_when_now_omitted(self):
        clock = iter([10.0, 20.0, 80.0])
        gov = CooldownGovernor(60, clock=lambda: next(clock))
        assert gov.try_fire("t1") is True
        assert gov.try_fire("t1") is False
        assert gov.try_fire("t1") is True

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            CooldownGovernor(-1)

    @pytest.mark.parametrize("seed", range(25))
    def test_interval_between_fires_never_below_window(self, seed):
        rng = random.Random(seed)
        gov = CooldownGovernor(60)
        now, fired = 0.0, []
        for _ in range(200):
            now += rng.uniform(0, 40)
            if gov.try_fire("t1", now=now):
                fired.append(now)
        assert all(b - a >= 60 for a, b in zip(fired, fired[1:]))


class TestRemainingAndReset:
    def test_remaining(self):
        gov = CooldownGovernor(60)
        assert gov.remaining("t1", now=0.0) == 0.0
        gov.try_fire("t1", now=0.0)
        assert gov.remaining("t1", now=15.0) == pytest.approx(45.0)
        assert gov.remaining("t1", now=90.0) == 0.0

    def test_reset_clears_everything(self):
        gov = CooldownGovernor(60)
        gov.try_fire("t1", now=0.0)
        gov.try_fire("t2", now=0.0)
        gov.reset()
        assert gov.snapshot() == {}
        assert gov.try_fire("t1", now=1.0) is True

    def test_concurrent_threads_fire_once(self):
        gov = CooldownGovernor(60)
        results = []

        def worker():
            results.append(gov.try_fire("t1", now=5.0))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1
