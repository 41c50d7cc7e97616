"""Oracle call usage tracking and rate limiting."""

import time
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

DEFAULT_ORACLE_LIMITS = {
    "max_calls_per_minute": 12,
    "min_call_interval_seconds": 0.0,
    "paused": False,
}


def _get_default_limits() -> Dict[str, Any]:
    try:
        from surveilens.config import CONFIG
        return CONFIG["oracle_limits"]
    except Exception:
        return dict(DEFAULT_ORACLE_LIMITS)


class UsageLimitExceeded(Exception):
    """Raised when a usage limit is exceeded"""
    pass


class UsageTracker:
    """Sliding-window limiter for semantic oracle calls (process-local)."""

    def __init__(
        self,
        limits: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.limits = limits if limits is not None else _get_default_limits()
        self._clock = clock
        self._calls: Deque[float] = deque()
        self.total_calls = 0

    def _calls_since(self, seconds: float) -> int:
        cutoff = self._clock() - seconds
        return sum(1 for ts in self._calls if ts > cutoff)

    def _cleanup_old_calls(self):
        cutoff = self._clock() - 60
        while self._calls and self._calls[0] <= cutoff:
            self._calls.popleft()

    def check_limits(self):
        """Raise UsageLimitExceeded if the next call would break a limit."""
        if self.limits.get("paused", False):
            raise UsageLimitExceeded("Oracle usage is paused by configuration")

        min_interval = float(self.limits.get("min_call_interval_seconds", 0) or 0)
        if self._calls and min_interval > 0:
            elapsed = self._clock() - self._calls[-1]
            if elapsed < min_interval:
                raise UsageLimitExceeded(
                    f"Cooldown: {min_interval - elapsed:.1f}s remaining "
                    f"(min interval: {min_interval}s)"
                )

        per_minute = self._calls_since(60)
        if per_minute >= self.limits["max_calls_per_minute"]:
            raise UsageLimitExceeded(
                f"Per-minute limit reached: {per_minute}/{self.limits['max_calls_per_minute']}"
            )

    def record_call(self):
        self._cleanup_old_calls()
        self._calls.append(self._clock())
        self.total_calls += 1

    def get_status(self) -> Dict[str, Any]:
        return {
            "calls_this_minute": self._calls_since(60),
            "limits": {"per_minute": self.limits["max_calls_per_minute"]},
            "paused": self.limits.get("paused", False),
            "total_calls": self.total_calls,
        }
