"""Per-trigger rate limiting between a match and a fire."""

import threading
import time
from typing import Callable, Dict, Optional


def cooldown_key(workflow_id: str, trigger_id: str) -> str:
    """Block ids are only unique within one graph, so keys carry the workflow id."""
    return f"{workflow_id}:{trigger_id}"


class CooldownGovernor:
    """Owns the trigger key -> last-fire-time map.

    Two successful ``try_fire`` calls for the same trigger are always at
    least ``window_seconds`` apart.
    """

    def __init__(self, window_seconds: float = 60.0, clock: Callable[[], float] = time.time):
        if window_seconds < 0:
            raise ValueError("cooldown window must be >= 0")
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_fire: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_fire(self, trigger_id: str, now: Optional[float] = None) -> bool:
        """Record ``now`` and return True if the trigger is out of cooldown."""
        now = self._clock() if now is None else now
        with self._lock:
            last = self._last_fire.get(trigger_id)
            if last is not None and now - last < self.window_seconds:
                return False
            self._last_fire[trigger_id] = now
            return True

    def remaining(self, trigger_id: str, now: Optional[float] = None) -> float:
        """Seconds until ``trigger_id`` may fire again (0 when it may fire now)."""
        now = self._clock() if now is None else now
        with self._lock:
            last = self._last_fire.get(trigger_id)
        if last is None:
            return 0.0
        return max(0.0, self.window_seconds - (now - last))

    def reset(self) -> None:
        """Forget every last-fire time."""
        with self._lock:
            self._last_fire.clear()

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._last_fire)
