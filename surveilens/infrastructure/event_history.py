"""Recent detection events as seen by the engine."""

import time
from collections import deque
from typing import Deque, Iterable, List, Optional

from surveilens.domain.models import DetectionEvent, SceneSummary


class EventHistory:
    """Time-ordered, capped store of recent detection events and the latest scene."""

    def __init__(self, limit: int = 100):
        self._events: Deque[DetectionEvent] = deque(maxlen=max(1, limit))
        self._scene: Optional[SceneSummary] = None

    def add_batch(self, events: Iterable[DetectionEvent], scene: Optional[SceneSummary] = None) -> None:
        for event in sorted(events, key=lambda e: e.timestamp):
            self._events.append(event)
        if scene is not None:
            self._scene = scene

    def recent(self, seconds: float, now: Optional[float] = None) -> List[DetectionEvent]:
        """Events newer than ``now - seconds``, oldest first."""
        cutoff = (time.time() if now is None else now) - seconds
        return [e for e in self._events if e.timestamp > cutoff]

    @property
    def latest_scene(self) -> Optional[SceneSummary]:
        return self._scene

    def event_types(self) -> List[str]:
        return sorted({e.type for e in self._events})

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
        self._scene = None
