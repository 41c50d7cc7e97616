"""Inbound port: pipeline-agnostic detection batch."""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from surveilens.domain.models import DetectionEvent, SceneSummary


@dataclass
class DetectionBatch:
    """Events emitted by one perception cycle, plus the optional scene digest."""

    events: List[DetectionEvent] = field(default_factory=list)
    scene: Optional[SceneSummary] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectionBatch":
        return cls(
            events=[DetectionEvent.from_dict(e) for e in data.get("events") or ()],
            scene=SceneSummary.from_dict(data.get("scene")),
        )
