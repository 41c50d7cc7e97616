"""Domain data models."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from surveilens.domain.block_config import BlockConfig, decode_config
from surveilens.domain.errors import ConfigError, GraphError

# Block kinds
TRIGGER = "trigger"
CONDITION = "condition"
ACTION = "action"
BLOCK_KINDS = (TRIGGER, CONDITION, ACTION)

# Execution record states: running is initial, completed/failed are terminal
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"
TERMINAL_STATUSES = (COMPLETED, FAILED)

# Block outcome states
SUCCEEDED = "succeeded"
FAILED_SOFT = "failed_soft"
SKIPPED = "skipped"


def _epoch_seconds(value: Any) -> float:
    """Accept epoch seconds or the editor's epoch milliseconds."""
    if value is None or value == "":
        return time.time()
    ts = float(value)
    if ts > 1e11:
        ts /= 1000.0
    return ts


@dataclass(frozen=True)
class DetectedObject:
    class_name: str
    confidence: float
    bbox: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)  # x, y, width, height
    timestamp: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectedObject":
        bbox = tuple(float(v) for v in (data.get("bbox") or (0, 0, 0, 0)))[:4]
        return cls(
            class_name=str(data.get("class") or data.get("class_name") or ""),
            confidence=float(data.get("confidence", data.get("score", 0.0)) or 0.0),
            bbox=bbox + (0.0,) * (4 - len(bbox)),
            timestamp=_epoch_seconds(data.get("timestamp")),
        )


@dataclass(frozen=True)
class DetectionEvent:
    """One discrete observation from the perception pipeline. Immutable."""

    type: str  # e.g. "ROBBERY_DETECTED"
    confidence: float = 0.0  # 0.0-1.0
    description: str = ""
    timestamp: float = field(default_factory=time.time)
    objects: Tuple[DetectedObject, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DetectionEvent":
        return cls(
            type=str(data.get("type", "")),
            confidence=float(data.get("confidence", 0.0) or 0.0),
            description=str(data.get("description", "") or ""),
            timestamp=_epoch_seconds(data.get("timestamp")),
            objects=tuple(DetectedObject.from_dict(o) for o in data.get("objects") or ()),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "confidence": self.confidence,
            "description": self.description,
            "timestamp": self.timestamp,
            "objects": [
                {
                    "class": o.class_name,
                    "confidence": o.confidence,
                    "bbox": list(o.bbox),
                    "timestamp": o.timestamp,
                }
                for o in self.objects
            ],
            "metadata": {k: v for k, v in self.metadata.items() if k != "frame"},
        }


@dataclass(frozen=True)
class SceneSummary:
    """Digest of the scene analyzer output accompanying a batch of events."""

    description: str = ""
    people_count: int = 0
    activities: Tuple[str, ...] = ()
    objects: Tuple[str, ...] = ()
    suspicious_activities: Tuple[Mapping[str, Any], ...] = ()
    detected_events: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["SceneSummary"]:
        if not data:
            return None
        return cls(
            description=str(data.get("description", "") or ""),
            people_count=int(data.get("peopleCount", data.get("people_count", 0)) or 0),
            activities=tuple(str(a) for a in data.get("activities") or ()),
            objects=tuple(str(o) for o in data.get("objects") or ()),
            suspicious_activities=tuple(
                dict(s) for s in (data.get("suspiciousActivities") or data.get("suspicious_activities") or ())
            ),
            detected_events=tuple(
                str(e) for e in (data.get("detectedEvents") or data.get("detected_events") or ())
            ),
        )


@dataclass
class Block:
    """Node in the automation graph."""

    id: str
    kind: str  # "trigger" | "condition" | "action"
    subtype: str  # selects matching/dispatch behaviour, e.g. "fight_detected", "gmail"
    config: BlockConfig
    label: str = ""
    position: Tuple[float, float] = (0.0, 0.0)
    raw_config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Block":
        """Decode either the flat shape or the editor's node shape."""
        if not isinstance(data, Mapping):
            raise GraphError(f"block must be an object, got {type(data).__name__}")
        node_data = data.get("data") if isinstance(data.get("data"), Mapping) else {}
        block_id = str(data.get("id", "")).strip()
        if not block_id:
            raise GraphError("block without an id")
        kind = str(data.get("kind") or node_data.get("nodeType") or data.get("type") or "").lower()
        if kind not in BLOCK_KINDS:
            raise GraphError(f"block {block_id!r} has unknown kind {kind!r}")
        subtype = str(data.get("subtype") or node_data.get("blockType") or "")
        raw = data.get("config") or node_data.get("config") or {}
        pos = data.get("position") or {}
        if not isinstance(raw, Mapping) or not isinstance(pos, Mapping):
            raise GraphError(f"block {block_id!r} has a malformed config or position")
        try:
            config = decode_config(subtype, raw)
            position = (float(pos.get("x", 0.0)), float(pos.get("y", 0.0)))
        except (ConfigError, TypeError, ValueError) as e:
            raise GraphError(f"block {block_id!r}: {e}")
        return cls(
            id=block_id,
            kind=kind,
            subtype=subtype,
            config=config,
            label=str(data.get("label") or node_data.get("label") or subtype),
            position=position,
            raw_config=dict(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "subtype": self.subtype,
            "label": self.label,
            "config": dict(self.raw_config),
            "position": {"x": self.position[0], "y": self.position[1]},
        }


@dataclass(frozen=True)
class Link:
    source: str
    target: str
    id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Link":
        if not isinstance(data, Mapping):
            raise GraphError(f"link must be an object, got {type(data).__name__}")
        source, target = str(data.get("source", "")), str(data.get("target", ""))
        return cls(source=source, target=target, id=str(data.get("id") or f"{source}->{target}"))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "source": self.source, "target": self.target}


class BlockGraph:
    """Immutable snapshot of blocks and directed links. May contain cycles.

    Dangling links are kept as given; the leveler skips them.
    """

    def __init__(self, blocks: List[Block], links: List[Link]):
        self._blocks: Dict[str, Block] = {}
        for block in blocks:
            if block.id in self._blocks:
                raise GraphError(f"duplicate block id {block.id!r}")
            self._blocks[block.id] = block
        self._links: Tuple[Link, ...] = tuple(links)
        self._outgoing: Dict[str, List[Link]] = {}
        for link in self._links:
            self._outgoing.setdefault(link.source, []).append(link)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BlockGraph":
        nodes = data.get("nodes") or data.get("blocks") or []
        edges = data.get("edges") or data.get("links") or []
        if not isinstance(nodes, list) or not isinstance(edges, list):
            raise GraphError("nodes and edges must be lists")
        return cls(
            blocks=[Block.from_dict(n) for n in nodes],
            links=[Link.from_dict(e) for e in edges],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [b.to_dict() for b in self._blocks.values()],
            "edges": [link.to_dict() for link in self._links],
        }

    @property
    def blocks(self) -> List[Block]:
        return list(self._blocks.values())

    @property
    def links(self) -> Tuple[Link, ...]:
        return self._links

    def get(self, block_id: str) -> Optional[Block]:
        return self._blocks.get(block_id)

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._blocks

    def outgoing(self, block_id: str) -> List[Link]:
        return list(self._outgoing.get(block_id, ()))

    def triggers(self) -> List[Block]:
        return [b for b in self._blocks.values() if b.kind == TRIGGER]

    def dangling_links(self) -> List[Link]:
        return [
            link for link in self._links
            if link.source not in self._blocks or link.target not in self._blocks
        ]


@dataclass
class Workflow:
    id: str
    name: str
    graph: BlockGraph
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workflow":
        if not isinstance(data, Mapping):
            raise GraphError(f"workflow must be an object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "") or data.get("id", "")),
            graph=BlockGraph.from_dict(data),
            enabled=bool(data.get("enabled", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "enabled": self.enabled, **self.graph.to_dict()}


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered levels of block ids. Level 0 first, no id in two levels."""

    levels: Tuple[FrozenSet[str], ...] = ()

    def __iter__(self) -> Iterator[FrozenSet[str]]:
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    def block_ids(self) -> List[str]:
        return [block_id for level in self.levels for block_id in sorted(level)]

    def level_of(self, block_id: str) -> Optional[int]:
        for index, level in enumerate(self.levels):
            if block_id in level:
                return index
        return None


@dataclass(frozen=True)
class BlockOutcome:
    block_id: str
    status: str  # "succeeded" | "failed_soft" | "failed" | "skipped"
    error_kind: Optional[str] = None
    detail: str = ""


@dataclass(frozen=True)
class ExecutionSnapshot:
    """Read-only copy of an ExecutionRecord handed to progress observers."""

    execution_id: str
    triggered_by: str
    created_at: float
    status: str
    active: FrozenSet[str]
    outcomes: Mapping[str, BlockOutcome]
    workflow_id: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "workflow_id": self.workflow_id,
            "triggered_by": self.triggered_by,
            "created_at": self.created_at,
            "status": self.status,
            "active": sorted(self.active),
            "outcomes": {
                block_id: {"status": o.status, "error_kind": o.error_kind, "detail": o.detail}
                for block_id, o in self.outcomes.items()
            },
            "error": self.error,
        }


@dataclass
class ExecutionRecord:
    """Runtime state of one fire. Mutated only by the ExecutionCoordinator."""

    execution_id: str
    triggered_by: str
    created_at: float = field(default_factory=time.time)
    workflow_id: str = ""
    status: str = RUNNING
    active: FrozenSet[str] = frozenset()
    outcomes: Dict[str, BlockOutcome] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _require_running(self, action: str):
        if self.is_terminal:
            raise ValueError(f"cannot {action}: execution {self.execution_id} is {self.status}")

    def set_active(self, block_ids) -> None:
        self._require_running("change active blocks")
        self.active = frozenset(block_ids)

    def record_outcome(self, outcome: BlockOutcome) -> None:
        self._require_running("record outcome")
        self.outcomes[outcome.block_id] = outcome

    def complete(self) -> None:
        self._require_running("complete")
        self.active = frozenset()
        self.status = COMPLETED

    def fail(self, reason: str) -> None:
        self._require_running("fail")
        self.active = frozenset()
        self.status = FAILED
        self.error = reason

    def snapshot(self) -> ExecutionSnapshot:
        return ExecutionSnapshot(
            execution_id=self.execution_id,
            workflow_id=self.workflow_id,
            triggered_by=self.triggered_by,
            created_at=self.created_at,
            status=self.status,
            active=self.active,
            outcomes=dict(self.outcomes),
            error=self.error,
        )
