"""Domain layer — pure Python, no framework dependencies."""

from surveilens.domain.cooldown import CooldownGovernor
from surveilens.domain.coordinator import ExecutionCoordinator
from surveilens.domain.dispatcher import ActionDispatcher
from surveilens.domain.errors import (
    AuthError,
    ConfigError,
    CoordinationError,
    ExternalCallError,
    GraphError,
    WorkflowError,
)
from surveilens.domain.leveler import plan
from surveilens.domain.matcher import TriggerMatcher
from surveilens.domain.models import (
    Block,
    BlockGraph,
    BlockOutcome,
    DetectionEvent,
    ExecutionPlan,
    ExecutionRecord,
    ExecutionSnapshot,
    Link,
    SceneSummary,
    Workflow,
)
from surveilens.domain.progress import ExecutionHistory, ProgressBus
from surveilens.domain.templating import render_template

__all__ = [
    "ActionDispatcher",
    "AuthError",
    "Block",
    "BlockGraph",
    "BlockOutcome",
    "ConfigError",
    "CooldownGovernor",
    "CoordinationError",
    "DetectionEvent",
    "ExecutionCoordinator",
    "ExecutionHistory",
    "ExecutionPlan",
    "ExecutionRecord",
    "ExecutionSnapshot",
    "ExternalCallError",
    "GraphError",
    "Link",
    "ProgressBus",
    "SceneSummary",
    "TriggerMatcher",
    "Workflow",
    "WorkflowError",
    "plan",
    "render_template",
]
