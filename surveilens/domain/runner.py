"""Workflow runner: event window to trigger matching to execution."""

import asyncio
import sys
from typing import Iterable, List, Optional, Sequence, Tuple

from surveilens.domain.cooldown import CooldownGovernor, cooldown_key
from surveilens.domain.coordinator import ExecutionCoordinator
from surveilens.domain.matcher import ALIAS_RULES, TriggerMatcher
from surveilens.domain.models import (
    Block,
    DetectionEvent,
    ExecutionRecord,
    SceneSummary,
    Workflow,
)
from surveilens.infrastructure.event_history import EventHistory
from surveilens.ports.inbound import DetectionBatch


def _log(msg: str):
    print(msg, file=sys.stderr)


class WorkflowRunner:
    """Match -> cooldown -> execute, for every trigger of every enabled workflow."""

    def __init__(
        self,
        matcher: TriggerMatcher,
        governor: CooldownGovernor,
        coordinator: ExecutionCoordinator,
        history: Optional[EventHistory] = None,
        lookback_seconds: float = 30.0,
    ):
        self.matcher = matcher
        self.governor = governor
        self.coordinator = coordinator
        self.history = history or EventHistory()
        self.lookback_seconds = lookback_seconds

    async def handle_batch(
        self,
        batch: DetectionBatch,
        workflows: Iterable[Workflow] = (),
        now: Optional[float] = None,
    ) -> List[ExecutionRecord]:
        """Record a perception batch and run any triggers it satisfies."""
        self.history.add_batch(batch.events, batch.scene)
        window = self.history.recent(self.lookback_seconds, now=now)
        return await self.check_triggers(workflows, window, self.history.latest_scene, now=now)

    async def check_triggers(
        self,
        workflows: Iterable[Workflow],
        events: Sequence[DetectionEvent],
        scene: Optional[SceneSummary] = None,
        now: Optional[float] = None,
    ) -> List[ExecutionRecord]:
        if not events:
            return []

        fires: List[Tuple[Workflow, Block, DetectionEvent]] = []
        for workflow in workflows:
            if not workflow.enabled:
                continue
            for trigger in workflow.graph.triggers():
                try:
                    matched = await self.matcher.matches(trigger, events, scene)
                except Exception as e:
                    _log(f"[Runner] trigger {trigger.id} in {workflow.id} errored: {e!r}")
                    continue
                if not matched:
                    continue

                key = cooldown_key(workflow.id, trigger.id)
                if not self.governor.try_fire(key, now=now):
                    remaining = self.governor.remaining(key, now=now)
                    _log(f"[Runner] {key} matched but cooling down ({remaining:.0f}s left)")
                    continue

                fires.append((workflow, trigger, self._triggering_event(trigger, events)))

        if not fires:
            return []

        _log(f"[Runner] firing {len(fires)} trigger(s): {[t.id for _, t, _ in fires]}")
        return list(
            await asyncio.gather(
                *(
                    self.coordinator.execute(workflow.graph, trigger.id, event, workflow_id=workflow.id)
                    for workflow, trigger, event in fires
                )
            )
        )

    def _triggering_event(self, trigger: Block, events: Sequence[DetectionEvent]) -> DetectionEvent:
        if trigger.subtype in ALIAS_RULES:
            event = self.matcher.matching_event(trigger.subtype, events)
            if event is not None:
                return event
        return events[-1]
