"""Execution coordinator — level-synchronous parallel execution of a plan.

State per fire: running -> completed | failed. Levels run strictly in
order; every block in a level is dispatched concurrently and the next
level starts only after all of them settle. A block failure never fails
the execution; only a failure of the coordination itself does.
"""

import asyncio
import sys
import uuid
from typing import Callable, Dict, List, Optional

from surveilens.domain.dispatcher import ActionDispatcher
from surveilens.domain.errors import CoordinationError
from surveilens.domain.leveler import plan as compute_plan
from surveilens.domain.models import (
    FAILED,
    BlockGraph,
    BlockOutcome,
    DetectionEvent,
    ExecutionPlan,
    ExecutionRecord,
    ExecutionSnapshot,
)
from surveilens.domain.progress import ProgressBus


def _log(msg: str):
    print(msg, file=sys.stderr)


class ExecutionCoordinator:
    """Owns the live execution records and drives each fire through its plan."""

    def __init__(
        self,
        dispatcher: ActionDispatcher,
        bus: Optional[ProgressBus] = None,
        level_pause_seconds: float = 0.5,
        planner: Callable[[BlockGraph, str], ExecutionPlan] = compute_plan,
    ):
        self._dispatcher = dispatcher
        self.bus = bus or ProgressBus()
        self.level_pause_seconds = level_pause_seconds
        self._planner = planner
        self._live: Dict[str, ExecutionRecord] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def live(self) -> List[ExecutionSnapshot]:
        return [r.snapshot() for r in self._live.values()]

    async def execute(
        self,
        graph: BlockGraph,
        trigger_id: str,
        event: DetectionEvent,
        workflow_id: str = "",
    ) -> ExecutionRecord:
        """Run one fire of ``trigger_id`` to a terminal state and return its record."""
        record = ExecutionRecord(
            execution_id=f"workflow_{uuid.uuid4().hex[:8]}",
            triggered_by=trigger_id,
            workflow_id=workflow_id,
        )
        record.set_active({trigger_id})
        self._live[record.execution_id] = record
        task = asyncio.current_task()
        if task is not None:
            self._tasks[record.execution_id] = task

        _log(f"[Coordinator] {record.execution_id} started by {trigger_id} ({event.type})")
        self._publish(record)

        try:
            execution_plan = self._build_plan(graph, trigger_id)
            for index, level in enumerate(execution_plan):
                record.set_active(level)
                _log(f"[Coordinator] {record.execution_id} level {index}: {sorted(level)}")
                self._publish(record)
                await self._pause()
                await self._run_level(graph, level, event, record)
                await self._pause()

            record.complete()
            _log(f"[Coordinator] {record.execution_id} completed")
            self._publish(record)
        except asyncio.CancelledError:
            if not record.is_terminal:
                record.fail("cancelled")
                self._publish(record)
            _log(f"[Coordinator] {record.execution_id} cancelled")
            raise
        except Exception as e:
            _log(f"[Coordinator] {record.execution_id} failed: {e!r}")
            if not record.is_terminal:
                record.fail(str(e))
                self._publish(record)
        finally:
            self._live.pop(record.execution_id, None)
            self._tasks.pop(record.execution_id, None)

        return record

    def _build_plan(self, graph: BlockGraph, trigger_id: str) -> ExecutionPlan:
        try:
            return self._planner(graph, trigger_id)
        except CoordinationError:
            raise
        except Exception as e:
            raise CoordinationError(f"plan computation failed: {e}") from e

    async def _run_level(self, graph, level, event, record: ExecutionRecord) -> None:
        block_ids = sorted(level)
        results = await asyncio.gather(
            *(self._dispatch_one(graph, block_id, event) for block_id in block_ids),
            return_exceptions=True,
        )
        for block_id, result in zip(block_ids, results):
            if isinstance(result, BaseException):
                _log(f"[Coordinator] block {block_id} raised {result!r}")
                result = BlockOutcome(block_id, FAILED, error_kind="error", detail=str(result))
            record.record_outcome(result)

    async def _dispatch_one(self, graph: BlockGraph, block_id: str, event: DetectionEvent) -> BlockOutcome:
        block = graph.get(block_id)
        if block is None:
            return BlockOutcome(block_id, FAILED, error_kind="graph", detail="block vanished from graph")
        try:
            return await self._dispatcher.dispatch(block, event)
        except Exception as e:
            _log(f"[Coordinator] dispatch of {block_id} raised {e!r}")
            return BlockOutcome(block_id, FAILED, error_kind="error", detail=str(e))

    async def _pause(self) -> None:
        if self.level_pause_seconds > 0:
            await asyncio.sleep(self.level_pause_seconds)

    def _publish(self, record: ExecutionRecord) -> None:
        try:
            self.bus.publish(record.snapshot())
        except Exception as e:
            _log(f"[Coordinator] progress publish failed: {e}")

    async def shutdown(self) -> None:
        """Cancel every in-flight execution and wait for them to settle."""
        tasks = [t for t in self._tasks.values() if not t.done() and t is not asyncio.current_task()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
