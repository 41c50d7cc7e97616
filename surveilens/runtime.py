"""Process-wide runtime: wires the engine to its adapters and owns shared state."""

import asyncio
import sys
from typing import Dict, List, Mapping, Optional

from surveilens.adapters.llm import SemanticOracle, create_executor
from surveilens.adapters.senders import FailureNotifier, build_senders
from surveilens.adapters.storage import GraphStore, start_graph_watcher
from surveilens.config import AppConfig
from surveilens.domain.cooldown import CooldownGovernor
from surveilens.domain.coordinator import ExecutionCoordinator
from surveilens.domain.dispatcher import ActionDispatcher
from surveilens.domain.matcher import TriggerMatcher
from surveilens.domain.models import ExecutionRecord, Workflow
from surveilens.domain.progress import ExecutionHistory, ProgressBus
from surveilens.domain.runner import WorkflowRunner
from surveilens.infrastructure.event_history import EventHistory
from surveilens.infrastructure.usage import UsageTracker
from surveilens.ports.inbound import DetectionBatch
from surveilens.ports.outbound import OraclePort, SenderPort


def _log(msg: str):
    print(msg, file=sys.stderr)


def build_oracle(settings: AppConfig) -> Optional[OraclePort]:
    try:
        executor = create_executor(settings.oracle.provider, model=settings.oracle.model)
    except ValueError as e:
        _log(f"[Runtime] semantic triggers disabled: {e}")
        return None
    limits = {
        "max_calls_per_minute": settings.oracle.max_calls_per_minute,
        "min_call_interval_seconds": settings.oracle.min_call_interval_seconds,
        "paused": False,
    }
    return SemanticOracle(executor, settings.oracle.timeout_seconds, UsageTracker(limits))


class Runtime:
    """One instance per process. Every collaborator is constructed here once."""

    def __init__(
        self,
        settings: Optional[AppConfig] = None,
        store: Optional[GraphStore] = None,
        senders: Optional[Mapping[str, SenderPort]] = None,
        oracle: Optional[OraclePort] = None,
    ):
        self.settings = settings or AppConfig.from_env()
        engine = self.settings.engine

        self.store = store or GraphStore(self.settings.storage_dir)
        self.history = EventHistory(engine.event_history_limit)
        self.governor = CooldownGovernor(engine.trigger_cooldown_seconds)

        self.bus = ProgressBus()
        self.executions = ExecutionHistory()
        self.bus.subscribe(self.executions)
        self.bus.subscribe(FailureNotifier())

        self.dispatcher = ActionDispatcher(
            build_senders() if senders is None else senders,
            timeout_seconds=engine.dispatch_timeout_seconds,
            retries=engine.dispatch_retries,
        )
        self.coordinator = ExecutionCoordinator(
            self.dispatcher, self.bus, level_pause_seconds=engine.level_pause_seconds
        )
        self.oracle = oracle if oracle is not None else build_oracle(self.settings)
        self.matcher = TriggerMatcher(self.oracle)
        self.runner = WorkflowRunner(
            self.matcher,
            self.governor,
            self.coordinator,
            history=self.history,
            lookback_seconds=engine.event_lookback_seconds,
        )

        self.workflows: Dict[str, Workflow] = {}
        self.event_queue: Optional[asyncio.Queue] = None
        self._consumer: Optional[asyncio.Task] = None
        self._observer = None

    # ── Workflows ──────────────────────────────

    def reload_workflows(self, reason: str = "") -> int:
        self.workflows = {wf.id: wf for wf in self.store.load_all()}
        suffix = f" ({reason})" if reason else ""
        _log(f"[Runtime] {len(self.workflows)} workflow(s) loaded{suffix}")
        return len(self.workflows)

    def put_workflow(self, workflow: Workflow) -> None:
        self.store.put_workflow(workflow)
        self.workflows[workflow.id] = workflow

    def delete_workflow(self, workflow_id: str) -> bool:
        removed = self.store.delete(workflow_id)
        return self.workflows.pop(workflow_id, None) is not None or removed

    # ── Events ──────────────────────────────

    @property
    def is_consuming(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    async def process(self, batch: DetectionBatch) -> List[ExecutionRecord]:
        return await self.runner.handle_batch(batch, workflows=list(self.workflows.values()))

    def enqueue(self, batch: DetectionBatch) -> bool:
        """Queue a batch for the background consumer. False if no consumer runs.

        Raises asyncio.QueueFull when the consumer has fallen behind.
        """
        if self.event_queue is None or not self.is_consuming:
            return False
        try:
            self.event_queue.put_nowait(batch)
        except asyncio.QueueFull:
            _log(f"[Runtime] event queue full ({self.event_queue.maxsize}), rejecting batch")
            raise
        return True

    async def consume(self):
        """Blocks on the queue until batches arrive, no polling."""
        _log("[Runtime] Event consumer started")
        while True:
            batch = await self.event_queue.get()
            try:
                await self.process(batch)
            except Exception as e:
                _log(f"[Runtime] Error processing batch: {e!r}")

    # ── Lifecycle ──────────────────────────────

    async def start(self) -> None:
        self.reload_workflows("startup")
        self.event_queue = asyncio.Queue(maxsize=self.settings.engine.event_queue_size)
        self._consumer = asyncio.create_task(self.consume())
        loop = asyncio.get_running_loop()
        self._observer = start_graph_watcher(loop, self.store.directory, self.reload_workflows)

    async def stop(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer = None
        if self._consumer is not None:
            self._consumer.cancel()
            await asyncio.gather(self._consumer, return_exceptions=True)
            self._consumer = None
        await self.coordinator.shutdown()
        await self.bus.drain()
        _log("[Runtime] stopped")


_runtime: Optional[Runtime] = None


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        _runtime = Runtime()
    return _runtime


def set_runtime(runtime: Optional[Runtime]) -> None:
    global _runtime
    _runtime = runtime
