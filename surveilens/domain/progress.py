"""Progress publishing for execution records.

Observers get read-only snapshots. Delivery is fire-and-forget: sync
callbacks are called inside a guard, coroutine callbacks are scheduled
as tasks and never awaited, queue subscribers drop on overflow.
"""

import asyncio
import inspect
import sys
from collections import OrderedDict, deque
from typing import Callable, Deque, Dict, List, Optional, Set

from surveilens.domain.models import TERMINAL_STATUSES, ExecutionSnapshot
from surveilens.ports.outbound import ProgressObserver


def _log(msg: str):
    print(msg, file=sys.stderr)


class ProgressBus:
    def __init__(self):
        self._callbacks: List[ProgressObserver] = []
        self._queues: List[asyncio.Queue] = []
        self._pending: Set[asyncio.Task] = set()

    def subscribe(self, callback: ProgressObserver) -> Callable[[], None]:
        """Register an observer. Returns a function that unsubscribes it."""
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def subscribe_queue(self, maxsize: int = 100) -> asyncio.Queue:
        """Bounded queue fed with every snapshot; a full queue drops new snapshots."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._queues.append(queue)
        return queue

    def unsubscribe_queue(self, queue: asyncio.Queue) -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    @property
    def observer_count(self) -> int:
        return len(self._callbacks) + len(self._queues)

    def publish(self, snapshot: ExecutionSnapshot) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(snapshot)
            except Exception as e:
                _log(f"[ProgressBus] observer {callback!r} failed: {e}")
                continue
            if inspect.isawaitable(result):
                self._schedule(result)

        for queue in list(self._queues):
            try:
                queue.put_nowait(snapshot)
            except asyncio.QueueFull:
                _log(f"[ProgressBus] queue full, dropped snapshot of {snapshot.execution_id}")

    def _schedule(self, awaitable) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            _log(f"[ProgressBus] no running loop for async observer: {e}")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(self._on_observer_done)

    def _on_observer_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _log(f"[ProgressBus] async observer failed: {exc}")

    async def drain(self) -> None:
        """Wait for scheduled async observers. For tests and shutdown only."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class ExecutionHistory:
    """Observer that keeps the latest snapshot per execution for status views."""

    def __init__(self, max_finished: int = 50):
        self._live: Dict[str, ExecutionSnapshot] = OrderedDict()
        self._finished: Deque[ExecutionSnapshot] = deque(maxlen=max_finished)

    def __call__(self, snapshot: ExecutionSnapshot) -> None:
        if snapshot.status in TERMINAL_STATUSES:
            self._live.pop(snapshot.execution_id, None)
            self._finished.appendleft(snapshot)
        else:
            self._live[snapshot.execution_id] = snapshot

    def live(self) -> List[ExecutionSnapshot]:
        return list(self._live.values())

    def finished(self) -> List[ExecutionSnapshot]:
        return list(self._finished)

    def get(self, execution_id: str) -> Optional[ExecutionSnapshot]:
        if execution_id in self._live:
            return self._live[execution_id]
        return next((s for s in self._finished if s.execution_id == execution_id), None)
