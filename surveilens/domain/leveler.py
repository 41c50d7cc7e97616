"""Level planning over the block graph.

Breadth-first from the firing trigger. First discovery wins: a block is
placed at the depth where it is first reached and is never revisited, so
every reachable block appears exactly once, at its shortest hop distance,
and cycles terminate. Trigger blocks are never planned or traversed.
"""

import sys
from typing import List, Set

from surveilens.domain.errors import CoordinationError, GraphError
from surveilens.domain.models import TRIGGER, BlockGraph, ExecutionPlan


def _log(msg: str):
    print(msg, file=sys.stderr)


def plan(graph: BlockGraph, firing_trigger_id: str) -> ExecutionPlan:
    """Compute the ordered levels of downstream blocks for one fire."""
    trigger = graph.get(firing_trigger_id)
    if trigger is None:
        raise CoordinationError(f"trigger {firing_trigger_id!r} is not in the graph")
    if trigger.kind != TRIGGER:
        raise CoordinationError(f"block {firing_trigger_id!r} is a {trigger.kind}, not a trigger")

    visited: Set[str] = {firing_trigger_id}
    levels: List[frozenset] = []
    frontier = [firing_trigger_id]

    while frontier:
        discovered: List[str] = []
        for block_id in frontier:
            for link in graph.outgoing(block_id):
                target = graph.get(link.target)
                if target is None:
                    _log(f"[Leveler] skipping link {link.id}: {GraphError(f'missing block {link.target!r}')}")
                    continue
                if link.target in visited:
                    continue
                visited.add(link.target)
                if target.kind == TRIGGER:
                    continue
                discovered.append(link.target)
        if discovered:
            levels.append(frozenset(discovered))
        frontier = discovered

    return ExecutionPlan(levels=tuple(levels))
