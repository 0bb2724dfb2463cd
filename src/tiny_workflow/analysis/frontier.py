"""
Live-result frontier over an execution order.

A node's output is live from the step that computes it until the step of
its last consumer. The executor uses the release schedule to drop
intermediate outputs as soon as nothing downstream needs them.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from tiny_workflow.graph.ir import Graph


def last_uses(graph: Graph, order: Sequence[int]) -> Dict[int, int]:
    """Map each node in ``order`` to the step of its last consumer (or its own step)."""
    last = {idx: step for step, idx in enumerate(order)}
    for step, idx in enumerate(order):
        for dep in graph.dependencies(idx):
            if dep in last:
                last[dep] = max(last[dep], step)
    return last


def release_schedule(
    graph: Graph,
    order: Sequence[int],
    keep: Iterable[int] = (),
) -> Dict[int, List[int]]:
    """
    Step -> node indices whose outputs can be dropped after that step.
    The sink and any ``keep`` indices are never released.
    """
    pinned = set(keep) | {graph.sink}
    schedule: Dict[int, List[int]] = {}
    for idx, step in last_uses(graph, order).items():
        if idx not in pinned:
            schedule.setdefault(step, []).append(idx)
    return {step: sorted(nodes) for step, nodes in schedule.items()}
