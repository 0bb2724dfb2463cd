"""
Topological order selection.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .ir import Graph


def default_topological_order(graph: Graph) -> List[int]:
    """
    Use the built-in topo sort (lowest ready index first).
    """
    return graph.topological_sort()


def execution_order(graph: Graph, targets: Optional[Iterable[int]] = None) -> List[int]:
    """
    Topological order restricted to the nodes needed for ``targets``
    (default: the sink).
    """
    targets = [graph.sink] if targets is None else list(targets)
    needed = graph.ancestors(targets) | set(targets)
    return [idx for idx in default_topological_order(graph) if idx in needed]
