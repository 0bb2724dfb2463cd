"""
Validation of optimizer rewrites, with fail-open fallback.
"""

from __future__ import annotations

import logging
from typing import Optional

from tiny_workflow.errors import OptimizerFailure
from tiny_workflow.graph.ir import DelegatingNode, EstimatorNode, Graph
from tiny_workflow.optimize.base import Optimizer

logger = logging.getLogger(__name__)


def validate_rewrite(original: Graph, optimized: Graph) -> None:
    """
    Structural checks on an optimizer's output:
    - the result is a Graph (Graph construction already checked bounds and cycles)
    - no unfit nodes were introduced into a fitted graph
    """
    if not isinstance(optimized, Graph):
        raise OptimizerFailure(
            f"Optimizer returned {type(optimized).__name__} instead of a Graph."
        )
    _ensure_no_unfit_nodes(original, optimized)


def _ensure_no_unfit_nodes(original: Graph, optimized: Graph) -> None:
    def unfit(graph: Graph) -> int:
        return sum(isinstance(n, (EstimatorNode, DelegatingNode)) for n in graph.nodes)

    if unfit(optimized) > unfit(original):
        raise OptimizerFailure("Optimizer introduced estimator or delegating nodes.")


def safe_optimize(optimizer: Optional[Optimizer], graph: Graph) -> Graph:
    """
    Run ``optimizer`` on ``graph``. Any failure is logged and the input
    graph is returned unchanged; no optimizer means the identity rewrite.
    """
    if optimizer is None:
        return graph
    try:
        optimized = optimizer.optimize(graph)
        validate_rewrite(graph, optimized)
    except Exception as exc:
        failure = exc if isinstance(exc, OptimizerFailure) else OptimizerFailure(str(exc))
        logger.warning(
            "Optimizer %s failed, running the unoptimized graph: %s",
            type(optimizer).__name__,
            failure,
        )
        return graph

    if len(optimized) != len(graph):
        logger.info(
            "Optimizer %s rewrote graph: %d -> %d nodes",
            type(optimizer).__name__,
            len(graph),
            len(optimized),
        )
    return optimized
