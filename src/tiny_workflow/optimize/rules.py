"""
Graph rewrite rules. Every rule preserves the sink's output for every input.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Optional, Tuple

from tiny_workflow.graph.ir import (
    SOURCE,
    EstimatorNode,
    Graph,
    Node,
    SourceNode,
    TransformerNode,
)
from tiny_workflow.optimize.base import Batch, Rule, RuleExecutor

logger = logging.getLogger(__name__)


class UnusedBranchRemovalRule(Rule):
    """Drop nodes whose output never reaches the sink."""

    def apply(self, graph: Graph) -> Graph:
        return graph.remove_unused()


def _operator_identity(node: Node) -> Optional[int]:
    if isinstance(node, SourceNode):
        return id(node.data)
    if isinstance(node, TransformerNode):
        return id(node.transformer)
    if isinstance(node, EstimatorNode):
        return id(node.estimator)
    # delegating nodes are identified by their fit dependency alone
    return None


class EquivalentNodeMergeRule(Rule):
    """
    Common subexpression elimination: nodes of the same kind that wrap the
    same operator object and read the same dependencies compute the same
    value, so all consumers are pointed at the first of them.
    """

    def apply(self, graph: Graph) -> Graph:
        canonical: Dict[int, int] = {}
        seen: Dict[Hashable, int] = {}

        for idx in graph.topological_sort():
            node = graph.nodes[idx]
            deps = tuple(canonical.get(d, d) for d in graph.data_deps[idx])
            fit = graph.fit_deps[idx]
            key: Tuple[Any, ...] = (
                type(node),
                _operator_identity(node),
                deps,
                None if fit is None else canonical.get(fit, fit),
            )
            if key in seen:
                canonical[idx] = seen[key]
            else:
                seen[key] = idx

        if not canonical:
            return graph
        logger.debug("Merging %d equivalent nodes", len(canonical))
        return graph.redirect(canonical).remove_unused()


def _is_elementwise(node: Node) -> bool:
    return isinstance(node, TransformerNode) and bool(
        getattr(node.transformer, "is_elementwise", False)
    )


class TransformerFusionRule(Rule):
    """
    Fuse producer -> consumer chains of element-wise, single-input
    transformers into one ComposedTransformer, so bulk execution maps once
    instead of once per stage. Transformers with a bulk-native path are
    left alone.
    """

    def _fusable_producer(self, graph: Graph, idx: int) -> Optional[int]:
        node = graph.nodes[idx]
        deps = graph.data_deps[idx]
        if not _is_elementwise(node) or len(deps) != 1 or deps[0] == SOURCE:
            return None
        producer = deps[0]
        if (
            producer == graph.sink
            or not _is_elementwise(graph.nodes[producer])
            or len(graph.data_deps[producer]) != 1
            or graph.consumers(producer) != [idx]
        ):
            return None
        return producer

    def apply(self, graph: Graph) -> Graph:
        from tiny_workflow.workflow.operators import ComposedTransformer

        fused = True
        while fused:
            fused = False
            for idx in graph.topological_sort():
                producer = self._fusable_producer(graph, idx)
                if producer is None:
                    continue
                first = graph.nodes[producer].transformer
                second = graph.nodes[idx].transformer
                node = TransformerNode(ComposedTransformer.of(first, second))
                graph = graph.replace_node(
                    idx, node, data_deps=graph.data_deps[producer]
                ).remove_unused()
                fused = True
                break
        return graph


class DefaultOptimizer(RuleExecutor):
    """Dead-branch removal, then common subexpression elimination, then fusion."""

    def __init__(self) -> None:
        super().__init__(
            [
                Batch("dead-code", (UnusedBranchRemovalRule(),), max_iterations=1),
                Batch("cse", (EquivalentNodeMergeRule(),)),
                Batch("fusion", (TransformerFusionRule(),)),
            ]
        )


class FitPreparation(RuleExecutor):
    """
    Rewrites applied before fitting so that an estimator reached through
    several copies of the same prefix is fit once.
    """

    def __init__(self) -> None:
        super().__init__(
            [
                Batch("cse", (EquivalentNodeMergeRule(), UnusedBranchRemovalRule())),
            ]
        )
