from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict, Optional, Sequence

from tiny_workflow.analysis.frontier import release_schedule
from tiny_workflow.collection.base import Collection
from tiny_workflow.errors import FitFailure, WorkflowError
from tiny_workflow.graph.ir import (
    SOURCE,
    DelegatingNode,
    EstimatorNode,
    Graph,
    Node,
    SourceNode,
    TransformerNode,
)
from tiny_workflow.graph.topo import default_topological_order, execution_order
from tiny_workflow.optimize.base import Optimizer
from tiny_workflow.optimize.validate import safe_optimize
from tiny_workflow.runtime.profiling import Profiler
from tiny_workflow.runtime.storage import ResultStore
from tiny_workflow.utils.config import config

logger = logging.getLogger(__name__)


class GraphExecutor:
    """
    Walks a Graph in dependency order, one node at a time.

    - ``execute`` feeds a single item through the graph.
    - ``execute_bulk`` feeds a whole Collection through the graph, after an
      optional optimizer rewrite.
    - ``fit`` fits every estimator and returns the graph with their fit
      results wired in place of the delegating nodes.

    The walk is synchronous; all parallelism lives in the collection engine.
    """

    def __init__(
        self,
        graph: Graph,
        *,
        optimizer: Optional[Optimizer] = None,
        profiler: Optional[Profiler] = None,
    ) -> None:
        self.graph = graph
        self.optimizer = optimizer
        self.profiler = profiler or Profiler()
        self.results = ResultStore()

    def execute(self, item: Any) -> Any:
        return self._walk(self.graph, item, bulk=False)

    def execute_bulk(self, data: Collection[Any]) -> Collection[Any]:
        graph = safe_optimize(self.optimizer, self.graph)
        return self._walk(graph, data, bulk=True)

    def fit(self) -> Graph:
        """
        Fit estimators in topological order and return the fitted graph.

        Estimator inputs are evaluated in bulk and shared between estimators
        that depend on the same upstream nodes. The returned graph contains
        no estimator or delegating nodes.
        """
        graph = self.graph
        training = ResultStore()
        fitted: Dict[int, Any] = {}

        for idx in default_topological_order(graph):
            node = graph.nodes[idx]
            if isinstance(node, EstimatorNode):
                inputs = [
                    self._training_input(graph, idx, dep, training)
                    for dep in graph.data_deps[idx]
                ]
                fitted[idx] = self._fit_node(idx, node, inputs)
            elif isinstance(node, DelegatingNode):
                transformer = fitted[graph.fit_deps[idx]]
                graph = graph.replace_node(idx, TransformerNode(transformer), fit_dep=None)

        training.clear()
        return graph.remove_unused()

    def _fit_node(self, idx: int, node: EstimatorNode, inputs: Sequence[Any]) -> Any:
        logger.info("Fitting estimator %d (`%s`)", idx, node.name)
        start = perf_counter()
        try:
            transformer = node.fit(inputs)
        except FitFailure:
            raise
        except Exception as exc:
            raise FitFailure(f"Estimator `{node.name}` failed to fit: {exc}", node=node.name) from exc

        if not callable(getattr(transformer, "transform", None)):
            raise FitFailure(
                f"Estimator `{node.name}` returned {type(transformer).__name__}, not a Transformer.",
                node=node.name,
            )
        duration_ms = (perf_counter() - start) * 1000.0
        self.profiler.record_fit(node.name, duration_ms)
        logger.info("Fitted estimator %d (`%s`) in %.1f ms", idx, node.name, duration_ms)
        return transformer

    def _training_input(self, graph: Graph, estimator: int, dep: int, store: ResultStore) -> Any:
        if dep == SOURCE or graph.reads_source(dep):
            name = graph.nodes[estimator].name
            raise FitFailure(
                f"Estimator `{name}` depends on the pipeline input; "
                "bind training data with `with_data` or `and_then(estimator, data)`.",
                node=name,
            )
        for idx in execution_order(graph, [dep]):
            if store.has(idx):
                continue
            inputs = [store.load(d) for d in graph.data_deps[idx]]
            store.save(idx, self._evaluate(idx, graph.nodes[idx], inputs, bulk=True))
        return store.load(dep)

    def _walk(self, graph: Graph, source_value: Any, *, bulk: bool) -> Any:
        order = execution_order(graph)
        releases = release_schedule(graph, order) if config.release_intermediates else {}
        store = self.results
        store.clear()

        logger.debug("Walking %d nodes (%s)", len(order), "bulk" if bulk else "single")
        for step, idx in enumerate(order):
            inputs = [
                source_value if dep == SOURCE else store.load(dep)
                for dep in graph.data_deps[idx]
            ]
            store.save(idx, self._evaluate(idx, graph.nodes[idx], inputs, bulk=bulk))
            for done in releases.get(step, ()):
                store.delete(done)

        result = store.load(graph.sink)
        if config.release_intermediates:
            store.clear()
        return result

    def _evaluate(self, idx: int, node: Node, inputs: Sequence[Any], *, bulk: bool) -> Any:
        if isinstance(node, SourceNode):
            return node.data
        if isinstance(node, TransformerNode):
            start = perf_counter()
            value = node.transform_bulk(inputs) if bulk else node.transform(inputs)
            duration_ms = (perf_counter() - start) * 1000.0
            self.profiler.record_evaluation(node.name, duration_ms)
            if config.debug:
                logger.debug("Node %d (`%s`) took %.3f ms", idx, node.name, duration_ms)
            return value
        if isinstance(node, (EstimatorNode, DelegatingNode)):
            raise WorkflowError(
                f"Node {idx} (`{node.name}`) must be fit before the graph can be applied."
            )
        raise WorkflowError(f"Unknown node type at index {idx}: {type(node).__name__}")
