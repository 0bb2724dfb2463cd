"""
Pipelines: immutable DAGs of operators with a single-item and a bulk apply.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence

from tiny_workflow.collection import Collection, as_collection
from tiny_workflow.graph.ir import (
    SOURCE,
    DelegatingNode,
    EstimatorNode,
    Graph,
    SourceNode,
    TransformerNode,
)
from tiny_workflow.graph.visualize import to_dot
from tiny_workflow.optimize import DefaultOptimizer, FitPreparation, Optimizer, safe_optimize
from tiny_workflow.runtime.executor import GraphExecutor
from tiny_workflow.utils.config import config

if TYPE_CHECKING:
    from tiny_workflow.workflow.transformer import Transformer

logger = logging.getLogger(__name__)

# default for `apply_bulk`; an explicit None means no optimizer at all
_DEFAULT: Any = object()


class Pipeline:
    """
    A compiled DAG of operators exposing the same apply contract as a
    Transformer, so pipelines nest inside larger pipelines.

    Pipelines are immutable. Composition (``and_then``, ``>>``, ``gather``)
    and fitting always return new instances.

    Example::

        featurize = Transformer.from_function(tokenize) >> Transformer.from_function(count)
        model = featurize.and_then(NaiveBayes(), train_docs, train_labels)
        predictions = model.apply_bulk(test_docs)
    """

    SOURCE = SOURCE

    # class-level defaults so Transformer subclasses need not call __init__
    optimizer: Optional[Optimizer] = None
    _fitted: Optional["Pipeline"] = None

    def __init__(self, graph: Graph, *, optimizer: Optional[Optimizer] = None) -> None:
        self._graph = graph
        self.optimizer = optimizer
        self._fitted = None

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def nodes(self):
        return self.graph.nodes

    @property
    def data_deps(self):
        return self.graph.data_deps

    @property
    def fit_deps(self):
        return self.graph.fit_deps

    @property
    def sink(self) -> int:
        return self.graph.sink

    @property
    def is_fitted(self) -> bool:
        return not any(
            isinstance(node, (EstimatorNode, DelegatingNode)) for node in self.graph.nodes
        )

    def fit(self) -> "Pipeline":
        """
        Fit every estimator and return the fitted pipeline. The result is
        memoized; this pipeline's graph is never modified.

        Raises:
            FitFailure: an estimator could not produce a transformer.
        """
        if self.is_fitted:
            return self
        if self._fitted is None:
            logger.info("Fitting pipeline with %d nodes", len(self.graph))
            graph = safe_optimize(FitPreparation(), self.graph)
            self._fitted = Pipeline(GraphExecutor(graph).fit(), optimizer=self.optimizer)
        return self._fitted

    def apply(self, item: Any, optimizer: Optional[Optimizer] = None) -> Any:
        """
        Apply the pipeline to a single item.

        ``optimizer`` is accepted for parity with ``apply_bulk``; the
        single-item path never rewrites the graph.
        """
        return GraphExecutor(self.fit().graph).execute(item)

    def apply_bulk(self, data: Any, optimizer: Optional[Optimizer] = _DEFAULT) -> Collection[Any]:
        """
        Apply the pipeline to every element of ``data`` (a Collection, or any
        iterable, which is parallelized first).

        The optimizer rewrites the fitted graph once before the walk. When
        ``optimizer`` is omitted, this pipeline's optimizer is used, else
        ``DefaultOptimizer`` when ``config.optimize_bulk``. An explicit
        ``None`` runs the graph as built.
        """
        fitted = self.fit()
        executor = GraphExecutor(fitted.graph, optimizer=self._resolve_optimizer(optimizer))
        return executor.execute_bulk(as_collection(data))

    def _resolve_optimizer(self, optimizer: Optional[Optimizer]) -> Optional[Optimizer]:
        if optimizer is not _DEFAULT:
            return optimizer
        if self.optimizer is not None:
            return self.optimizer
        return DefaultOptimizer() if config.optimize_bulk else None

    def __call__(self, data: Any) -> Any:
        if isinstance(data, Collection):
            return self.apply_bulk(data)
        return self.apply(data)

    def and_then(self, nxt: Any, data: Any = None, labels: Any = None) -> "Pipeline":
        """
        Chain ``nxt`` after this pipeline.

        - ``and_then(pipeline_or_transformer)`` feeds this pipeline's output
          into ``nxt``.
        - ``and_then(estimator, data)`` / ``and_then(label_estimator, data,
          labels)`` fits the estimator on this pipeline applied to ``data``
          and appends the fit result.
        """
        from tiny_workflow.workflow.estimator import Estimator, LabelEstimator

        if isinstance(nxt, LabelEstimator):
            if data is None or labels is None:
                raise TypeError("Chaining a LabelEstimator requires training data and labels.")
            return self._and_then_estimator(nxt, data, labels)
        if isinstance(nxt, Estimator):
            if data is None:
                raise TypeError("Chaining an Estimator requires training data.")
            if labels is not None:
                raise TypeError(f"{nxt.label} is not a LabelEstimator; labels are not accepted.")
            return self._and_then_estimator(nxt, data, None)
        if not isinstance(nxt, Pipeline):
            raise TypeError(f"Cannot chain {type(nxt).__name__} onto a pipeline.")
        if data is not None or labels is not None:
            raise TypeError("Training data can only be given when chaining an estimator.")

        base = self.graph
        graph, sink = base.add_graph(nxt.graph, source=base.sink)
        return Pipeline(graph.with_sink(sink), optimizer=self.optimizer)

    def __rshift__(self, other: Any) -> "Pipeline":
        return self.and_then(other)

    def _and_then_estimator(self, estimator: Any, data: Any, labels: Any) -> "Pipeline":
        base = self.graph
        graph, data_idx = base.add_node(SourceNode(as_collection(data), name="data"))
        # training branch: a copy of this pipeline reading the bound data
        graph, train_idx = graph.add_graph(base, source=data_idx)
        deps = [train_idx]
        if labels is not None:
            graph, labels_idx = graph.add_node(SourceNode(as_collection(labels), name="labels"))
            deps.append(labels_idx)
        graph, est_idx = graph.add_node(EstimatorNode(estimator), deps)
        graph, out_idx = graph.add_node(
            DelegatingNode(name=estimator.label), (base.sink,), fit_dep=est_idx
        )
        return Pipeline(graph.with_sink(out_idx), optimizer=self.optimizer)

    @staticmethod
    def gather(branches: Iterable["Pipeline"]) -> "Pipeline":
        """
        Run every branch on the same input and emit the list of their
        outputs, in branch order. In bulk mode the branch outputs are zipped.
        """
        from tiny_workflow.workflow.operators import GatherTransformer

        branches = list(branches)
        if not branches:
            raise ValueError("gather needs at least one branch.")

        graph = branches[0].graph
        sinks = [graph.sink]
        for branch in branches[1:]:
            graph, sink = graph.add_graph(branch.graph, source=SOURCE)
            sinks.append(sink)
        graph, out_idx = graph.add_node(TransformerNode(GatherTransformer(len(sinks))), sinks)
        return Pipeline(graph.with_sink(out_idx))

    def as_transformer(self) -> "Transformer":
        """Wrap this pipeline as a single opaque operator."""
        from tiny_workflow.workflow.operators import PipelineTransformer

        return PipelineTransformer(self)

    def to_dot(self, name: str = "pipeline") -> str:
        return to_dot(self.graph, name=name)

    def __repr__(self) -> str:
        state = "fitted" if self.is_fitted else "unfitted"
        return f"{type(self).__name__}(nodes={len(self.graph)}, sink={self.sink}, {state})"


def chain(stages: Sequence[Any]) -> Pipeline:
    """Left fold of ``and_then`` over pipelines and transformers."""
    if not stages:
        raise ValueError("chain needs at least one stage.")
    result = stages[0]
    for stage in stages[1:]:
        result = result.and_then(stage)
    return result
