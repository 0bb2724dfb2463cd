from __future__ import annotations

import logging

import pytest

from tiny_workflow.collection import LocalCollection
from tiny_workflow.errors import FitFailure, WorkflowError
from tiny_workflow.graph.ir import SOURCE, DelegatingNode, EstimatorNode, Graph, SourceNode, TransformerNode
from tiny_workflow.runtime import GraphExecutor, Profiler
from tiny_workflow.utils.config import override
from tiny_workflow.workflow import FunctionEstimator, Transformer


def _build_chain_graph(num_nodes: int) -> Graph:
    nodes = tuple(
        TransformerNode(Transformer.from_function(lambda x: x + 1, name=f"n{idx}"))
        for idx in range(num_nodes)
    )
    data_deps = tuple((idx - 1,) if idx else (SOURCE,) for idx in range(num_nodes))
    return Graph(nodes, data_deps, (None,) * num_nodes, num_nodes - 1)


def test_executor_runs_single_and_bulk() -> None:
    executor = GraphExecutor(_build_chain_graph(3))

    assert executor.execute(0) == 3
    assert executor.execute_bulk(LocalCollection([0, 10])).collect() == [3, 13]


def test_executor_records_profile() -> None:
    profiler = Profiler()
    executor = GraphExecutor(_build_chain_graph(3), profiler=profiler)
    executor.execute(1)

    stats = profiler.snapshot()
    assert stats.node_evaluations == 3
    assert set(stats.events) == {"n0", "n1", "n2"}


def test_debug_flag_logs_per_node_timings(caplog: pytest.LogCaptureFixture) -> None:
    executor = GraphExecutor(_build_chain_graph(3))

    with caplog.at_level(logging.DEBUG, logger="tiny_workflow"):
        executor.execute(0)
    assert "took" not in caplog.text
    assert executor.profiler.snapshot().node_evaluations == 3

    caplog.clear()
    with override(debug=True), caplog.at_level(logging.DEBUG, logger="tiny_workflow"):
        executor.execute(0)
    timings = [r for r in caplog.records if "took" in r.getMessage()]
    assert len(timings) == 3


def test_executor_releases_intermediates() -> None:
    executor = GraphExecutor(_build_chain_graph(4))
    executor.execute(0)
    assert len(executor.results) == 0

    with override(release_intermediates=False):
        executor.execute(0)
        assert len(executor.results) == 4


def test_executor_skips_nodes_outside_sink_ancestry() -> None:
    calls = []

    def record(x):
        calls.append(x)
        return x

    nodes = (
        TransformerNode(Transformer.from_function(lambda x: x * 2)),
        TransformerNode(Transformer.from_function(record)),
    )
    graph = Graph(nodes, ((SOURCE,), (SOURCE,)), (None, None), 0)
    assert GraphExecutor(graph).execute(4) == 8
    assert calls == []


def test_executor_refuses_unfit_nodes() -> None:
    estimator = FunctionEstimator(lambda data: Transformer.from_function(abs))
    graph = Graph(
        (SourceNode(LocalCollection([1])), EstimatorNode(estimator), DelegatingNode("abs")),
        ((), (0,), (SOURCE,)),
        (None, None, 1),
        2,
    )
    with pytest.raises(WorkflowError, match="must be fit"):
        GraphExecutor(graph).execute(-1)

    fitted = GraphExecutor(graph).fit()
    assert len(fitted) == 1
    assert GraphExecutor(fitted).execute(-1) == 1


def test_fit_records_profile_and_wraps_bad_results() -> None:
    class Bare:
        label = "bare"

        def fit_dependencies(self, inputs):
            return object()

    graph = Graph(
        (SourceNode(LocalCollection([1])), EstimatorNode(Bare()), DelegatingNode("bare")),
        ((), (0,), (SOURCE,)),
        (None, None, 1),
        2,
    )
    with pytest.raises(FitFailure, match="not a Transformer") as excinfo:
        GraphExecutor(graph).fit()
    assert excinfo.value.node == "bare"

    profiler = Profiler()
    estimator = FunctionEstimator(lambda data: Transformer.from_function(abs), name="abs_fit")
    good = Graph(
        (SourceNode(LocalCollection([1])), EstimatorNode(estimator), DelegatingNode("abs")),
        ((), (0,), (SOURCE,)),
        (None, None, 1),
        2,
    )
    GraphExecutor(good, profiler=profiler).fit()
    assert profiler.snapshot().fits == 1
    assert "fit:abs_fit" in profiler.snapshot().events


def test_fit_wraps_raw_exceptions_from_estimator_objects() -> None:
    class Exploding:
        label = "exploding"

        def fit_dependencies(self, inputs):
            raise ZeroDivisionError("bad data")

    graph = Graph(
        (SourceNode(LocalCollection([1])), EstimatorNode(Exploding()), DelegatingNode("x")),
        ((), (0,), (SOURCE,)),
        (None, None, 1),
        2,
    )
    with pytest.raises(FitFailure) as excinfo:
        GraphExecutor(graph).fit()
    assert isinstance(excinfo.value.__cause__, ZeroDivisionError)
