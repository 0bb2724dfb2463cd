from __future__ import annotations

from statistics import mean

import pytest

from tiny_workflow.collection import Collection, LocalCollection, parallelize
from tiny_workflow.graph.ir import SOURCE, SourceNode
from tiny_workflow.workflow import (
    Estimator,
    FunctionEstimator,
    LabelEstimator,
    Pipeline,
    PipelineTransformer,
    Transformer,
    chain,
)


def _fn(name: str, fn) -> Transformer:
    return Transformer.from_function(fn, name=name)


class CountingMean(Estimator[float, float]):
    def __init__(self) -> None:
        self.fits = 0

    def _fit(self, data: Collection[float]) -> Transformer[float, float]:
        self.fits += 1
        center = mean(data.collect())
        return Transformer.from_function(lambda x: x - center)


class RatioToLabels(LabelEstimator[float, float, float]):
    """Scales inputs by sum(labels) / sum(data)."""

    def __init__(self) -> None:
        self.seen: list = []

    def _fit(self, data: Collection[float], labels: Collection[float]) -> Transformer[float, float]:
        self.seen = data.collect()
        ratio = sum(labels.collect()) / sum(self.seen)
        return Transformer.from_function(lambda x: x * ratio)


def test_and_then_offsets_indices_and_maps_source_to_sink() -> None:
    a, b, c = _fn("a", lambda x: x + 1), _fn("b", lambda x: x * 2), _fn("c", lambda x: x - 3)
    pipeline = a.and_then(b).and_then(c)

    assert pipeline.nodes[0].transformer is a
    assert pipeline.data_deps == ((SOURCE,), (0,), (1,))
    assert pipeline.fit_deps == (None, None, None)
    assert pipeline.sink == 2
    assert pipeline.apply(4) == 7


def test_composition_is_associative() -> None:
    a, b, c = _fn("a", lambda x: x + 1), _fn("b", lambda x: x * 2), _fn("c", lambda x: x - 3)
    left = (a >> b) >> c
    right = a >> (b >> c)
    items = list(range(-5, 6))

    assert [left.apply(x) for x in items] == [right.apply(x) for x in items]
    assert left.apply_bulk(items).collect() == right.apply_bulk(items).collect()


def test_bulk_matches_single_for_composed_pipeline() -> None:
    pipeline = chain([_fn("inc", lambda x: x + 1), _fn("sq", lambda x: x * x), _fn("neg", lambda x: -x)])
    items = list(range(10))
    data = parallelize(items, num_partitions=4)
    expected = [pipeline.apply(x) for x in items]

    assert pipeline.apply_bulk(data).collect() == expected
    assert pipeline.apply_bulk(data, optimizer=None).collect() == expected
    assert pipeline(data).collect() == expected


def test_apply_is_deterministic() -> None:
    pipeline = _fn("a", lambda x: x + 1) >> _fn("b", lambda x: x * 10)
    assert {pipeline.apply(3) for _ in range(5)} == {40}


def test_gather_runs_branches_on_same_input() -> None:
    branches = [_fn("inc", lambda x: x + 1), _fn("dbl", lambda x: x * 2), _fn("str", str)]
    gathered = Pipeline.gather(branches)

    assert gathered.apply(3) == [4, 6, "3"]
    assert gathered.apply_bulk(LocalCollection([1, 2])).collect() == [[2, 2, "1"], [3, 4, "2"]]


def test_gather_requires_branches() -> None:
    with pytest.raises(ValueError):
        Pipeline.gather([])


def test_gather_with_partitioned_input_preserves_order() -> None:
    gathered = Pipeline.gather([_fn("id", lambda x: x), _fn("neg", lambda x: -x)])
    data = parallelize(range(9), num_partitions=4)
    assert gathered.apply_bulk(data).collect() == [[i, -i] for i in range(9)]


def test_nested_pipeline_as_transformer() -> None:
    inner = _fn("inc", lambda x: x + 1) >> _fn("dbl", lambda x: x * 2)
    wrapped = inner.as_transformer()
    outer = _fn("neg", lambda x: -x) >> wrapped

    assert isinstance(wrapped, PipelineTransformer)
    assert len(outer.graph) == 2
    assert outer.apply(3) == -4
    assert outer.apply_bulk([0, 1]).collect() == [2, 0]


def test_and_then_estimator_fits_on_transformed_training_data() -> None:
    scale = _fn("scale", lambda x: x * 10)
    estimator = CountingMean()
    pipeline = scale.and_then(estimator, [1.0, 2.0, 3.0])

    assert not pipeline.is_fitted
    # training data is scaled before fitting: mean is 20
    assert pipeline.apply(4.0) == pytest.approx(20.0)
    assert pipeline.apply_bulk([1.0, 3.0]).collect() == pytest.approx([-10.0, 10.0])
    assert estimator.fits == 1


def test_and_then_label_estimator_fits_on_transformed_data_and_labels() -> None:
    double = _fn("double", lambda x: x * 2)
    estimator = RatioToLabels()
    pipeline = double.and_then(estimator, [1.0, 3.0], [6.0, 18.0])

    assert sum(isinstance(node, SourceNode) for node in pipeline.nodes) == 2
    # labels sum to 24 against doubled data summing to 8
    assert pipeline.apply(3.0) == pytest.approx(18.0)
    assert estimator.seen == [2.0, 6.0]
    assert pipeline.apply_bulk([1.0, 2.0]).collect() == pytest.approx([6.0, 12.0])


def test_shared_estimator_prefix_is_fit_once() -> None:
    first = CountingMean()
    second = FunctionEstimator(
        lambda data: Transformer.from_function(lambda x, m=max(data.collect()): x / m)
    )
    pipeline = first.with_data([2.0, 4.0]).and_then(second, [5.0, 7.0])

    # second sees [2.0, 4.0] after centering by 3.0
    assert pipeline.apply(7.0) == pytest.approx(1.0)
    assert first.fits == 1


def test_and_then_rejects_misuse() -> None:
    scale = _fn("scale", lambda x: x * 2)
    with pytest.raises(TypeError):
        scale.and_then(CountingMean())
    with pytest.raises(TypeError):
        scale.and_then(CountingMean(), [1.0], [2.0])
    with pytest.raises(TypeError):
        scale.and_then(_fn("b", abs), [1.0])
    with pytest.raises(TypeError):
        scale.and_then(42)


def test_chain_requires_stages() -> None:
    with pytest.raises(ValueError):
        chain([])


def test_pipeline_repr_and_dot() -> None:
    pipeline = CountingMean().with_data([1.0])
    assert "unfitted" in repr(pipeline)
    dot = pipeline.to_dot()
    assert dot.startswith('digraph "pipeline"')
    assert "style=dashed, label=fit" in dot
