from __future__ import annotations

import numpy as np
import pytest

pytest.importorskip("torch")
import torch
from torch import nn

from tiny_workflow.collection import parallelize
from tiny_workflow.integration.torch import ModuleTransformer
from tiny_workflow.workflow import FunctionEstimator, Transformer


def test_module_transformer_bulk_matches_single() -> None:
    module = nn.Sequential(nn.Linear(4, 3), nn.ReLU(), nn.Linear(3, 2))
    transformer = ModuleTransformer(module)
    rows = [np.random.randn(4).astype(np.float32) for _ in range(7)]

    bulk = transformer.apply_bulk(parallelize(rows, num_partitions=3)).collect()

    assert transformer.label == "Sequential"
    assert len(bulk) == 7
    for row, out in zip(rows, bulk):
        assert out.shape == (2,)
        np.testing.assert_allclose(out, transformer.apply(row), rtol=1e-5, atol=1e-6)


def test_module_transformer_runs_without_grad() -> None:
    module = nn.Linear(2, 1)
    transformer = ModuleTransformer(module)
    out = transformer.apply(np.ones(2, dtype=np.float32))

    with torch.no_grad():
        expected = module(torch.ones(1, 2)).numpy()[0]
    np.testing.assert_allclose(out, expected, rtol=1e-6)
    assert isinstance(out, np.ndarray)


def test_estimator_producing_module_transformer() -> None:
    def fit_linear(data):
        rows = np.stack(data.collect())
        layer = nn.Linear(rows.shape[1], 1, bias=False)
        with torch.no_grad():
            layer.weight.fill_(1.0 / rows.shape[1])
        return ModuleTransformer(layer)

    features = Transformer.from_function(lambda x: np.asarray(x, dtype=np.float32))
    pipeline = features.and_then(FunctionEstimator(fit_linear), [[1.0, 3.0], [2.0, 4.0]])
    out = pipeline.apply_bulk([[2.0, 4.0], [0.0, 0.0]]).collect()

    np.testing.assert_allclose(np.concatenate(out), [3.0, 0.0], rtol=1e-6)
