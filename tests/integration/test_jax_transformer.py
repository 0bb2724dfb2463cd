from __future__ import annotations

import numpy as np
import pytest

pytest.importorskip("jax")
import jax.numpy as jnp  # type: ignore

from tiny_workflow.collection import parallelize
from tiny_workflow.integration.jax import JaxTransformer
from tiny_workflow.workflow import Transformer


def softmax_row(x):
    shifted = x - jnp.max(x)
    weights = jnp.exp(shifted)
    return weights / jnp.sum(weights)


def test_jax_transformer_bulk_matches_single() -> None:
    rows = [np.arange(4, dtype=np.float32) * scale for scale in (0.5, 1.0, 2.0, 3.0, 4.0)]
    transformer = JaxTransformer(softmax_row)
    bulk = transformer.apply_bulk(parallelize(rows, num_partitions=2)).collect()

    assert transformer.label == "softmax_row"
    assert len(bulk) == len(rows)
    for row, out in zip(rows, bulk):
        np.testing.assert_allclose(out, transformer.apply(row), rtol=1e-5, atol=1e-6)
        assert float(np.sum(out)) == pytest.approx(1.0, rel=1e-5)


def test_jax_transformer_in_pipeline() -> None:
    pipeline = Transformer.from_function(np.asarray) >> JaxTransformer(softmax_row)
    out = pipeline.apply_bulk([[0.0, 0.0], [1.0, 1.0]]).collect()
    np.testing.assert_allclose(np.stack(out), np.full((2, 2), 0.5), rtol=1e-6)
