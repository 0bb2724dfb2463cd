"""
User-facing pipeline construction API.

- `Transformer`: item function appliable per item and in bulk.
- `Estimator` / `LabelEstimator`: fit on bulk data to produce a Transformer.
- `Pipeline`: DAG of the above, composed with ``and_then`` / ``>>`` / ``gather``.
"""

from .pipeline import Pipeline, chain
from .transformer import BatchTransformer, FunctionTransformer, Identity, Transformer
from .estimator import Estimator, FunctionEstimator, FunctionLabelEstimator, LabelEstimator
from .operators import ComposedTransformer, GatherTransformer, PipelineTransformer

__all__ = [
    "Pipeline",
    "chain",
    "Transformer",
    "FunctionTransformer",
    "BatchTransformer",
    "Identity",
    "Estimator",
    "LabelEstimator",
    "FunctionEstimator",
    "FunctionLabelEstimator",
    "ComposedTransformer",
    "GatherTransformer",
    "PipelineTransformer",
]
