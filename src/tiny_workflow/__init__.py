"""
tiny-workflow

Composable, optimizable data-processing pipelines: transformers and
estimators wired into DAGs that apply to single items or whole collections.
"""

from .graph.ir import SOURCE, Graph
from .collection import Collection, LocalCollection, PartitionedCollection, parallelize
from .errors import FitFailure, MalformedGraph, OptimizerFailure, WorkflowError
from .optimize import DefaultOptimizer, Optimizer
from .workflow import (
    Estimator,
    FunctionTransformer,
    LabelEstimator,
    Pipeline,
    Transformer,
    chain,
)

__all__ = [
    "SOURCE",
    "Graph",
    "Collection",
    "LocalCollection",
    "PartitionedCollection",
    "parallelize",
    "WorkflowError",
    "MalformedGraph",
    "FitFailure",
    "OptimizerFailure",
    "Optimizer",
    "DefaultOptimizer",
    "Pipeline",
    "Transformer",
    "FunctionTransformer",
    "Estimator",
    "LabelEstimator",
    "chain",
]
