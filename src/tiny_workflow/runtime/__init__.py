"""
Runtime support for executing pipeline graphs.

This layer is responsible for:
- Walking a graph in dependency order on a single item or a Collection.
- Fitting estimators and wiring their results into the graph.
- Releasing intermediate outputs and recording per-node timings.
"""

from .executor import GraphExecutor
from .storage import ResultStore
from .profiling import Profiler, ProfileStats

__all__ = [
    "GraphExecutor",
    "ResultStore",
    "Profiler",
    "ProfileStats",
]
