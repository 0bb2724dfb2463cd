"""
Graph intermediate representation (IR) and utilities.

This package defines the index-based DAG shared by pipelines, the executor
and the optimizer:

- `Graph` and the `Node` variants (see `ir.py`)
- Topological ordering (see `topo.py`)
- DOT rendering (see `visualize.py`)
"""

from .ir import (
    SOURCE,
    DelegatingNode,
    EstimatorNode,
    Graph,
    Node,
    SourceNode,
    TransformerNode,
)
from . import topo
from . import visualize

__all__ = [
    "SOURCE",
    "Graph",
    "Node",
    "SourceNode",
    "TransformerNode",
    "EstimatorNode",
    "DelegatingNode",
    "topo",
    "visualize",
]
