"""
Exception hierarchy for graph construction, fitting and optimization.
"""

from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base class for all tiny-workflow errors."""


class MalformedGraph(WorkflowError, ValueError):
    """
    Raised when a dependency graph is structurally invalid: cyclic, with
    out-of-bounds references, or with an invalid sink.

    Always raised at construction time, before any data is processed.
    """


class FitFailure(WorkflowError, RuntimeError):
    """
    Raised when an estimator cannot produce a usable transformer.

    Args:
        message: Human readable description.
        node: Label of the estimator that failed, when known.
    """

    def __init__(self, message: str, *, node: Optional[str] = None) -> None:
        super().__init__(message)
        self.node = node


class OptimizerFailure(WorkflowError, RuntimeError):
    """
    Raised by an optimizer pass that cannot handle a graph.

    Never surfaced to pipeline callers: bulk execution falls back to the
    unoptimized graph.
    """
