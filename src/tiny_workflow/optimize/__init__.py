"""
Optimizers for bulk execution.

An optimizer turns a fitted graph into an observationally equivalent one:
- `Rule`s are single rewrite steps.
- `Batch`es group rules and iterate them to a fixed point.
- `RuleExecutor` runs batches in order; `DefaultOptimizer` is the stock set.
- `safe_optimize` is the fail-open entry point used by the executor.
"""

from .base import Batch, Optimizer, Rule, RuleExecutor
from .rules import (
    DefaultOptimizer,
    EquivalentNodeMergeRule,
    FitPreparation,
    TransformerFusionRule,
    UnusedBranchRemovalRule,
)
from .validate import safe_optimize, validate_rewrite

__all__ = [
    "Optimizer",
    "Rule",
    "Batch",
    "RuleExecutor",
    "DefaultOptimizer",
    "FitPreparation",
    "EquivalentNodeMergeRule",
    "TransformerFusionRule",
    "UnusedBranchRemovalRule",
    "safe_optimize",
    "validate_rewrite",
]
