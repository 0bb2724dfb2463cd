from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple

from tiny_workflow.graph.ir import Graph

logger = logging.getLogger(__name__)


class Optimizer(ABC):
    """
    Pure rewrite of a fitted graph into an observationally equivalent one.

    Implementations keep no state between calls.
    """

    @abstractmethod
    def optimize(self, graph: Graph) -> Graph:
        ...

    def __call__(self, graph: Graph) -> Graph:
        return self.optimize(graph)


class Rule(ABC):
    """A single rewrite step. Returns the input graph when nothing applies."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def apply(self, graph: Graph) -> Graph:
        ...


@dataclass(frozen=True)
class Batch:
    """Rules applied together, repeatedly, until the graph stops changing."""

    name: str
    rules: Tuple[Rule, ...]
    max_iterations: int = 10

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive.")


class RuleExecutor(Optimizer):
    """Runs batches in order; each batch iterates to a fixed point or its cap."""

    def __init__(self, batches: Sequence[Batch]) -> None:
        self.batches: Tuple[Batch, ...] = tuple(batches)

    def optimize(self, graph: Graph) -> Graph:
        for batch in self.batches:
            for _ in range(batch.max_iterations):
                before = graph
                for rule in batch.rules:
                    graph = rule.apply(graph)
                if graph == before:
                    break
            else:
                logger.debug(
                    "Batch `%s` hit its iteration cap (%d)", batch.name, batch.max_iterations
                )
            logger.debug("Batch `%s` done: %d nodes", batch.name, len(graph))
        return graph
