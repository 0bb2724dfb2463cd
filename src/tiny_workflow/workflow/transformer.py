from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

import numpy as np

from tiny_workflow.collection import Collection, as_collection
from tiny_workflow.graph.ir import Graph, TransformerNode
from tiny_workflow.optimize.base import Optimizer
from tiny_workflow.workflow.pipeline import Pipeline

A = TypeVar("A")
B = TypeVar("B")


class Transformer(Pipeline, ABC, Generic[A, B]):
    """
    A function that may be applied both to single items and to Collections
    of items. Transformers chain together, along with Estimators and
    LabelEstimators, to produce larger pipelines.

    A Transformer is itself a one-node pipeline: its graph is a single
    TransformerNode reading ``SOURCE``, with no fit dependency.

    Subclasses implement ``_apply``. They may override ``_apply_bulk`` (or the
    public ``apply_bulk``) with a bulk-native implementation, provided every
    output equals the element-wise result. Graph execution goes through the
    public methods, so either override is honored.
    """

    def __init__(self) -> None:
        pass

    @property
    def label(self) -> str:
        return type(self).__name__

    @property
    def graph(self) -> Graph:
        return Graph.single(TransformerNode(self))

    @property
    def is_fitted(self) -> bool:
        return True

    @property
    def is_elementwise(self) -> bool:
        """True when the bulk path is the default per-item map."""
        cls = type(self)
        return (
            cls._apply_bulk is Transformer._apply_bulk
            and cls.apply_bulk is Transformer.apply_bulk
            and cls.transform is Transformer.transform
            and cls.transform_bulk is Transformer.transform_bulk
        )

    def fit(self) -> "Transformer[A, B]":
        return self

    @abstractmethod
    def _apply(self, item: A) -> B:
        ...

    def _apply_bulk(self, data: Collection[A]) -> Collection[B]:
        return data.map(self.apply)

    def apply(self, item: A, optimizer: Optional[Optimizer] = None) -> B:
        """
        Apply this Transformer to a single input item.

        The optimizer hint is ignored by default.
        """
        return self._apply(item)

    def apply_bulk(self, data: Any, optimizer: Optional[Optimizer] = None) -> Collection[B]:
        """
        Apply this Transformer to every item of a Collection, preserving
        order and count. The optimizer hint is ignored by default.
        """
        return self._apply_bulk(as_collection(data))

    def transform(self, inputs: Iterator[Any]) -> B:
        return self.apply(next(inputs))

    def transform_bulk(self, inputs: Iterator[Collection[Any]]) -> Collection[B]:
        return self.apply_bulk(next(inputs))

    @staticmethod
    def from_function(fn: Callable[[A], B], name: Optional[str] = None) -> "FunctionTransformer[A, B]":
        """
        Build a Transformer that applies ``fn`` to every item.

        Example::

            double = Transformer.from_function(lambda x: x * 2)
            double.apply(10)                     # 20
            double.apply_bulk([1, 2, 3]).collect()  # [2, 4, 6]
        """
        return FunctionTransformer(fn, name=name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FunctionTransformer(Transformer[A, B]):
    """Transformer backed by a plain function; the bulk path maps it directly."""

    is_elementwise = True

    def __init__(self, fn: Callable[[A], B], name: Optional[str] = None) -> None:
        super().__init__()
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "function")

    @property
    def label(self) -> str:
        return self.name

    def _apply(self, item: A) -> B:
        return self.fn(item)

    def _apply_bulk(self, data: Collection[A]) -> Collection[B]:
        return data.map(self.fn)

    def __repr__(self) -> str:
        return f"FunctionTransformer({self.name})"


class Identity(Transformer[A, A]):
    def _apply(self, item: A) -> A:
        return item

    def _apply_bulk(self, data: Collection[A]) -> Collection[A]:
        return data


class BatchTransformer(Transformer[Any, Any]):
    """
    Bulk-native transformer over numpy batches.

    Subclasses implement ``apply_batch`` on a stacked array whose first axis
    indexes items. The bulk path runs one batch per partition; a single item
    is a batch of one.
    """

    @abstractmethod
    def apply_batch(self, batch: np.ndarray) -> Any:
        ...

    def _apply(self, item: Any) -> Any:
        return self._apply_partition([item])[0]

    def _apply_bulk(self, data: Collection[Any]) -> Collection[Any]:
        return data.map_partitions(self._apply_partition)

    def _apply_partition(self, items: List[Any]) -> List[Any]:
        if not items:
            return []
        batch = np.stack([np.asarray(item) for item in items])
        return list(self.apply_batch(batch))
