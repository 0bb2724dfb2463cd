from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterator, List, Sequence, Tuple, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class Collection(ABC, Generic[T]):
    """
    Bulk dataset consumed and produced by bulk pipeline execution.

    The core relies on two primitives only: an order and count preserving
    ``map`` and a materializing ``collect``. ``map_partitions`` and ``zip``
    let bulk-native operators and multi-input nodes work per partition.
    """

    @abstractmethod
    def map(self, fn: Callable[[T], U]) -> "Collection[U]":
        """Apply ``fn`` to every element, preserving order and count."""

    @abstractmethod
    def map_partitions(self, fn: Callable[[List[T]], Sequence[U]]) -> "Collection[U]":
        """
        Apply ``fn`` to each partition as a list. ``fn`` must return exactly
        one output per input element, in order.
        """

    @abstractmethod
    def collect(self) -> List[T]:
        """Materialize every element in order."""

    @abstractmethod
    def zip(self, *others: "Collection[Any]") -> "Collection[Tuple[Any, ...]]":
        """Pair up elements position-wise. All collections must have equal counts."""

    def count(self) -> int:
        return len(self.collect())

    def __iter__(self) -> Iterator[T]:
        return iter(self.collect())

    def __len__(self) -> int:
        return self.count()


def check_partition_output(inputs: Sequence[Any], outputs: Sequence[Any]) -> List[Any]:
    outputs = list(outputs)
    if len(outputs) != len(inputs):
        raise ValueError(
            "Partition function must return one output per input element: "
            f"got {len(outputs)} outputs for {len(inputs)} inputs."
        )
    return outputs


def check_equal_counts(counts: Sequence[int]) -> None:
    if len(set(counts)) > 1:
        raise ValueError(f"Cannot zip collections of different sizes: {list(counts)}")
