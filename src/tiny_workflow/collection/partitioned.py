"""
Partitioned in-process collection whose partitions are mapped concurrently.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from itertools import chain
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from tiny_workflow.collection.base import (
    Collection,
    T,
    U,
    check_equal_counts,
    check_partition_output,
)


def split_into_partitions(items: Sequence[T], num_partitions: int) -> List[List[T]]:
    """
    Split ``items`` into at most ``num_partitions`` contiguous, near-equal chunks.
    """
    if num_partitions <= 0:
        raise ValueError("num_partitions must be positive.")
    n = len(items)
    if n == 0:
        return [[]]
    num_partitions = min(num_partitions, n)
    base, extra = divmod(n, num_partitions)
    partitions: List[List[T]] = []
    start = 0
    for idx in range(num_partitions):
        end = start + base + (1 if idx < extra else 0)
        partitions.append(list(items[start:end]))
        start = end
    return partitions


class PartitionedCollection(Collection[T]):
    """
    Collection split into contiguous partitions. ``map`` and ``map_partitions``
    run one task per partition on a thread pool; element order is preserved.
    """

    def __init__(
        self,
        partitions: Iterable[Iterable[T]],
        *,
        max_workers: Optional[int] = None,
    ) -> None:
        self._partitions: Tuple[Tuple[T, ...], ...] = tuple(tuple(p) for p in partitions)
        if not self._partitions:
            self._partitions = ((),)
        self.max_workers = max_workers

    @classmethod
    def from_items(
        cls,
        items: Iterable[T],
        num_partitions: int,
        *,
        max_workers: Optional[int] = None,
    ) -> "PartitionedCollection[T]":
        return cls(split_into_partitions(list(items), num_partitions), max_workers=max_workers)

    @property
    def num_partitions(self) -> int:
        return len(self._partitions)

    def partitions(self) -> List[List[T]]:
        return [list(p) for p in self._partitions]

    def _run(self, task: Callable[[List[T]], List[U]]) -> "PartitionedCollection[U]":
        parts = self.partitions()
        if len(parts) == 1:
            return PartitionedCollection([task(parts[0])], max_workers=self.max_workers)
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            results = list(pool.map(task, parts))
        return PartitionedCollection(results, max_workers=self.max_workers)

    def map(self, fn: Callable[[T], U]) -> "PartitionedCollection[U]":
        return self._run(lambda part: [fn(item) for item in part])

    def map_partitions(
        self, fn: Callable[[List[T]], Sequence[U]]
    ) -> "PartitionedCollection[U]":
        return self._run(lambda part: check_partition_output(part, fn(part)))

    def collect(self) -> List[T]:
        return list(chain.from_iterable(self._partitions))

    def zip(self, *others: Collection[Any]) -> "PartitionedCollection[Tuple[Any, ...]]":
        columns = [other.collect() for other in others]
        check_equal_counts([self.count()] + [len(col) for col in columns])

        zipped: List[List[Tuple[Any, ...]]] = []
        offset = 0
        for part in self._partitions:
            end = offset + len(part)
            slices = [col[offset:end] for col in columns]
            zipped.append(list(zip(part, *slices)))
            offset = end
        return PartitionedCollection(zipped, max_workers=self.max_workers)

    def count(self) -> int:
        return sum(len(p) for p in self._partitions)

    def __repr__(self) -> str:
        return (
            f"PartitionedCollection(count={self.count()}, "
            f"partitions={self.num_partitions})"
        )
