from __future__ import annotations

from typing import Any, Callable, Iterable, List, Sequence, Tuple

from tiny_workflow.collection.base import (
    Collection,
    T,
    U,
    check_equal_counts,
    check_partition_output,
)


class LocalCollection(Collection[T]):
    """In-memory collection backed by a tuple; a single partition."""

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: Tuple[T, ...] = tuple(items)

    def map(self, fn: Callable[[T], U]) -> "LocalCollection[U]":
        return LocalCollection(fn(item) for item in self._items)

    def map_partitions(self, fn: Callable[[List[T]], Sequence[U]]) -> "LocalCollection[U]":
        items = list(self._items)
        return LocalCollection(check_partition_output(items, fn(items)))

    def collect(self) -> List[T]:
        return list(self._items)

    def zip(self, *others: Collection[Any]) -> "LocalCollection[Tuple[Any, ...]]":
        columns = [list(self._items)] + [other.collect() for other in others]
        check_equal_counts([len(col) for col in columns])
        return LocalCollection(zip(*columns))

    def count(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"LocalCollection(count={len(self._items)})"
