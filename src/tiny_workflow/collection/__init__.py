"""
Bulk collection engines.

The pipeline core only needs the :class:`Collection` interface. Two
in-process engines ship with the package:

- `LocalCollection`: a single in-memory partition.
- `PartitionedCollection`: contiguous partitions mapped on a thread pool.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from tiny_workflow.utils.config import config

from .base import Collection
from .local import LocalCollection
from .partitioned import PartitionedCollection, split_into_partitions


def parallelize(items: Iterable[Any], num_partitions: Optional[int] = None) -> Collection[Any]:
    """
    Build a collection from ``items``. Uses ``config.default_partitions`` when
    ``num_partitions`` is not given; one partition yields a `LocalCollection`.
    """
    n = num_partitions if num_partitions is not None else config.default_partitions
    if n <= 1:
        return LocalCollection(items)
    return PartitionedCollection.from_items(items, n, max_workers=config.max_workers)


def as_collection(data: Any) -> Collection[Any]:
    """Return ``data`` unchanged if it is a Collection, otherwise parallelize it."""
    if isinstance(data, Collection):
        return data
    return parallelize(data)


__all__ = [
    "Collection",
    "LocalCollection",
    "PartitionedCollection",
    "split_into_partitions",
    "parallelize",
    "as_collection",
]
