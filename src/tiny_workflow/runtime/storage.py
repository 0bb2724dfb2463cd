"""
Per-run store of node outputs, keyed by node index.
"""

from __future__ import annotations

from typing import Any, Dict


class ResultStore:
    def __init__(self) -> None:
        self._store: Dict[int, Any] = {}

    def save(self, idx: int, value: Any) -> None:
        self._store[idx] = value

    def load(self, idx: int) -> Any:
        return self._store[idx]

    def delete(self, idx: int) -> None:
        self._store.pop(idx, None)

    def has(self, idx: int) -> bool:
        return idx in self._store

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
