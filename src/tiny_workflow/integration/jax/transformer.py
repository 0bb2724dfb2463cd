"""
Transformer backed by a JAX item function.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional

import numpy as np

from tiny_workflow.collection import Collection
from tiny_workflow.workflow.transformer import Transformer

try:
    import jax
    import jax.numpy as jnp
except ModuleNotFoundError:  # pragma: no cover - handled in tests
    jax = None  # type: ignore
    jnp = None  # type: ignore


class JaxTransformer(Transformer[Any, Any]):
    """
    Apply ``fn`` to single items with ``jax.jit(fn)`` and to partitions with
    ``jax.jit(jax.vmap(fn))``, so a bulk apply is one vectorized call per
    partition.
    """

    def __init__(self, fn: Callable[..., Any], name: Optional[str] = None) -> None:
        if jax is None:  # pragma: no cover
            raise ModuleNotFoundError("JAX is required for JaxTransformer.")
        super().__init__()
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "jax_fn")
        self._single = jax.jit(fn)
        self._batched = jax.jit(jax.vmap(fn))

    @property
    def label(self) -> str:
        return self.name

    def _apply(self, item: Any) -> Any:
        return np.asarray(self._single(jnp.asarray(item)))

    def _apply_bulk(self, data: Collection[Any]) -> Collection[Any]:
        return data.map_partitions(self._apply_partition)

    def _apply_partition(self, items: List[Any]) -> List[Any]:
        if not items:
            return []
        batch = jnp.stack([jnp.asarray(item) for item in items])
        return list(np.asarray(self._batched(batch)))
