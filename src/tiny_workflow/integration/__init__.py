"""
Framework integration entry points.

Subpackages:
- `torch`: `ModuleTransformer`, running an ``nn.Module`` over item batches.
- `jax`: `JaxTransformer`, a jit-compiled vmapped item function.

Each subpackage needs its framework installed; import it explicitly.
"""
