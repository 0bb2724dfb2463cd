"""
PyTorch integration for tiny-workflow.

Exports:
- `ModuleTransformer`: BatchTransformer running an nn.Module per partition.
"""

from .module import ModuleTransformer

__all__ = ["ModuleTransformer"]
