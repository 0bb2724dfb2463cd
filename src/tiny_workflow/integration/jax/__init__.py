"""
JAX integration helpers.
"""

from .transformer import JaxTransformer

__all__ = ["JaxTransformer"]
