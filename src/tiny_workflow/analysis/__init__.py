"""
Graph analysis utilities.

Key responsibilities:
- Track which node outputs are live during a walk.
- Tell the executor when an intermediate output can be released.
"""

from .frontier import last_uses, release_schedule

__all__ = [
    "last_uses",
    "release_schedule",
]
