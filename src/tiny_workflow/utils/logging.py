"""
Package logger. The library attaches no handlers of its own.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("tiny_workflow")
logger.addHandler(logging.NullHandler())

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO, fmt: str = DEFAULT_FORMAT) -> None:
    """Attach a stream handler to the package logger (scripts and benchmarks)."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(level)
