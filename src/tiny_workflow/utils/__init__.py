"""
Miscellaneous utilities shared across tiny-workflow.
"""

from .logging import configure_logging, logger
from .config import config, override

__all__ = ["logger", "configure_logging", "config", "override"]
