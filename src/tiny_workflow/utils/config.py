"""
Global configuration flags.
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from typing import Iterator, Optional


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


@dataclass
class WorkflowConfig:
    # log per-node wall time at debug level; the Profiler always records it
    debug: bool = field(default_factory=lambda: _env_flag("TINY_WORKFLOW_DEBUG", False))
    # run the default optimizer before bulk execution when no optimizer is given
    optimize_bulk: bool = field(
        default_factory=lambda: _env_flag("TINY_WORKFLOW_OPTIMIZE", True)
    )
    release_intermediates: bool = True
    default_partitions: int = field(
        default_factory=lambda: _env_int("TINY_WORKFLOW_PARTITIONS", 1) or 1
    )
    max_workers: Optional[int] = field(
        default_factory=lambda: _env_int("TINY_WORKFLOW_MAX_WORKERS", None)
    )


config = WorkflowConfig()


@contextmanager
def override(**changes) -> Iterator[WorkflowConfig]:
    """
    Temporarily change fields of the global ``config``.

    Example::

        with override(optimize_bulk=False):
            pipeline.apply_bulk(data)
    """
    known = {f.name for f in fields(config)}
    unknown = set(changes) - known
    if unknown:
        raise AttributeError(f"Unknown config fields: {sorted(unknown)}")

    previous = {name: getattr(config, name) for name in changes}
    for name, value in changes.items():
        setattr(config, name, value)
    try:
        yield config
    finally:
        for name, value in previous.items():
            setattr(config, name, value)
