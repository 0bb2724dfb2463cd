"""
Lightweight profiling hooks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class ProfileStats:
    node_evaluations: int = 0
    fits: int = 0
    events: Dict[str, float] = field(default_factory=dict)


class Profiler:
    def __init__(self) -> None:
        self.stats = ProfileStats()

    def record_evaluation(self, name: str, duration_ms: float) -> None:
        self.stats.node_evaluations += 1
        self.record_event(name, duration_ms)

    def record_fit(self, name: str, duration_ms: float) -> None:
        self.stats.fits += 1
        self.record_event(f"fit:{name}", duration_ms)

    def record_event(self, name: str, duration_ms: float) -> None:
        self.stats.events[name] = self.stats.events.get(name, 0.0) + duration_ms

    def snapshot(self) -> ProfileStats:
        return self.stats
