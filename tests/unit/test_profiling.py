from __future__ import annotations

import pytest

from tiny_workflow.runtime.profiling import Profiler


def test_profiler_records_stats() -> None:
    profiler = Profiler()

    profiler.record_evaluation("scale", 1.5)
    profiler.record_evaluation("scale", 0.5)
    profiler.record_fit("mean", 2.0)
    profiler.record_event("custom", 0.25)

    stats = profiler.snapshot()
    assert stats.node_evaluations == 2
    assert stats.fits == 1
    assert stats.events["scale"] == pytest.approx(2.0)
    assert stats.events["fit:mean"] == pytest.approx(2.0)
    assert stats.events["custom"] == pytest.approx(0.25)
