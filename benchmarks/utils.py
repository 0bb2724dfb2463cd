from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from statistics import mean
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional, Sequence

try:  # optional CPU memory tracking
    import psutil  # type: ignore

    _PSUTIL_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    psutil = None  # type: ignore
    _PSUTIL_AVAILABLE = False


@dataclass
class BenchmarkResult:
    """
    Structured summary for a single benchmark trial.
    """

    benchmark: str
    mode: str
    trial: int
    wall_time_s: float
    num_nodes: int
    num_items: int
    peak_cpu_bytes: Optional[int] = None
    extra_metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)

    @property
    def items_per_s(self) -> float:
        if self.wall_time_s <= 0:
            return float("inf")
        return self.num_items / self.wall_time_s


def run_single_trial(
    benchmark_name: str,
    mode: str,
    trial: int,
    *,
    run_fn: Callable[[], Any],
    num_nodes: int,
    num_items: int,
    extra_metrics: Optional[Dict[str, float]] = None,
) -> BenchmarkResult:
    """
    Execute ``run_fn`` once and record wall time and resident memory.

    Args:
        benchmark_name: Label for the benchmark family (e.g. "chain").
        mode: Execution mode ("plain", "optimized", etc.).
        trial: Integer trial index.
        run_fn: Callable performing the work; its result is discarded.
        num_nodes: Size of the graph that was executed.
        num_items: Number of items pushed through the graph.
        extra_metrics: Optional dictionary of custom metrics to attach.
    """
    proc = psutil.Process() if _PSUTIL_AVAILABLE else None
    rss_before = proc.memory_info().rss if proc else None

    start = perf_counter()
    run_fn()
    wall = perf_counter() - start

    peak_cpu = None
    if proc and rss_before is not None:
        peak_cpu = max(rss_before, proc.memory_info().rss)

    return BenchmarkResult(
        benchmark=benchmark_name,
        mode=mode,
        trial=trial,
        wall_time_s=wall,
        num_nodes=num_nodes,
        num_items=num_items,
        peak_cpu_bytes=int(peak_cpu) if peak_cpu is not None else None,
        extra_metrics=extra_metrics or {},
    )


def summarize(results: Sequence[BenchmarkResult]) -> List[dict]:
    """
    Aggregate benchmark results by mode and return summaries suitable for printing.
    """
    summaries: List[dict] = []
    by_mode: Dict[str, List[BenchmarkResult]] = {}
    for res in results:
        by_mode.setdefault(res.mode, []).append(res)

    for mode, group in sorted(by_mode.items(), key=lambda kv: kv[0]):
        cpu = [r.peak_cpu_bytes for r in group if r.peak_cpu_bytes is not None]
        summaries.append(
            {
                "mode": mode,
                "trials": len(group),
                "nodes_mean": mean(r.num_nodes for r in group),
                "wall_time_mean_s": mean(r.wall_time_s for r in group),
                "items_per_s_mean": mean(r.items_per_s for r in group),
                "peak_cpu_mean_mb": mean(cpu) / 1e6 if cpu else None,
            }
        )
    return summaries


def export_json(results: Sequence[BenchmarkResult], destination: Path) -> None:
    """
    Write raw benchmark results to JSON for later analysis.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = [res.to_dict() for res in results]
    destination.write_text(json.dumps(payload, indent=2))


def _format_value(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:.4f}"


def _format_cell(value: object) -> str:
    if isinstance(value, (float, type(None))):
        return _format_value(value)
    return str(value)


def format_summary_table(summary: Sequence[dict]) -> str:
    """
    Format aggregated summaries into a readable table.
    """
    if not summary:
        return "No results recorded."

    headers = list(summary[0].keys())
    widths = {
        h: max([len(h)] + [len(_format_cell(row[h])) for row in summary]) for h in headers
    }

    lines = [
        " | ".join(h.ljust(widths[h]) for h in headers),
        "-+-".join("-" * widths[h] for h in headers),
    ]
    for row in summary:
        lines.append(" | ".join(_format_cell(row[h]).ljust(widths[h]) for h in headers))
    return "\n".join(lines)
