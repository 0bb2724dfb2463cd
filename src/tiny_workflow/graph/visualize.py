"""
Render a Graph as Graphviz DOT text.
"""

from __future__ import annotations

from typing import List

from .ir import SOURCE, Graph

_SHAPES = {
    "source": "cylinder",
    "transformer": "box",
    "estimator": "component",
    "delegating": "box",
}


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_dot(graph: Graph, *, name: str = "pipeline") -> str:
    """
    Data edges are solid, fit edges dashed. The external input is drawn as
    an ellipse and the sink with a double border.
    """
    lines: List[str] = [f"digraph {_quote(name)} {{", "  rankdir=LR;"]

    if any(SOURCE in deps for deps in graph.data_deps):
        lines.append('  source [label="SOURCE", shape=ellipse];')

    for idx, node in enumerate(graph.nodes):
        attrs = [
            f"label={_quote(f'{idx}: {node.name}')}",
            f"shape={_SHAPES.get(node.kind, 'box')}",
        ]
        if node.kind == "delegating":
            attrs.append("style=dashed")
        if idx == graph.sink:
            attrs.append("peripheries=2")
        lines.append(f"  n{idx} [{', '.join(attrs)}];")

    for idx, deps in enumerate(graph.data_deps):
        for pos, dep in enumerate(deps):
            origin = "source" if dep == SOURCE else f"n{dep}"
            label = f" [label={pos}]" if len(deps) > 1 else ""
            lines.append(f"  {origin} -> n{idx}{label};")

    for idx, fit in enumerate(graph.fit_deps):
        if fit is not None:
            lines.append(f"  n{fit} -> n{idx} [style=dashed, label=fit];")

    lines.append("}")
    return "\n".join(lines)
