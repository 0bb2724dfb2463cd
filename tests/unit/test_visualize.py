from __future__ import annotations

from tiny_workflow.graph.visualize import to_dot
from tiny_workflow.workflow import Pipeline, Transformer


def test_to_dot_renders_nodes_and_edges() -> None:
    pipeline = Pipeline.gather(
        [Transformer.from_function(abs, name="abs"), Transformer.from_function(str, name='say "hi"')]
    )
    dot = to_dot(pipeline.graph, name="demo")

    assert dot.startswith('digraph "demo" {')
    assert dot.endswith("}")
    assert 'source [label="SOURCE", shape=ellipse];' in dot
    assert '"1: say \\"hi\\""' in dot
    assert "n2 [label=\"2: gather[2]\", shape=box, peripheries=2];" in dot
    assert "n0 -> n2 [label=0];" in dot
    assert "n1 -> n2 [label=1];" in dot


def test_to_dot_omits_source_when_unused() -> None:
    transformer = Transformer.from_function(abs)
    graph = transformer.graph.replace_node(0, transformer.graph.nodes[0], data_deps=())
    assert "source" not in to_dot(graph)
