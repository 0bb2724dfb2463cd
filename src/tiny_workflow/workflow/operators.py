"""
Operators the framework itself inserts into graphs.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Sequence, Tuple

from tiny_workflow.collection import Collection
from tiny_workflow.workflow.pipeline import Pipeline
from tiny_workflow.workflow.transformer import Transformer


class GatherTransformer(Transformer[Any, List[Any]]):
    """
    Multi-input transformer: consumes every data dependency and emits them
    as one list. Used by ``Pipeline.gather``.
    """

    def __init__(self, width: int) -> None:
        super().__init__()
        self.width = width

    @property
    def label(self) -> str:
        return f"gather[{self.width}]"

    def _apply(self, item: Any) -> List[Any]:
        return [item]

    def transform(self, inputs: Iterator[Any]) -> List[Any]:
        return list(inputs)

    def transform_bulk(self, inputs: Iterator[Collection[Any]]) -> Collection[List[Any]]:
        first, *rest = list(inputs)
        return first.zip(*rest).map(list)


class ComposedTransformer(Transformer[Any, Any]):
    """Element-wise composition of transformers, applied left to right."""

    is_elementwise = True

    def __init__(self, stages: Sequence[Transformer[Any, Any]]) -> None:
        super().__init__()
        self.stages: Tuple[Transformer[Any, Any], ...] = tuple(stages)

    @classmethod
    def of(cls, *transformers: Transformer[Any, Any]) -> "ComposedTransformer":
        stages: List[Transformer[Any, Any]] = []
        for transformer in transformers:
            if isinstance(transformer, ComposedTransformer):
                stages.extend(transformer.stages)
            else:
                stages.append(transformer)
        return cls(stages)

    @property
    def label(self) -> str:
        return " >> ".join(stage.label for stage in self.stages)

    def _apply(self, item: Any) -> Any:
        for stage in self.stages:
            item = stage.apply(item)
        return item


class PipelineTransformer(Transformer[Any, Any]):
    """A whole pipeline used as one opaque operator node."""

    def __init__(self, pipeline: Pipeline) -> None:
        super().__init__()
        self.pipeline = pipeline

    @property
    def label(self) -> str:
        return f"pipeline[{len(self.pipeline.graph)}]"

    def _apply(self, item: Any) -> Any:
        return self.pipeline.apply(item)

    def _apply_bulk(self, data: Collection[Any]) -> Collection[Any]:
        return self.pipeline.apply_bulk(data)
