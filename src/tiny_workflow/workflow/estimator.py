from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

from tiny_workflow.collection import Collection, as_collection
from tiny_workflow.errors import FitFailure
from tiny_workflow.graph.ir import (
    SOURCE,
    DelegatingNode,
    EstimatorNode,
    Graph,
    SourceNode,
)
from tiny_workflow.workflow.pipeline import Pipeline
from tiny_workflow.workflow.transformer import Transformer

A = TypeVar("A")
B = TypeVar("B")
L = TypeVar("L")


def _checked_fit(label: str, fit: Callable[[], Any]) -> Transformer:
    try:
        fitted = fit()
    except FitFailure:
        raise
    except Exception as exc:
        raise FitFailure(f"Estimator `{label}` failed to fit: {exc}", node=label) from exc

    if isinstance(fitted, Transformer):
        return fitted
    if isinstance(fitted, Pipeline) and fitted.is_fitted:
        return fitted.as_transformer()
    raise FitFailure(
        f"Estimator `{label}` returned {type(fitted).__name__}, not a Transformer.",
        node=label,
    )


class Estimator(ABC, Generic[A, B]):
    """
    An Estimator fits on a bulk dataset and produces a Transformer.

    Fitting is eager: ``_fit`` may materialize the whole collection.
    Subclasses implement ``_fit``; ``fit`` wraps any error as FitFailure.
    """

    @property
    def label(self) -> str:
        return type(self).__name__

    @abstractmethod
    def _fit(self, data: Collection[A]) -> Transformer[A, B]:
        ...

    def fit(self, data: Any) -> Transformer[A, B]:
        collection = as_collection(data)
        return _checked_fit(self.label, lambda: self._fit(collection))

    def fit_dependencies(self, inputs: Iterator[Collection[Any]]) -> Transformer[A, B]:
        return self.fit(next(inputs))

    def with_data(self, data: Any) -> Pipeline:
        """
        Pipeline that applies the Transformer this Estimator fits on ``data``.
        Fitting happens when the pipeline is fit or first applied.
        """
        graph = Graph(
            nodes=(SourceNode(as_collection(data)), EstimatorNode(self), DelegatingNode(self.label)),
            data_deps=((), (0,), (SOURCE,)),
            fit_deps=(None, None, 1),
            sink=2,
        )
        return Pipeline(graph)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LabelEstimator(ABC, Generic[A, B, L]):
    """
    An Estimator whose fit also consumes labels, position-aligned with the data.
    """

    @property
    def label(self) -> str:
        return type(self).__name__

    @abstractmethod
    def _fit(self, data: Collection[A], labels: Collection[L]) -> Transformer[A, B]:
        ...

    def fit(self, data: Any, labels: Any) -> Transformer[A, B]:
        data_collection = as_collection(data)
        label_collection = as_collection(labels)
        return _checked_fit(self.label, lambda: self._fit(data_collection, label_collection))

    def fit_dependencies(self, inputs: Iterator[Collection[Any]]) -> Transformer[A, B]:
        data = next(inputs)
        labels = next(inputs)
        return self.fit(data, labels)

    def with_data(self, data: Any, labels: Any) -> Pipeline:
        graph = Graph(
            nodes=(
                SourceNode(as_collection(data), name="data"),
                SourceNode(as_collection(labels), name="labels"),
                EstimatorNode(self),
                DelegatingNode(self.label),
            ),
            data_deps=((), (), (0, 1), (SOURCE,)),
            fit_deps=(None, None, None, 2),
            sink=3,
        )
        return Pipeline(graph)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FunctionEstimator(Estimator[A, B]):
    def __init__(self, fit_fn: Callable[[Collection[A]], Transformer[A, B]], name: Optional[str] = None) -> None:
        self.fit_fn = fit_fn
        self.name = name or getattr(fit_fn, "__name__", "estimator")

    @property
    def label(self) -> str:
        return self.name

    def _fit(self, data: Collection[A]) -> Transformer[A, B]:
        return self.fit_fn(data)


class FunctionLabelEstimator(LabelEstimator[A, B, L]):
    def __init__(
        self,
        fit_fn: Callable[[Collection[A], Collection[L]], Transformer[A, B]],
        name: Optional[str] = None,
    ) -> None:
        self.fit_fn = fit_fn
        self.name = name or getattr(fit_fn, "__name__", "label_estimator")

    @property
    def label(self) -> str:
        return self.name

    def _fit(self, data: Collection[A], labels: Collection[L]) -> Transformer[A, B]:
        return self.fit_fn(data, labels)
