from __future__ import annotations

import heapq
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from tiny_workflow.errors import MalformedGraph

# Reserved index meaning "the pipeline's external input".
SOURCE = -1

_UNCHANGED: Any = object()


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Node:
    """
    Entry in a Graph's node arena.

    Nodes never reference each other; edges live in the owning Graph as
    integer indices. Nodes are immutable and compared by identity.
    """

    kind = "node"


@dataclass(frozen=True, eq=False)
class SourceNode(Node):
    """Graph input with a bound bulk dataset (training data, labels)."""

    data: Any
    name: str = "data"

    kind = "source"


@dataclass(frozen=True, eq=False)
class TransformerNode(Node):
    """Operator node wrapping a Transformer-like object."""

    transformer: Any

    kind = "transformer"

    @property
    def name(self) -> str:
        return getattr(self.transformer, "label", type(self.transformer).__name__)

    def transform(self, inputs: Sequence[Any]) -> Any:
        return self.transformer.transform(iter(inputs))

    def transform_bulk(self, inputs: Sequence[Any]) -> Any:
        return self.transformer.transform_bulk(iter(inputs))


@dataclass(frozen=True, eq=False)
class EstimatorNode(Node):
    """Operator node whose fit step produces a Transformer."""

    estimator: Any

    kind = "estimator"

    @property
    def name(self) -> str:
        return getattr(self.estimator, "label", type(self.estimator).__name__)

    def fit(self, inputs: Sequence[Any]) -> Any:
        return self.estimator.fit_dependencies(iter(inputs))


@dataclass(frozen=True, eq=False)
class DelegatingNode(Node):
    """
    Placeholder for the transformer produced by its fit dependency.
    Replaced by a TransformerNode when the pipeline is fit.
    """

    name: str

    kind = "delegating"


@dataclass(frozen=True)
class Graph:
    """
    Immutable DAG stored as a flat node arena plus index-based edges.

    Attributes:
        nodes: node arena.
        data_deps: per node, the ordered indices (or ``SOURCE``) whose outputs
            feed it.
        fit_deps: per node, the estimator index whose fit result it needs, or
            ``None``.
        sink: index of the node whose output is the graph's result.

    Construction validates the structure and raises ``MalformedGraph`` on
    failure, so every Graph instance in existence is well formed.
    """

    nodes: Tuple[Node, ...]
    data_deps: Tuple[Tuple[int, ...], ...]
    fit_deps: Tuple[Optional[int], ...]
    sink: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        data_deps = tuple(tuple(d) if isinstance(d, (list, tuple)) else d for d in self.data_deps)
        object.__setattr__(self, "data_deps", data_deps)
        object.__setattr__(self, "fit_deps", tuple(self.fit_deps))
        self.validate()

    @classmethod
    def single(cls, node: Node, data_deps: Sequence[int] = (SOURCE,)) -> "Graph":
        return cls(nodes=(node,), data_deps=(tuple(data_deps),), fit_deps=(None,), sink=0)

    def __len__(self) -> int:
        return len(self.nodes)

    def validate(self) -> None:
        """
        Validate structural soundness:
        - dependency lists match the node arena
        - references are SOURCE or in bounds
        - fit dependencies connect delegating nodes to estimators
        - sink is in bounds
        - graph is acyclic
        """
        n = len(self.nodes)
        if n == 0:
            raise MalformedGraph("Graph must contain at least one node.")
        if len(self.data_deps) != n or len(self.fit_deps) != n:
            raise MalformedGraph(
                f"Dependency lists must have one entry per node: {n} nodes, "
                f"{len(self.data_deps)} data deps, {len(self.fit_deps)} fit deps."
            )

        for idx, (node, deps, fit) in enumerate(zip(self.nodes, self.data_deps, self.fit_deps)):
            if not isinstance(node, Node):
                raise MalformedGraph(f"Entry {idx} is not a Node: {node!r}")
            if not isinstance(deps, tuple):
                raise MalformedGraph(f"Data dependencies of node {idx} must be a sequence, got {deps!r}.")
            if isinstance(node, SourceNode) and deps:
                raise MalformedGraph(f"Source node {idx} cannot have data dependencies.")
            for dep in deps:
                if not _is_index(dep):
                    raise MalformedGraph(f"Node {idx} has a non-integer data dependency {dep!r}.")
                if dep != SOURCE and not 0 <= dep < n:
                    raise MalformedGraph(
                        f"Node {idx} (`{node.name}`) depends on out-of-bounds index {dep}."
                    )
            if fit is None:
                if isinstance(node, DelegatingNode):
                    raise MalformedGraph(f"Delegating node {idx} has no fit dependency.")
                continue
            if not _is_index(fit):
                raise MalformedGraph(f"Node {idx} has a non-integer fit dependency {fit!r}.")
            if not 0 <= fit < n:
                raise MalformedGraph(
                    f"Node {idx} (`{node.name}`) has out-of-bounds fit dependency {fit}."
                )
            if not isinstance(node, DelegatingNode):
                raise MalformedGraph(
                    f"Only delegating nodes take fit dependencies; node {idx} is {node.kind}."
                )
            if not isinstance(self.nodes[fit], EstimatorNode):
                raise MalformedGraph(
                    f"Fit dependency of node {idx} must be an estimator, got {self.nodes[fit].kind}."
                )

        if not _is_index(self.sink):
            raise MalformedGraph(f"Sink must be a node index, got {self.sink!r}.")
        if not 0 <= self.sink < n:
            raise MalformedGraph(f"Sink {self.sink} is out of bounds for {n} nodes.")

        # Will raise if a cycle exists.
        self.topological_sort()

    def dependencies(self, idx: int) -> List[int]:
        """Distinct node indices ``idx`` waits on (data and fit), SOURCE excluded."""
        deps = [d for d in self.data_deps[idx] if d != SOURCE]
        fit = self.fit_deps[idx]
        if fit is not None:
            deps.append(fit)
        return list(dict.fromkeys(deps))

    def consumers(self, idx: int) -> List[int]:
        return [i for i in range(len(self.nodes)) if idx in self.dependencies(i)]

    def ancestors(self, targets: Iterable[int]) -> Set[int]:
        """All nodes the given targets transitively depend on (targets excluded)."""
        seen: Set[int] = set()
        stack = [d for t in targets for d in self.dependencies(t)]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.dependencies(current))
        return seen

    def reads_source(self, idx: int) -> bool:
        """Whether ``idx`` transitively consumes the external input."""
        return any(
            SOURCE in self.data_deps[i] for i in self.ancestors([idx]) | {idx}
        )

    @cached_property
    def _order(self) -> Tuple[int, ...]:
        n = len(self.nodes)
        indeg = [0] * n
        succ: List[List[int]] = [[] for _ in range(n)]
        for idx in range(n):
            for parent in self.dependencies(idx):
                indeg[idx] += 1
                succ[parent].append(idx)

        # lowest ready index first keeps the order deterministic
        ready = [idx for idx in range(n) if indeg[idx] == 0]
        heapq.heapify(ready)
        order: List[int] = []
        while ready:
            current = heapq.heappop(ready)
            order.append(current)
            for child in succ[current]:
                indeg[child] -= 1
                if indeg[child] == 0:
                    heapq.heappush(ready, child)

        if len(order) != n:
            remaining = sorted(idx for idx in range(n) if indeg[idx] > 0)
            raise MalformedGraph(f"Graph has cycles involving nodes {remaining}.")
        return tuple(order)

    def topological_sort(self) -> List[int]:
        """
        Kahn topo-sort over data and fit dependencies.

        Returns:
            Node indices in a valid, deterministic topological order.
        """
        return list(self._order)

    # -- pure rewrites; each returns a new, validated Graph ------------------

    def add_node(
        self,
        node: Node,
        data_deps: Sequence[int] = (),
        fit_dep: Optional[int] = None,
    ) -> Tuple["Graph", int]:
        idx = len(self.nodes)
        graph = Graph(
            nodes=self.nodes + (node,),
            data_deps=self.data_deps + (tuple(data_deps),),
            fit_deps=self.fit_deps + (fit_dep,),
            sink=self.sink,
        )
        return graph, idx

    def add_graph(self, other: "Graph", source: int = SOURCE) -> Tuple["Graph", int]:
        """
        Append ``other``'s nodes, offsetting its indices by ``len(self)`` and
        feeding its SOURCE references from ``source``.

        Returns:
            The merged graph (sink unchanged) and the new index of ``other``'s sink.
        """
        offset = len(self.nodes)

        def shift(dep: int) -> int:
            return source if dep == SOURCE else dep + offset

        graph = Graph(
            nodes=self.nodes + other.nodes,
            data_deps=self.data_deps
            + tuple(tuple(shift(d) for d in deps) for deps in other.data_deps),
            fit_deps=self.fit_deps
            + tuple(None if f is None else f + offset for f in other.fit_deps),
            sink=self.sink,
        )
        return graph, other.sink + offset

    def with_sink(self, sink: int) -> "Graph":
        return Graph(self.nodes, self.data_deps, self.fit_deps, sink)

    def replace_node(
        self,
        idx: int,
        node: Node,
        data_deps: Optional[Sequence[int]] = None,
        fit_dep: Optional[int] = _UNCHANGED,
    ) -> "Graph":
        nodes = list(self.nodes)
        all_data = list(self.data_deps)
        all_fit = list(self.fit_deps)
        nodes[idx] = node
        if data_deps is not None:
            all_data[idx] = tuple(data_deps)
        if fit_dep is not _UNCHANGED:
            all_fit[idx] = fit_dep
        return Graph(tuple(nodes), tuple(all_data), tuple(all_fit), self.sink)

    def redirect(self, mapping: Mapping[int, int]) -> "Graph":
        """Rewire every reference (data, fit, sink) to ``old`` onto ``mapping[old]``."""

        def remap(dep: int) -> int:
            return mapping.get(dep, dep)

        return Graph(
            nodes=self.nodes,
            data_deps=tuple(tuple(remap(d) for d in deps) for deps in self.data_deps),
            fit_deps=tuple(None if f is None else remap(f) for f in self.fit_deps),
            sink=remap(self.sink),
        )

    def select(self, keep: Iterable[int]) -> "Graph":
        """Keep only the given node indices, renumbering densely in index order."""
        kept = sorted(set(keep))
        index: Dict[int, int] = {old: new for new, old in enumerate(kept)}

        def remap(dep: int) -> int:
            if dep == SOURCE:
                return SOURCE
            if dep not in index:
                raise MalformedGraph(f"Cannot drop node {dep}: it is still referenced.")
            return index[dep]

        return Graph(
            nodes=tuple(self.nodes[i] for i in kept),
            data_deps=tuple(tuple(remap(d) for d in self.data_deps[i]) for i in kept),
            fit_deps=tuple(
                None if self.fit_deps[i] is None else remap(self.fit_deps[i]) for i in kept
            ),
            sink=remap(self.sink),
        )

    def remove_unused(self) -> "Graph":
        """Drop every node the sink does not transitively depend on."""
        keep = self.ancestors([self.sink]) | {self.sink}
        if len(keep) == len(self.nodes):
            return self
        return self.select(keep)
