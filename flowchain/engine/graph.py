"""
Graph construction and validation.

A GraphBuilder accumulates executors and edges; build() freezes them into an
immutable Graph with a precomputed start node, output node and execution
order. Every structural problem is reported here, so a built Graph can never
fail a run on structural grounds.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import logging

from .executor import Executor, accepts_mapping, types_compatible
from .models import Edge
from .errors import (
    AmbiguousOutputError,
    CycleError,
    DuplicateEdgeError,
    DuplicateNodeError,
    DuplicateOutputError,
    MultipleStartNodesError,
    NoStartNodeError,
    TypeMismatchError,
    UnknownNodeError,
)

logger = logging.getLogger(__name__)

NodeRef = Union[str, Executor]


class Graph:
    """Validated, immutable DAG of executors and edges"""

    def __init__(
        self,
        executors: Dict[str, Executor],
        edges: List[Edge],
        start_id: str,
        output_id: str,
        order: List[str],
    ):
        self._executors = MappingProxyType(dict(executors))
        self._edges: Tuple[Edge, ...] = tuple(edges)
        self._order: Tuple[str, ...] = tuple(order)
        self.start_id = start_id
        self.output_id = output_id

        incoming: Dict[str, List[str]] = {node_id: [] for node_id in executors}
        outgoing: Dict[str, List[str]] = {node_id: [] for node_id in executors}
        for edge in self._edges:
            outgoing[edge.source_id].append(edge.target_id)
            incoming[edge.target_id].append(edge.source_id)
        self._incoming = {k: tuple(v) for k, v in incoming.items()}
        self._outgoing = {k: tuple(v) for k, v in outgoing.items()}

    @property
    def executors(self) -> Mapping[str, Executor]:
        return self._executors

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @property
    def execution_order(self) -> Tuple[str, ...]:
        return self._order

    @property
    def output_edges(self) -> Tuple[Edge, ...]:
        return tuple(edge for edge in self._edges if edge.is_output_edge)

    def get_executor(self, executor_id: str) -> Executor:
        return self._executors[executor_id]

    def upstream(self, executor_id: str) -> Tuple[str, ...]:
        return self._incoming[executor_id]

    def downstream(self, executor_id: str) -> Tuple[str, ...]:
        return self._outgoing[executor_id]

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return (
            dict(self._executors) == dict(other._executors)
            and self._edges == other._edges
            and self.start_id == other.start_id
            and self.output_id == other.output_id
            and self._order == other._order
        )

    def __hash__(self):
        return hash((self._edges, self.start_id, self.output_id, self._order))

    def __repr__(self) -> str:
        return f"Graph(start={self.start_id!r}, output={self.output_id!r}, nodes={len(self._executors)})"


class GraphBuilder:
    """Accumulates executors and edges, then freezes them into a Graph"""

    def __init__(self, start_executor: Executor):
        self._executors: Dict[str, Executor] = {}
        self._edges: List[Tuple[str, str]] = []
        self._output_id: Optional[str] = None
        self.add_node(start_executor)
        self._start_id = start_executor.id

    def add_node(self, executor: Executor) -> "GraphBuilder":
        """Register an executor. Re-adding the same object is a no-op."""
        existing = self._executors.get(executor.id)
        if existing is executor:
            return self
        if existing is not None:
            raise DuplicateNodeError(executor.id)
        self._executors[executor.id] = executor
        return self

    def add_edge(self, source: NodeRef, target: NodeRef) -> "GraphBuilder":
        """
        Connect source's output to target's input.

        Executor objects are registered on the fly; string ids must already be
        registered. Type tags are checked immediately.
        """
        source_id = self._resolve(source)
        target_id = self._resolve(target)

        if (source_id, target_id) in self._edges:
            raise DuplicateEdgeError(source_id, target_id)

        source_exec = self._executors[source_id]
        target_exec = self._executors[target_id]
        # Mapping inputs may become fan-in targets; build() settles those
        if not types_compatible(source_exec.output_type, target_exec.input_type) \
                and not accepts_mapping(target_exec.input_type):
            raise TypeMismatchError(
                source_id, target_id, source_exec.output_type, target_exec.input_type
            )

        self._edges.append((source_id, target_id))
        return self

    def mark_output(self, node: NodeRef) -> "GraphBuilder":
        """Designate a node whose completion is the run's final output."""
        node_id = self._resolve(node)
        if self._output_id is not None:
            raise DuplicateOutputError(self._output_id, node_id)
        self._output_id = node_id
        return self

    # Alias matching the fluent name used by add_edge(...).with_output_from(...)
    with_output_from = mark_output

    def build(self) -> Graph:
        """Validate the accumulated state and return an immutable Graph."""
        node_ids = list(self._executors)
        outgoing: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
        in_degree: Dict[str, int] = {node_id: 0 for node_id in node_ids}
        for source_id, target_id in self._edges:
            outgoing[source_id].append(target_id)
            in_degree[target_id] += 1

        self._check_cycles(node_ids, outgoing)
        self._check_inputs(node_ids)

        start_nodes = [node_id for node_id in node_ids if in_degree[node_id] == 0]
        if not start_nodes:
            raise NoStartNodeError("Graph has no start node")
        if len(start_nodes) > 1:
            raise MultipleStartNodesError(start_nodes)
        if start_nodes[0] != self._start_id:
            raise NoStartNodeError(
                f"Declared start '{self._start_id}' has incoming edges; "
                f"'{start_nodes[0]}' is the only node without one"
            )

        output_id = self._output_id
        if output_id is None:
            sinks = [node_id for node_id in node_ids if not outgoing[node_id]]
            if len(sinks) > 1:
                raise AmbiguousOutputError(sinks)
            output_id = sinks[0]

        edges = [
            Edge(
                source_id=source_id,
                target_id=target_id,
                is_output_edge=self._output_id is not None and target_id == self._output_id,
            )
            for source_id, target_id in self._edges
        ]
        order = self._topological_order(node_ids, outgoing, in_degree)

        logger.debug(f"Built graph with {len(node_ids)} executors, output '{output_id}'")
        return Graph(self._executors, edges, self._start_id, output_id, order)

    def _resolve(self, node: NodeRef) -> str:
        if isinstance(node, Executor):
            self.add_node(node)
            return node.id
        if node not in self._executors:
            raise UnknownNodeError(node)
        return node

    def _check_inputs(self, node_ids: List[str]) -> None:
        """A fan-in node receives a dict keyed by source id; others get the source's value."""
        incoming: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
        for source_id, target_id in self._edges:
            incoming[target_id].append(source_id)

        for target_id, sources in incoming.items():
            input_type = self._executors[target_id].input_type
            if len(sources) > 1:
                if not accepts_mapping(input_type):
                    raise TypeMismatchError(sources[-1], target_id, dict, input_type)
                continue
            for source_id in sources:
                output_type = self._executors[source_id].output_type
                if not types_compatible(output_type, input_type):
                    raise TypeMismatchError(source_id, target_id, output_type, input_type)

    @staticmethod
    def _check_cycles(node_ids: List[str], outgoing: Dict[str, List[str]]) -> None:
        """Depth-first search; raises CycleError on the first back-edge found."""
        WHITE, GREY, BLACK = 0, 1, 2
        colour = {node_id: WHITE for node_id in node_ids}

        for root in node_ids:
            if colour[root] != WHITE:
                continue
            path = [root]
            stack = [(root, iter(outgoing[root]))]
            colour[root] = GREY
            while stack:
                node_id, children = stack[-1]
                child = next(children, None)
                if child is None:
                    colour[node_id] = BLACK
                    stack.pop()
                    path.pop()
                elif colour[child] == GREY:
                    cycle = path[path.index(child):] + [child]
                    raise CycleError(child, cycle)
                elif colour[child] == WHITE:
                    colour[child] = GREY
                    path.append(child)
                    stack.append((child, iter(outgoing[child])))

    @staticmethod
    def _topological_order(
        node_ids: List[str], outgoing: Dict[str, List[str]], in_degree: Dict[str, int]
    ) -> List[str]:
        """Kahn's algorithm; ties are broken by insertion order into the builder."""
        position = {node_id: index for index, node_id in enumerate(node_ids)}
        remaining = dict(in_degree)
        ready = [node_id for node_id in node_ids if remaining[node_id] == 0]
        order = []

        while ready:
            ready.sort(key=position.__getitem__)
            node_id = ready.pop(0)
            order.append(node_id)
            for target_id in outgoing[node_id]:
                remaining[target_id] -= 1
                if remaining[target_id] == 0:
                    ready.append(target_id)

        return order


def new_builder(start_executor: Executor) -> GraphBuilder:
    return GraphBuilder(start_executor)
