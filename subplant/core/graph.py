from __future__ import annotations

import copy
import io
import logging
import re
from contextlib import contextmanager
from types import MappingProxyType
from typing import IO, Iterator, Mapping, Optional, Union

import networkx as nx

from . import _engine
from ._engine import EdgeIndex, NodeIndex
from .structure import Direction, Edge, GraphType, Node

logger = logging.getLogger(__name__)

_BARE_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_KEYWORDS = {"strict", "graph", "digraph", "node", "edge", "subgraph"}


def quote(value: str) -> str:
    """Double-quote *value* for DOT output, escaping backslashes and quotes."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _key(key: str) -> str:
    if _BARE_KEY.match(key) and key.lower() not in _KEYWORDS:
        return key
    return quote(key)


class DotGraph:
    """Attributed DOT graph on top of a networkx engine graph.

    Holds the DOT specific metadata (strictness, kind, id and the three
    default attribute blocks) next to the engine graph, and two lazily built
    lookup maps (node id -> index, node label -> index).

    Every method that mutates the engine graph drops both maps so they are
    rebuilt on the next read. Indexing hands out copies of the payloads;
    use :meth:`replace_node` / :meth:`replace_edge` to change them, or
    :meth:`mutate_engine` for raw engine access.

    Parameters
    ----------
    strict : bool
        Whether this graph is ``strict``.
    graph_type : GraphType
        ``GraphType.GRAPH`` or ``GraphType.DIGRAPH``.
    id : str, optional
        Id / name of the graph.
    graph_attributes, node_attributes, edge_attributes : dict, optional
        Global ``graph`` / ``node`` / ``edge`` attributes.
    graph : networkx.MultiDiGraph, optional
        Engine graph to own. Defaults to an empty one.

    Notes
    -----
    Prefer :class:`~subplant.core.builder.DotGraphBuilder` over calling the
    constructor directly.
    """

    def __init__(
        self,
        strict: bool,
        graph_type: GraphType,
        id: Optional[str] = None,
        graph_attributes: Optional[dict[str, str]] = None,
        node_attributes: Optional[dict[str, str]] = None,
        edge_attributes: Optional[dict[str, str]] = None,
        graph: Optional[nx.MultiDiGraph] = None,
    ):
        self.strict = strict
        self.graph_type = GraphType(graph_type)
        self.id = id
        self.graph_attributes = dict(graph_attributes or {})
        self.node_attributes = dict(node_attributes or {})
        self.edge_attributes = dict(edge_attributes or {})
        if graph is not None:
            _engine.check_engine(graph)
        self._graph = graph if graph is not None else _engine.new_engine()
        self._borrowed = False
        self._id_map: Optional[dict[str, NodeIndex]] = None
        self._label_map: Optional[dict[str, NodeIndex]] = None

    # ==================== Lookup maps ====================

    def id_map(self) -> Mapping[str, NodeIndex]:
        """Lazily return a read-only map from node ids to their index.

        Built by walking all nodes once and memoised until the next
        structural mutation. If two nodes share an id, the one visited last
        (in engine order) wins.
        """
        self._check_not_borrowed()
        if self._id_map is None:
            logger.debug("building id map over %d nodes", self._graph.number_of_nodes())
            self._id_map = {self._node(ix).id: ix for ix in self.node_indices()}
        return MappingProxyType(self._id_map)

    def label_map(self) -> Mapping[str, NodeIndex]:
        """Lazily return a read-only map from the ``label`` node attribute to the index.

        Nodes without a ``label`` attribute are absent from the map.
        """
        self._check_not_borrowed()
        if self._label_map is None:
            logger.debug("building label map over %d nodes", self._graph.number_of_nodes())
            self._label_map = {}
            for ix in self.node_indices():
                attrs = self._node(ix).attributes
                if "label" in attrs:
                    self._label_map[attrs["label"]] = ix
        return MappingProxyType(self._label_map)

    def _invalidate(self) -> None:
        if self._id_map is not None or self._label_map is not None:
            logger.debug("invalidating lookup maps")
        self._id_map = None
        self._label_map = None

    def _check_not_borrowed(self) -> None:
        if self._borrowed:
            raise RuntimeError("lookup maps are unavailable inside mutate_engine()")

    def _node(self, ix: NodeIndex) -> Node:
        return _engine.node_weight(self._graph, ix)

    def _edge(self, eix: EdgeIndex) -> Edge:
        return _engine.edge_weight(self._graph, eix)

    # ==================== Read-only engine access ====================

    def __getitem__(self, ix: Union[NodeIndex, EdgeIndex]) -> Union[Node, Edge]:
        """``graph[node_ix]`` -> :class:`Node`, ``graph[(s, t, k)]`` -> :class:`Edge`.

        Returns a copy; changing it leaves the graph untouched.
        """
        if isinstance(ix, tuple):
            return copy.deepcopy(self._edge(ix))
        return copy.deepcopy(self._node(ix))

    @property
    def engine_view(self) -> nx.MultiDiGraph:
        """Frozen read-only view of the engine graph."""
        return self._graph.copy(as_view=True)

    def node_indices(self) -> Iterator[NodeIndex]:
        return iter(self._graph.nodes)

    def edge_indices(self) -> Iterator[EdgeIndex]:
        return (eix for eix, _, _ in _engine.edge_references(self._graph))

    def edge_references(self) -> Iterator[tuple[EdgeIndex, NodeIndex, NodeIndex]]:
        """Yield ``(edge_index, source, target)`` in engine edge order."""
        return _engine.edge_references(self._graph)

    def edge_endpoints(self, eix: EdgeIndex) -> tuple[NodeIndex, NodeIndex]:
        if not self._graph.has_edge(*eix):
            raise KeyError(f"Edge index {eix} not found")
        return eix[0], eix[1]

    def neighbors_directed(self, ix: NodeIndex, direction: Direction) -> Iterator[NodeIndex]:
        return _engine.neighbors_directed(self._graph, ix, Direction(direction))

    def neighbors_undirected(self, ix: NodeIndex) -> Iterator[NodeIndex]:
        return _engine.neighbors_undirected(self._graph, ix)

    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    def contains_node(self, ix: NodeIndex) -> bool:
        return ix in self._graph

    def node_by_id(self, node_id: str) -> Node:
        """Resolve *node_id* through the id map; ``KeyError`` if unknown."""
        return self[self.id_map()[node_id]]

    # ==================== Mutation (invalidates lookup maps) ====================

    @contextmanager
    def mutate_engine(self) -> Iterator[nx.MultiDiGraph]:
        """Hand out the mutable engine graph for the duration of a ``with`` block.

        The lookup maps are dropped on entry and on exit, and reading them
        inside the block raises ``RuntimeError``. Do not keep the engine
        past the block.

        Example
        -------
        >>> with graph.mutate_engine() as engine:
        ...     engine.remove_nodes_from(stale)
        """
        if self._borrowed:
            raise RuntimeError("engine graph is already borrowed")
        self._invalidate()
        self._borrowed = True
        try:
            yield self._graph
        finally:
            self._borrowed = False
            self._invalidate()

    def add_node(self, node: Node) -> NodeIndex:
        self._invalidate()
        return _engine.add_node(self._graph, node)

    def add_edge(self, source: NodeIndex, target: NodeIndex, edge: Edge) -> EdgeIndex:
        self._invalidate()
        return _engine.add_edge(self._graph, source, target, edge)

    def replace_node(self, ix: NodeIndex, node: Node) -> Node:
        """Store *node* as the payload of *ix* and return the previous payload."""
        self._invalidate()
        return _engine.replace_node_weight(self._graph, ix, node)

    def replace_edge(self, eix: EdgeIndex, edge: Edge) -> Edge:
        self._invalidate()
        return _engine.replace_edge_weight(self._graph, eix, edge)

    def remove_node(self, ix: NodeIndex) -> Node:
        """Remove a node together with its incident edges."""
        self._invalidate()
        return _engine.remove_node(self._graph, ix)

    def remove_edge(self, eix: EdgeIndex) -> Edge:
        self._invalidate()
        return _engine.remove_edge(self._graph, eix)

    def clear(self) -> None:
        """Remove all nodes and edges; handles are still never reused."""
        self._invalidate()
        for ix in list(self._graph.nodes):
            self._graph.remove_node(ix)

    # ==================== Output ====================

    def write(self, writer: IO[str]) -> None:
        """Write this graph in DOT format to *writer*.

        Any error raised by *writer* propagates as is and leaves the output
        truncated.

        Example
        -------
        >>> with open("foo.dot", "w") as fh:
        ...     graph.write(fh)
        """
        if self.strict:
            writer.write("strict ")
        writer.write(f"{self.graph_type.value} ")
        if self.id is not None:
            writer.write(f"{quote(self.id)} ")
        writer.write("{\n")

        for keyword, attrs in (
            ("graph", self.graph_attributes),
            ("node", self.node_attributes),
            ("edge", self.edge_attributes),
        ):
            if attrs:
                writer.write(f"  {keyword} [\n")
                self._write_attrs(writer, attrs)
                writer.write("  ]\n")

        for ix in self.node_indices():
            node = self._node(ix)
            writer.write(f"  {quote(node.id)} [\n")
            self._write_attrs(writer, node.attributes)
            writer.write("  ]\n")

        edge_op = self.graph_type.edge_op
        for eix, source, target in self.edge_references():
            writer.write(f"  {quote(self._node(source).id)} {edge_op} {quote(self._node(target).id)} [\n")
            self._write_attrs(writer, self._edge(eix).attributes)
            writer.write("  ]\n")

        writer.write("}\n")

    @staticmethod
    def _write_attrs(writer: IO[str], attrs: dict[str, str]) -> None:
        for key, value in attrs.items():
            writer.write(f"    {_key(key)} = {quote(value)}\n")

    def to_dot(self) -> str:
        buf = io.StringIO()
        self.write(buf)
        return buf.getvalue()

    # ==================== Misc ====================

    def copy(self) -> "DotGraph":
        """Independent copy with its own engine graph and empty lookup maps."""
        return DotGraph(
            self.strict,
            self.graph_type,
            self.id,
            dict(self.graph_attributes),
            dict(self.node_attributes),
            dict(self.edge_attributes),
            copy.deepcopy(self._graph),
        )

    def __repr__(self):
        return (
            f"DotGraph(type='{self.graph_type.value}', id={self.id!r}, "
            f"nodes={self.node_count()}, edges={self.edge_count()}, strict={self.strict})"
        )
