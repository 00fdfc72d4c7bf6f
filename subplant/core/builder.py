from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

import networkx as nx

from . import _engine
from ._engine import NodeIndex
from .graph import DotGraph
from .structure import Edge, GraphType, Node

logger = logging.getLogger(__name__)

EdgeTriple = tuple[Edge, NodeIndex, NodeIndex]
EdgesFn = Callable[[DotGraph], Iterable[EdgeTriple]]


class PartialGraph:
    """A :class:`DotGraph` whose nodes and explicit edges are in place but
    whose derived edges have not been added yet.

    Produced by :meth:`DotGraphBuilder.build_base`; turned into the final
    graph exactly once by :meth:`finish`.
    """

    def __init__(self, graph: DotGraph):
        self._graph = graph
        self._finished = False

    @property
    def graph(self) -> DotGraph:
        return self._graph

    def finish(self, edges_fn: Optional[EdgesFn] = None) -> DotGraph:
        """Run the edge derivation step and return the finished graph.

        Parameters
        ----------
        edges_fn : callable, optional
            Receives the graph built so far (all nodes and explicit edges
            present, ``id_map()`` safe to query) and returns
            ``(Edge, source_index, target_index)`` triples. It must not
            mutate the graph it is given.

        Raises
        ------
        RuntimeError
            If this partial graph was already finished.
        """
        if self._finished:
            raise RuntimeError("PartialGraph.finish() called twice")
        self._finished = True
        if edges_fn is not None:
            logger.debug("applying edge function")
            # materialise before inserting so the function sees a stable graph
            derived = list(edges_fn(self._graph))
            for edge, source, target in derived:
                self._graph.add_edge(source, target, edge)
            logger.debug("added %d derived edges", len(derived))
        return self._graph


class DotGraphBuilder:
    """Builder to assemble a :class:`DotGraph` from optional parts.

    Example
    -------
    >>> graph = (
    ...     DotGraphBuilder(GraphType.DIGRAPH)
    ...     .id("plant")
    ...     .nodes([Node("a"), Node("b")])
    ...     .edges_fn(lambda g: [(Edge(), g.id_map()["a"], g.id_map()["b"])])
    ...     .build()
    ... )
    """

    def __init__(self, graph_type: GraphType):
        self._graph_type = GraphType(graph_type)
        self._strict: Optional[bool] = None
        self._id: Optional[str] = None
        self._graph_attributes: Optional[dict[str, str]] = None
        self._node_attributes: Optional[dict[str, str]] = None
        self._edge_attributes: Optional[dict[str, str]] = None
        self._nodes: Optional[list[Node]] = None
        self._edges: Optional[list[EdgeTriple]] = None
        self._edges_fn: Optional[EdgesFn] = None
        self._graph: Optional[nx.MultiDiGraph] = None

    def strict(self, strict: bool) -> "DotGraphBuilder":
        """Set or unset the ``strict`` flag (default ``False``)."""
        self._strict = strict
        return self

    def id(self, id: Optional[str]) -> "DotGraphBuilder":
        """Set the id / name of the graph."""
        self._id = id
        return self

    def graph_attributes(self, attrs: dict[str, str]) -> "DotGraphBuilder":
        self._graph_attributes = attrs
        return self

    def node_attributes(self, attrs: dict[str, str]) -> "DotGraphBuilder":
        self._node_attributes = attrs
        return self

    def edge_attributes(self, attrs: dict[str, str]) -> "DotGraphBuilder":
        self._edge_attributes = attrs
        return self

    def graph(self, graph: nx.MultiDiGraph) -> "DotGraphBuilder":
        """Use a pre-built engine graph instead of an empty one.

        It must be a ``MultiDiGraph`` with ``int`` handles carrying ``Node`` /
        ``Edge`` payloads; ``build_base`` raises ``ValueError`` otherwise.
        """
        self._graph = graph
        return self

    def nodes(self, nodes: Iterable[Node]) -> "DotGraphBuilder":
        """Nodes added to the given or default engine graph."""
        self._nodes = list(nodes)
        return self

    def edges(self, edges: Iterable[EdgeTriple]) -> "DotGraphBuilder":
        """``(Edge, source_index, target_index)`` triples added after the nodes."""
        self._edges = list(edges)
        return self

    def edges_fn(self, edges_fn: EdgesFn) -> "DotGraphBuilder":
        """Set a function called once the graph is otherwise complete.

        It receives that graph and returns more edge triples. It runs last,
        so it sees every node and explicit edge.
        """
        self._edges_fn = edges_fn
        return self

    def build_base(self) -> PartialGraph:
        """First phase: engine graph, nodes, explicit edges and metadata."""
        logger.debug("building graph from DotGraphBuilder")
        if self._graph is not None:
            _engine.check_engine(self._graph)
            engine = self._graph
        else:
            engine = _engine.new_engine()
        for node in self._nodes or ():
            _engine.add_node(engine, node)
        for edge, source, target in self._edges or ():
            _engine.add_edge(engine, source, target, edge)

        graph = DotGraph(
            self._strict if self._strict is not None else False,
            self._graph_type,
            self._id,
            self._graph_attributes or {},
            self._node_attributes or {},
            self._edge_attributes or {},
            engine,
        )
        return PartialGraph(graph)

    def build(self) -> DotGraph:
        """Build both phases and return the graph."""
        return self.build_base().finish(self._edges_fn)
