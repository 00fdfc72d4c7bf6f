"""Thin layer over the networkx engine graph.

The engine stores every graph as a ``networkx.MultiDiGraph`` whose nodes are
integer handles. Private copies of the ``Node`` / ``Edge`` payloads live in
the node and edge data dicts. Handles are drawn from counters kept in
``engine.graph`` so that they are never reused while the graph lives.
"""
from __future__ import annotations

import copy
from typing import Iterator, Tuple

import networkx as nx

from .structure import Direction, Edge, Node

NodeIndex = int
EdgeIndex = Tuple[int, int, int]  # (source, target, key)

NODE_KEY = "node"
EDGE_KEY = "edge"
_NEXT_NODE = "__next_node"
_NEXT_EDGE = "__next_edge"


def new_engine() -> nx.MultiDiGraph:
    engine = nx.MultiDiGraph()
    engine.graph[_NEXT_NODE] = 0
    engine.graph[_NEXT_EDGE] = 0
    return engine


def check_engine(engine: nx.MultiDiGraph) -> None:
    """Validate an engine graph built outside this module.

    Raises
    ------
    ValueError
        If *engine* is not a ``MultiDiGraph``, a node handle or edge key is not
        an ``int``, or a node / edge lacks its ``Node`` / ``Edge`` payload.
    """
    if not isinstance(engine, nx.MultiDiGraph):
        raise ValueError(f"Engine graph must be a networkx.MultiDiGraph, got {type(engine).__name__}")
    for ix, data in engine.nodes(data=True):
        if not isinstance(ix, int) or isinstance(ix, bool):
            raise ValueError(f"Engine node handle {ix!r} is not an int")
        if not isinstance(data.get(NODE_KEY), Node):
            raise ValueError(f"Engine node {ix} has no '{NODE_KEY}' payload")
    for source, target, key, data in engine.edges(keys=True, data=True):
        if not isinstance(key, int) or isinstance(key, bool):
            raise ValueError(f"Engine edge key {key!r} on ({source}, {target}) is not an int")
        if not isinstance(data.get(EDGE_KEY), Edge):
            raise ValueError(f"Engine edge ({source}, {target}, {key}) has no '{EDGE_KEY}' payload")


def _ensure_counters(engine: nx.MultiDiGraph) -> None:
    # engines built elsewhere carry no counters yet
    if _NEXT_NODE not in engine.graph:
        engine.graph[_NEXT_NODE] = max((ix + 1 for ix in engine.nodes), default=0)
    if _NEXT_EDGE not in engine.graph:
        engine.graph[_NEXT_EDGE] = max((k + 1 for _, _, k in engine.edges(keys=True)), default=0)


def add_node(engine: nx.MultiDiGraph, node: Node) -> NodeIndex:
    """Insert *node* and return its freshly allocated handle."""
    _ensure_counters(engine)
    ix = engine.graph[_NEXT_NODE]
    engine.graph[_NEXT_NODE] = ix + 1
    engine.add_node(ix, **{NODE_KEY: copy.deepcopy(node)})
    return ix


def add_edge(engine: nx.MultiDiGraph, source: NodeIndex, target: NodeIndex, edge: Edge) -> EdgeIndex:
    """Insert *edge* between two existing handles and return the edge handle.

    Raises
    ------
    KeyError
        If either endpoint is not a node of *engine*.
    """
    for ix in (source, target):
        if ix not in engine:
            raise KeyError(f"Node index {ix} not found")
    _ensure_counters(engine)
    key = engine.graph[_NEXT_EDGE]
    engine.graph[_NEXT_EDGE] = key + 1
    engine.add_edge(source, target, key=key, **{EDGE_KEY: copy.deepcopy(edge)})
    return (source, target, key)


def remove_node(engine: nx.MultiDiGraph, ix: NodeIndex) -> Node:
    if ix not in engine:
        raise KeyError(f"Node index {ix} not found")
    node = engine.nodes[ix][NODE_KEY]
    engine.remove_node(ix)
    return node


def remove_edge(engine: nx.MultiDiGraph, eix: EdgeIndex) -> Edge:
    source, target, key = eix
    if not engine.has_edge(source, target, key):
        raise KeyError(f"Edge index {eix} not found")
    edge = engine.edges[source, target, key][EDGE_KEY]
    engine.remove_edge(source, target, key)
    return edge


def node_weight(engine: nx.MultiDiGraph, ix: NodeIndex) -> Node:
    return engine.nodes[ix][NODE_KEY]


def edge_weight(engine: nx.MultiDiGraph, eix: EdgeIndex) -> Edge:
    return engine.edges[eix][EDGE_KEY]


def replace_node_weight(engine: nx.MultiDiGraph, ix: NodeIndex, node: Node) -> Node:
    """Swap the payload of node *ix*; return the previous one."""
    if ix not in engine:
        raise KeyError(f"Node index {ix} not found")
    old = engine.nodes[ix][NODE_KEY]
    engine.nodes[ix][NODE_KEY] = copy.deepcopy(node)
    return old


def replace_edge_weight(engine: nx.MultiDiGraph, eix: EdgeIndex, edge: Edge) -> Edge:
    if not engine.has_edge(*eix):
        raise KeyError(f"Edge index {eix} not found")
    old = engine.edges[eix][EDGE_KEY]
    engine.edges[eix][EDGE_KEY] = copy.deepcopy(edge)
    return old


def edge_references(engine: nx.MultiDiGraph) -> Iterator[tuple[EdgeIndex, NodeIndex, NodeIndex]]:
    for source, target, key in engine.edges(keys=True):
        yield (source, target, key), source, target


def neighbors_directed(engine: nx.MultiDiGraph, ix: NodeIndex, direction: Direction) -> Iterator[NodeIndex]:
    """One neighbour per incident edge in *direction*; parallel edges repeat it."""
    if direction is Direction.OUTGOING:
        for _, target, _ in engine.out_edges(ix, keys=True):
            yield target
    else:
        for source, _, _ in engine.in_edges(ix, keys=True):
            yield source


def neighbors_undirected(engine: nx.MultiDiGraph, ix: NodeIndex) -> Iterator[NodeIndex]:
    yield from neighbors_directed(engine, ix, Direction.OUTGOING)
    yield from neighbors_directed(engine, ix, Direction.INCOMING)
