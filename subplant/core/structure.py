from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class GraphType(str, Enum):
    """Graph kind (GRAPH, DIGRAPH).

    Attributes:
        GRAPH: An undirected graph; an edge between A and B implies the same edge between B and A
        DIGRAPH: A directed graph; an edge between A and B does *not* imply an edge from B to A
    """

    GRAPH = "graph"
    DIGRAPH = "digraph"

    @property
    def edge_op(self) -> str:
        """DOT edge operator for this kind."""
        return "->" if self is GraphType.DIGRAPH else "--"

    @classmethod
    def from_keyword(cls, keyword: str) -> "GraphType":
        """Resolve a (case-insensitive) DOT keyword, e.g. ``"DiGraph"``."""
        try:
            return cls(keyword.lower())
        except ValueError:
            raise ValueError(f"Unknown graph kind '{keyword}'") from None


class Direction(str, Enum):
    OUTGOING = "outgoing"
    INCOMING = "incoming"


@dataclass
class Node:
    """A node inside the graph.

    Attributes:
        id: Id / name of the node, unique within a graph
        attributes: DOT attributes of this node
    """

    id: str
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Edge:
    """An edge between two nodes.

    Which nodes are connected is held by the engine graph; only the DOT
    attributes live here.
    """

    attributes: dict[str, str] = field(default_factory=dict)
