from .structure import Direction, Edge, GraphType, Node
from ._engine import EdgeIndex, NodeIndex, new_engine
from .graph import DotGraph
from .builder import DotGraphBuilder, PartialGraph

__all__ = [
    "Direction",
    "DotGraph",
    "DotGraphBuilder",
    "Edge",
    "EdgeIndex",
    "GraphType",
    "Node",
    "NodeIndex",
    "PartialGraph",
    "new_engine",
]
