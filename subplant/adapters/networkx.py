from __future__ import annotations

import networkx as nx

from ..core.builder import DotGraphBuilder
from ..core.graph import DotGraph
from ..core.structure import Edge, GraphType, Node


def to_nx(graph: DotGraph) -> nx.MultiGraph | nx.MultiDiGraph:
    """
    Export a DotGraph to a NetworkX multigraph keyed by node id.

    Parameters
    ----------
    graph : DotGraph
        Source graph.

    Returns
    -------
    networkx.MultiDiGraph | networkx.MultiGraph
        ``MultiDiGraph`` for digraphs, ``MultiGraph`` otherwise. Node and
        edge attributes become data dicts; the default blocks are stored as
        ``G.graph["graph"|"node"|"edge"]`` (the layout networkx's own DOT
        readers use), the id as ``G.graph["name"]`` and strictness as
        ``G.graph["strict"]``.
    """
    G = nx.MultiDiGraph() if graph.graph_type is GraphType.DIGRAPH else nx.MultiGraph()
    if graph.id is not None:
        G.graph["name"] = graph.id
    G.graph["strict"] = graph.strict
    G.graph["graph"] = dict(graph.graph_attributes)
    G.graph["node"] = dict(graph.node_attributes)
    G.graph["edge"] = dict(graph.edge_attributes)

    # data dicts, not keyword arguments: attributes may be named "key"
    nodes = [graph[ix] for ix in graph.node_indices()]
    G.add_nodes_from((node.id, node.attributes) for node in nodes)
    G.add_edges_from(
        (graph[source].id, graph[target].id, graph[eix].attributes)
        for eix, source, target in graph.edge_references()
    )
    return G


def from_nx(G: nx.Graph, *, strict: bool | None = None) -> DotGraph:
    """
    Import any NetworkX graph. Ids and attribute values are stringified.

    Parameters
    ----------
    G : networkx.Graph
        Directed graphs become digraphs, everything else graphs.
    strict : bool, optional
        Overrides ``G.graph["strict"]``.

    Returns
    -------
    DotGraph
    """
    graph_type = GraphType.DIGRAPH if G.is_directed() else GraphType.GRAPH
    if strict is None:
        strict = bool(G.graph.get("strict", False))

    def _attrs(d) -> dict[str, str]:
        return {str(k): str(v) for k, v in (d or {}).items()}

    nodes = [Node(str(n), _attrs(data)) for n, data in G.nodes(data=True)]
    edge_list = [(str(u), str(v), _attrs(data)) for u, v, data in G.edges(data=True)]

    def _edges(dot: DotGraph):
        id_map = dot.id_map()
        return [(Edge(attrs), id_map[u], id_map[v]) for u, v, attrs in edge_list]

    name = G.graph.get("name")
    return (
        DotGraphBuilder(graph_type)
        .strict(strict)
        .id(str(name) if name not in (None, "") else None)
        .graph_attributes(_attrs(G.graph.get("graph")))
        .node_attributes(_attrs(G.graph.get("node")))
        .edge_attributes(_attrs(G.graph.get("edge")))
        .nodes(nodes)
        .edges_fn(_edges)
        .build()
    )
