from __future__ import annotations

from typing import Dict

import polars as pl

from ..core.builder import DotGraphBuilder
from ..core.graph import DotGraph
from ..core.structure import Edge, GraphType, Node


def _columns(rows: list[dict[str, str]], reserved: tuple[str, ...]) -> list[str]:
    cols: dict[str, None] = {}
    for row in rows:
        for k in row:
            if k not in reserved:
                cols.setdefault(k, None)
    return list(cols)


def to_dataframes(graph: DotGraph) -> Dict[str, pl.DataFrame]:
    """
    Export graph to Polars DataFrames.

    Returns a dictionary of DataFrames:
    - 'nodes': ``node_id`` plus one Utf8 column per node attribute
    - 'edges': ``source``, ``target`` (node ids) plus one column per edge attribute

    Missing attributes are null. Attribute keys clashing with the key
    columns are dropped.

    Args:
        graph: DotGraph instance to export

    Returns:
        Dictionary mapping table names to Polars DataFrames
    """
    node_rows = [graph[ix] for ix in graph.node_indices()]
    node_cols = _columns([n.attributes for n in node_rows], ("node_id",))
    nodes = {"node_id": [n.id for n in node_rows]}
    for col in node_cols:
        nodes[col] = [n.attributes.get(col) for n in node_rows]

    edge_rows = [
        (graph[s].id, graph[t].id, graph[eix].attributes) for eix, s, t in graph.edge_references()
    ]
    edge_cols = _columns([attrs for _, _, attrs in edge_rows], ("source", "target"))
    edges = {
        "source": [s for s, _, _ in edge_rows],
        "target": [t for _, t, _ in edge_rows],
    }
    for col in edge_cols:
        edges[col] = [attrs.get(col) for _, _, attrs in edge_rows]

    return {
        "nodes": pl.DataFrame(nodes, schema={k: pl.Utf8 for k in nodes}),
        "edges": pl.DataFrame(edges, schema={k: pl.Utf8 for k in edges}),
    }


def from_dataframes(
    nodes: pl.DataFrame,
    edges: pl.DataFrame | None = None,
    *,
    graph_type: GraphType = GraphType.DIGRAPH,
) -> DotGraph:
    """
    Build a DotGraph from a node table and an optional edge table.

    Null cells are skipped; other values are stringified. Edge endpoints
    missing from ``nodes`` are created without attributes.
    """
    node_list: list[Node] = []
    seen: set[str] = set()
    for row in nodes.iter_rows(named=True):
        nid = str(row.pop("node_id"))
        if nid in seen:
            continue
        seen.add(nid)
        node_list.append(Node(nid, {k: str(v) for k, v in row.items() if v is not None}))

    edge_list: list[tuple[str, str, dict[str, str]]] = []
    if edges is not None:
        for row in edges.iter_rows(named=True):
            u, v = str(row.pop("source")), str(row.pop("target"))
            for nid in (u, v):
                if nid not in seen:
                    seen.add(nid)
                    node_list.append(Node(nid, {}))
            edge_list.append((u, v, {k: str(val) for k, val in row.items() if val is not None}))

    def _edges(graph: DotGraph):
        id_map = graph.id_map()
        return [(Edge(attrs), id_map[u], id_map[v]) for u, v, attrs in edge_list]

    return DotGraphBuilder(graph_type).nodes(node_list).edges_fn(_edges).build()
