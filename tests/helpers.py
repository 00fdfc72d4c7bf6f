# Shared assertions for graph comparisons (keep in sync across test modules)
from subplant.core.graph import DotGraph


def graph_signature(G: DotGraph):
    """Order-independent summary of a DotGraph."""
    nodes = {G[ix].id: dict(G[ix].attributes) for ix in G.node_indices()}
    edges = sorted(
        (G[s].id, G[t].id, sorted(G[eix].attributes.items()))
        for eix, s, t in G.edge_references()
    )
    return {
        "strict": G.strict,
        "graph_type": G.graph_type,
        "id": G.id,
        "graph_attributes": dict(G.graph_attributes),
        "node_attributes": dict(G.node_attributes),
        "edge_attributes": dict(G.edge_attributes),
        "nodes": nodes,
        "edges": edges,
    }


def assert_graphs_equal(G1: DotGraph, G2: DotGraph, *, check_metadata: bool = True):
    s1, s2 = graph_signature(G1), graph_signature(G2)
    if not check_metadata:
        s1 = {k: s1[k] for k in ("nodes", "edges")}
        s2 = {k: s2[k] for k in ("nodes", "edges")}
    assert s1 == s2, f"graphs differ:\n{s1}\n!=\n{s2}"


def node_ids(G: DotGraph) -> list[str]:
    return [G[ix].id for ix in G.node_indices()]
