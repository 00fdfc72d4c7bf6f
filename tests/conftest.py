import pytest

from subplant.core.builder import DotGraphBuilder
from subplant.core.structure import Edge, GraphType, Node


def _edges_between(pairs, attrs=None):
    def _fn(G):
        id_map = G.id_map()
        return [(Edge(dict(attrs or {})), id_map[u], id_map[v]) for u, v in pairs]

    return _fn


@pytest.fixture
def simple_graph():
    """a -> b -> c, with a label on a."""
    return (
        DotGraphBuilder(GraphType.DIGRAPH)
        .nodes([Node("a", {"label": "Alpha"}), Node("b"), Node("c")])
        .edges_fn(_edges_between([("a", "b"), ("b", "c")], {"weight": "1"}))
        .build()
    )


@pytest.fixture
def complex_graph():
    """Strict named digraph with all three default blocks and awkward strings."""
    return (
        DotGraphBuilder(GraphType.DIGRAPH)
        .strict(True)
        .id("oil processing")
        .graph_attributes({"rankdir": "LR", "label": "Plant \"A\""})
        .node_attributes({"shape": "box"})
        .edge_attributes({"color": "gray"})
        .nodes(
            [
                Node("crude-oil", {"label": "Crude oil", "kind": "fluid"}),
                Node("petroleum-gas", {"label": "Petroleum gas"}),
                Node("sulfuric-acid", {"label": "Sulfuric acid", "path": "C:\\plant\\acid"}),
                Node("sulfur", {"my key": "spaced"}),
                Node("water"),
            ]
        )
        .edges_fn(
            _edges_between(
                [
                    ("petroleum-gas", "crude-oil"),
                    ("sulfur", "petroleum-gas"),
                    ("sulfur", "water"),
                    ("sulfuric-acid", "sulfur"),
                    ("sulfuric-acid", "water"),
                ],
                {"amount": "10"},
            )
        )
        .build()
    )


@pytest.fixture
def tmpdir_fixture(tmp_path):
    return tmp_path
