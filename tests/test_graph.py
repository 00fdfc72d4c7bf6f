import io
import random
import unittest

import networkx as nx

from subplant.core.builder import DotGraphBuilder
from subplant.core.graph import DotGraph
from subplant.core.structure import Direction, Edge, GraphType, Node


def _recompute_id_map(G):
    return {G[ix].id: ix for ix in G.node_indices()}


def _recompute_label_map(G):
    return {G[ix].attributes["label"]: ix for ix in G.node_indices() if "label" in G[ix].attributes}


class _FailingSink:
    """Accepts *limit* writes, then behaves like a closed pipe."""

    def __init__(self, limit):
        self.limit = limit
        self.chunks = []

    def write(self, s):
        if len(self.chunks) >= self.limit:
            raise BrokenPipeError("sink closed")
        self.chunks.append(s)
        return len(s)


class TestDotGraphLookups(unittest.TestCase):

    def setUp(self):
        G = DotGraph(False, GraphType.DIGRAPH)
        self.a = G.add_node(Node("a", {"label": "A"}))
        self.b = G.add_node(Node("b"))
        self.e = G.add_edge(self.a, self.b, Edge({"weight": "3"}))
        self.G = G

    def test_constructor_defaults(self):
        G = DotGraph(True, GraphType.GRAPH)
        self.assertTrue(G.strict)
        self.assertIsNone(G.id)
        self.assertEqual((G.graph_attributes, G.node_attributes, G.edge_attributes), ({}, {}, {}))
        self.assertEqual(G.node_count(), 0)

    def test_id_map(self):
        self.assertEqual(dict(self.G.id_map()), {"a": self.a, "b": self.b})

    def test_maps_are_read_only(self):
        with self.assertRaises(TypeError):
            self.G.id_map()["c"] = 99

    def test_label_map_skips_unlabelled(self):
        self.assertEqual(dict(self.G.label_map()), {"A": self.a})

    def test_id_map_memoised(self):
        with self.assertLogs("subplant.core.graph", level="DEBUG") as cm:
            self.G.id_map()
            self.G.id_map()
            self.G.id_map()
        built = [r for r in cm.output if "building id map" in r]
        self.assertEqual(len(built), 1)

    def test_add_node_invalidates(self):
        self.G.id_map()
        self.G.label_map()
        c = self.G.add_node(Node("c", {"label": "C"}))
        self.assertEqual(self.G.id_map()["c"], c)
        self.assertEqual(self.G.label_map()["C"], c)

    def test_remove_node_invalidates(self):
        self.G.id_map()
        self.G.label_map()
        removed = self.G.remove_node(self.a)
        self.assertEqual(removed.id, "a")
        self.assertNotIn("a", self.G.id_map())
        self.assertNotIn("A", self.G.label_map())
        self.assertEqual(self.G.edge_count(), 0)

    def test_mutate_engine_invalidates_on_exit(self):
        self.G.id_map()
        with self.G.mutate_engine() as engine:
            engine.add_node(99, node=Node("z"))
        self.assertEqual(self.G.id_map()["z"], 99)
        self.assertEqual(dict(self.G.id_map()), _recompute_id_map(self.G))

    def test_maps_unavailable_while_engine_borrowed(self):
        with self.G.mutate_engine() as engine:
            engine.remove_node(self.b)
            with self.assertRaises(RuntimeError):
                self.G.id_map()
            with self.assertRaises(RuntimeError):
                self.G.label_map()
        self.assertNotIn("b", self.G.id_map())

    def test_mutate_engine_not_reentrant(self):
        with self.G.mutate_engine():
            with self.assertRaises(RuntimeError):
                with self.G.mutate_engine():
                    pass

    def test_no_unscoped_engine_handle(self):
        self.assertFalse(hasattr(self.G, "engine"))

    def test_indexing_returns_copies(self):
        self.G.label_map()
        node = self.G[self.a]
        node.attributes["label"] = "New"
        node.id = "renamed"
        self.G[self.e].attributes["weight"] = "0"
        self.assertEqual(self.G[self.a], Node("a", {"label": "A"}))
        self.assertEqual(self.G[self.e], Edge({"weight": "3"}))
        self.assertEqual(dict(self.G.label_map()), _recompute_label_map(self.G))
        self.assertEqual(dict(self.G.id_map()), _recompute_id_map(self.G))

    def test_inserted_payloads_are_not_aliased(self):
        node = Node("c", {"label": "C"})
        c = self.G.add_node(node)
        self.G.id_map()
        node.id = "changed"
        node.attributes["label"] = "changed"
        self.assertEqual(self.G.id_map()["c"], c)
        self.assertEqual(self.G.label_map()["C"], c)

    def test_replace_node_invalidates(self):
        self.G.id_map()
        self.G.label_map()
        old = self.G.replace_node(self.a, Node("x", {"label": "New"}))
        self.assertEqual(old, Node("a", {"label": "A"}))
        self.assertEqual(dict(self.G.id_map()), {"x": self.a, "b": self.b})
        self.assertEqual(dict(self.G.label_map()), {"New": self.a})

    def test_replace_edge(self):
        old = self.G.replace_edge(self.e, Edge({"weight": "4"}))
        self.assertEqual(old, Edge({"weight": "3"}))
        self.assertEqual(self.G[self.e], Edge({"weight": "4"}))

    def test_replace_missing_handles_raise(self):
        with self.assertRaises(KeyError):
            self.G.replace_node(12345, Node("q"))
        with self.assertRaises(KeyError):
            self.G.replace_edge((self.a, self.b, 12345), Edge())

    def test_clear(self):
        self.G.id_map()
        self.G.clear()
        self.assertEqual(dict(self.G.id_map()), {})
        # handles are not reused after clearing
        self.assertGreater(self.G.add_node(Node("a")), self.b)

    def test_removed_handles_raise(self):
        self.G.remove_edge(self.e)
        with self.assertRaises(KeyError):
            self.G[self.e]
        with self.assertRaises(KeyError):
            self.G.remove_edge(self.e)
        self.G.remove_node(self.b)
        with self.assertRaises(KeyError):
            self.G[self.b]

    def test_handles_not_reused(self):
        self.G.remove_node(self.b)
        self.assertNotEqual(self.G.add_node(Node("b")), self.b)

    def test_duplicate_ids_last_wins(self):
        dup = self.G.add_node(Node("a"))
        self.assertEqual(self.G.id_map()["a"], dup)

    def test_random_mutations_match_recomputation(self):
        rng = random.Random(7)
        G = DotGraph(False, GraphType.DIGRAPH)
        for step in range(300):
            op = rng.random()
            nodes = list(G.node_indices())
            if op < 0.4 or not nodes:
                attrs = {"label": f"L{step}"} if rng.random() < 0.5 else {}
                G.add_node(Node(f"n{step}", attrs))
            elif op < 0.6:
                G.add_edge(rng.choice(nodes), rng.choice(nodes), Edge())
            elif op < 0.75:
                G.remove_node(rng.choice(nodes))
            elif op < 0.85:
                edges = list(G.edge_indices())
                if edges:
                    G.remove_edge(rng.choice(edges))
            elif op < 0.92:
                ix = rng.choice(nodes)
                attrs = {"label": f"R{step}"} if rng.random() < 0.5 else {}
                G.replace_node(ix, Node(f"r{step}", attrs))
            else:
                self.assertEqual(dict(G.id_map()), _recompute_id_map(G))
                self.assertEqual(dict(G.label_map()), _recompute_label_map(G))
        self.assertEqual(dict(G.id_map()), _recompute_id_map(G))
        self.assertEqual(dict(G.label_map()), _recompute_label_map(G))


class TestDotGraphEngineAccess(unittest.TestCase):

    def setUp(self):
        G = DotGraph(False, GraphType.DIGRAPH)
        self.a = G.add_node(Node("a"))
        self.b = G.add_node(Node("b"))
        self.c = G.add_node(Node("c"))
        G.add_edge(self.a, self.b, Edge())
        G.add_edge(self.a, self.b, Edge())
        G.add_edge(self.c, self.a, Edge())
        self.G = G

    def test_neighbors_directed_repeat_parallel_edges(self):
        self.assertEqual(list(self.G.neighbors_directed(self.a, Direction.OUTGOING)), [self.b, self.b])
        self.assertEqual(list(self.G.neighbors_directed(self.a, Direction.INCOMING)), [self.c])

    def test_neighbors_undirected(self):
        self.assertEqual(sorted(self.G.neighbors_undirected(self.a)), sorted([self.b, self.b, self.c]))

    def test_edge_references(self):
        refs = list(self.G.edge_references())
        self.assertEqual(len(refs), 3)
        for eix, s, t in refs:
            self.assertEqual(self.G.edge_endpoints(eix), (s, t))

    def test_add_edge_unknown_endpoint(self):
        with self.assertRaises(KeyError):
            self.G.add_edge(self.a, 12345, Edge())

    def test_engine_view_is_frozen(self):
        view = self.G.engine_view
        with self.assertRaises(nx.NetworkXError):
            view.add_node(1000)

    def test_node_by_id(self):
        self.assertEqual(self.G.node_by_id("c"), Node("c"))
        with self.assertRaises(KeyError):
            self.G.node_by_id("missing")

    def test_copy_is_independent(self):
        H = self.G.copy()
        H.add_node(Node("d"))
        H.replace_node(self.a, Node("a", {"x": "1"}))
        self.assertNotIn("d", self.G.id_map())
        self.assertEqual(self.G[self.a].attributes, {})

    def test_repr(self):
        self.assertEqual(
            repr(self.G), "DotGraph(type='digraph', id=None, nodes=3, edges=3, strict=False)"
        )


class TestDotGraphWrite(unittest.TestCase):

    def _graph(self):
        return (
            DotGraphBuilder(GraphType.DIGRAPH)
            .strict(True)
            .id("plant")
            .graph_attributes({"rankdir": "LR"})
            .nodes([Node("a", {"label": "A"}), Node("b")])
            .edges_fn(lambda G: [(Edge({"weight": "2"}), G.id_map()["a"], G.id_map()["b"])])
            .build()
        )

    def test_write_format(self):
        expected = (
            'strict digraph "plant" {\n'
            "  graph [\n"
            '    rankdir = "LR"\n'
            "  ]\n"
            '  "a" [\n'
            '    label = "A"\n'
            "  ]\n"
            '  "b" [\n'
            "  ]\n"
            '  "a" -> "b" [\n'
            '    weight = "2"\n'
            "  ]\n"
            "}\n"
        )
        self.assertEqual(self._graph().to_dot(), expected)

    def test_write_undirected_minimal(self):
        G = DotGraph(False, GraphType.GRAPH)
        a, b = G.add_node(Node("a")), G.add_node(Node("b"))
        G.add_edge(a, b, Edge())
        out = G.to_dot()
        self.assertTrue(out.startswith("graph {\n"))
        self.assertIn('  "a" -- "b" [\n', out)
        self.assertNotIn("node [", out)

    def test_quoting(self):
        G = DotGraph(False, GraphType.DIGRAPH, node_attributes={"my key": 'say "hi"\\', "node": "x"})
        out = G.to_dot()
        self.assertIn('    "my key" = "say \\"hi\\"\\\\"\n', out)
        self.assertIn('    "node" = "x"\n', out)

    def test_write_to_stream(self):
        buf = io.StringIO()
        self._graph().write(buf)
        self.assertEqual(buf.getvalue(), self._graph().to_dot())

    def test_sink_failure_propagates(self):
        sink = _FailingSink(limit=3)
        with self.assertRaises(BrokenPipeError):
            self._graph().write(sink)
        self.assertEqual(len(sink.chunks), 3)


if __name__ == "__main__":
    unittest.main()
