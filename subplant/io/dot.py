"""DOT description format front end (``parse``) and back end (``write``).

Parsing is done by pydot's grammar; this module turns the pydot graph into a
:class:`DotGraph`. Supported: ``strict``, ``graph`` / ``digraph``, graph id,
``graph`` / ``node`` / ``edge`` default blocks, ``key = value`` graph
attributes, node statements and chained edge statements
(``a -> b -> c [attrs]``). Subgraphs and port-qualified endpoints are
rejected with :class:`DotParseError`.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Union

import pydot
from pydot import dot_parser
from pyparsing import ParseBaseException

from ..core.builder import DotGraphBuilder
from ..core.graph import DotGraph
from ..core.structure import Edge, GraphType, Node

logger = logging.getLogger(__name__)

__all__ = ["DotParseError", "parse", "write", "read_dot", "write_dot"]

_DEFAULT_BLOCKS = ("graph", "node", "edge")
_LINE_CONTINUATION = re.compile(r"\\\r?\n")


class DotParseError(ValueError):
    """Text does not conform to the supported DOT subset."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line else ""
        super().__init__(f"{message}{where}")


def _unquote(raw: str) -> str:
    """Decode a DOT id as pydot hands it over (quotes and escapes intact).

    ``\\"`` -> ``"`` and ``\\\\`` -> ``\\``; other escapes stay as written.
    Identifiers, numerals and HTML strings come back unchanged.
    """
    if len(raw) < 2 or raw[0] != '"' or raw[-1] != '"':
        return raw
    body = _LINE_CONTINUATION.sub("", raw[1:-1])
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body) and body[i + 1] in '"\\':
            out.append(body[i + 1])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _closing_quote(raw: str) -> int:
    i = 1
    while i < len(raw):
        if raw[i] == "\\":
            i += 2
            continue
        if raw[i] == '"':
            return i
        i += 1
    return len(raw)


def _node_id(raw) -> str:
    """Decode an edge endpoint or node name, rejecting subgraphs and ports."""
    if not isinstance(raw, str):
        raise DotParseError("subgraphs are not supported")
    if raw.startswith('"'):
        end = _closing_quote(raw) + 1
        port = raw[end:]
    elif raw.startswith("<"):
        port = ""
    else:
        port = ":" if ":" in raw else ""
    if port:
        raise DotParseError(f"port-qualified node ids are not supported: {raw!r}")
    return _unquote(raw)


def _attrs(raw: dict) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            raise DotParseError(f"attribute {_unquote(key)!r} has no value")
        attrs[_unquote(key)] = _unquote(str(value))
    return attrs


def _sequence(obj) -> int:
    return obj.get_sequence() or 0


def _load(text: str) -> pydot.Dot:
    try:
        graphs = list(dot_parser.graphparser.parse_string(text, parse_all=True))
    except ParseBaseException as err:
        raise DotParseError(f"expected valid DOT: {err.msg}", err.lineno, err.col) from None
    if len(graphs) != 1:
        raise DotParseError(f"expected exactly one graph, found {len(graphs)}")
    return graphs[0]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse(text: str) -> DotGraph:
    """Parse DOT *text* (no subgraphs, no ports) into a :class:`DotGraph`.

    - Node statements are deduplicated by id; the first one wins.
    - Ids only referenced by edges become nodes with empty attributes.
    - Chains ``a -> b -> c`` become pairwise edges sharing the attributes.
    - Repeated ``graph`` / ``node`` / ``edge`` blocks merge, later keys win;
      ``key = value`` statements are applied after the ``graph`` blocks.

    Raises
    ------
    DotParseError
        On any syntax error or unsupported construct.
    """
    logger.debug("parsing DOT text (%d chars)", len(text))
    dot = _load(text)
    if dot.get_subgraph_list():
        raise DotParseError("subgraphs are not supported")

    defaults: dict[str, dict[str, str]] = {block: {} for block in _DEFAULT_BLOCKS}
    nodes: list[Node] = []
    seen: set[str] = set()
    for pd_node in sorted(dot.get_node_list(), key=_sequence):
        name = pd_node.get_name()
        if name in _DEFAULT_BLOCKS:
            defaults[name].update(_attrs(pd_node.get_attributes()))
            continue
        if pd_node.get_port() is not None:
            raise DotParseError(f"port-qualified node ids are not supported: {name + pd_node.get_port()!r}")
        node_id = _node_id(name)
        attrs = _attrs(pd_node.get_attributes())
        if node_id not in seen:
            seen.add(node_id)
            nodes.append(Node(node_id, attrs))
    defaults["graph"].update(_attrs(dot.get_attributes()))

    edge_stmts: list[tuple[str, str, dict[str, str]]] = []
    for pd_edge in sorted(dot.get_edge_list(), key=_sequence):
        source = _node_id(pd_edge.get_source())
        target = _node_id(pd_edge.get_destination())
        edge_stmts.append((source, target, _attrs(pd_edge.get_attributes())))
        # graphviz does not require nodes to be declared before use
        for node_id in (source, target):
            if node_id not in seen:
                seen.add(node_id)
                nodes.append(Node(node_id, {}))
    logger.debug("%d nodes, %d edges", len(nodes), len(edge_stmts))

    name = dot.get_name()

    def derive_edges(graph: DotGraph):
        id_map = graph.id_map()
        return [(Edge(dict(attrs)), id_map[source], id_map[target]) for source, target, attrs in edge_stmts]

    return (
        DotGraphBuilder(GraphType.from_keyword(dot.get_type()))
        .strict(dot.get_strict())
        .id(_unquote(name) if name else None)
        .graph_attributes(defaults["graph"])
        .node_attributes(defaults["node"])
        .edge_attributes(defaults["edge"])
        .nodes(nodes)
        .edges_fn(derive_edges)
        .build()
    )


def write(graph: DotGraph) -> str:
    """Serialise *graph* to DOT text; ``parse(write(g))`` reproduces ``g``."""
    return graph.to_dot()


def read_dot(path: Union[str, Path], *, encoding: str = "utf-8") -> DotGraph:
    """Read and parse a DOT file. ``OSError`` and :class:`DotParseError` propagate."""
    with open(path, "r", encoding=encoding) as f:
        text = f.read()
    return parse(text)


def write_dot(graph: DotGraph, path: Union[str, Path], *, encoding: str = "utf-8") -> None:
    with open(path, "w", encoding=encoding) as f:
        graph.write(f)
