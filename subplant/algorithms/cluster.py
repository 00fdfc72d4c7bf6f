"""Greedy sub-plant growth.

Grows a cluster of nodes that is cheap to split off as its own unit: few
edges leaving it (external dependencies) and few members that are consumed
both from outside and from inside (shared outputs). Edges point from a
consumer to what it consumes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Collection, Iterable, NamedTuple, Optional, Sequence

import polars as pl

from ..core.graph import DotGraph
from ..core.structure import Direction

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESTARTS = 0

__all__ = [
    "DEFAULT_MAX_RESTARTS",
    "Candidate",
    "ClusterGrower",
    "GrowthPhase",
    "GrowthResult",
    "Score",
    "grow",
    "score",
]


class Score(NamedTuple):
    num_deps: int
    num_outputs: int

    @property
    def total(self) -> int:
        return self.num_deps + self.num_outputs


class Candidate(NamedTuple):
    index: int
    score: Score


def _fmt(s: Score) -> str:
    return f"({s.num_deps}, {s.num_outputs})"


def score(cluster: Collection[int], graph: DotGraph) -> Score:
    """Score a cluster of node indices.

    Returns
    -------
    Score
        ``num_deps``: outgoing edges of members whose target is outside the
        cluster (parallel edges count separately).
        ``num_outputs``: members with an incoming edge from outside *and* an
        outgoing edge to another member. Pure inputs are not outputs.
    """
    num_deps = sum(
        1
        for ix in cluster
        for nb in graph.neighbors_directed(ix, Direction.OUTGOING)
        if nb not in cluster
    )
    num_outputs = sum(
        1
        for ix in cluster
        if any(nb not in cluster for nb in graph.neighbors_directed(ix, Direction.INCOMING))
        and any(nb in cluster for nb in graph.neighbors_directed(ix, Direction.OUTGOING))
    )
    return Score(num_deps, num_outputs)


@dataclass
class GrowthPhase:
    """One grow-until-stall phase."""

    seeds: list[str]
    members: list[str]
    score: Score
    lowest_rejected: list[tuple[str, int]] = field(default_factory=list)


@dataclass
class GrowthResult:
    phases: list[GrowthPhase] = field(default_factory=list)
    next_seed: Optional[str] = None  # reseed reported but not grown
    trace: list[str] = field(default_factory=list)

    def to_frame(self) -> pl.DataFrame:
        """One row per (phase, member) with the member's seed flag."""
        rows = [
            {"phase": i, "node_id": node_id, "seed": node_id in phase.seeds}
            for i, phase in enumerate(self.phases)
            for node_id in phase.members
        ]
        if not rows:
            return pl.DataFrame(schema={"phase": pl.Int64, "node_id": pl.Utf8, "seed": pl.Boolean})
        return pl.DataFrame(rows)


class ClusterGrower:
    """Greedy cluster growth with a restart policy.

    Parameters
    ----------
    graph : DotGraph
        Graph to read; it must not be mutated while growing.
    max_restarts : int
        How many reseeded phases keep growing after the first stall. With
        ``0`` the run ends right after reporting the first reseed.
    on_trace : callable, optional
        Called with every trace line as it is produced.
    """

    def __init__(
        self,
        graph: DotGraph,
        *,
        max_restarts: int = DEFAULT_MAX_RESTARTS,
        on_trace: Optional[Callable[[str], None]] = None,
    ):
        if max_restarts < 0:
            raise ValueError("max_restarts must be >= 0")
        self.graph = graph
        self.max_restarts = max_restarts
        self.on_trace = on_trace
        self._trace: list[str] = []

    def _emit(self, line: str) -> None:
        self._trace.append(line)
        if self.on_trace is not None:
            self.on_trace(line)

    def _id(self, ix: int) -> str:
        return self.graph[ix].id

    def frontier(self, cluster: Collection[int]) -> list[int]:
        """Undirected neighbours of the cluster that are not members, deduplicated."""
        seen: dict[int, None] = {}
        for ix in cluster:
            for nb in self.graph.neighbors_undirected(ix):
                if nb not in cluster:
                    seen.setdefault(nb, None)
        return list(seen)

    def score(self, cluster: Collection[int]) -> Score:
        return score(cluster, self.graph)

    def _grow_phase(self, cluster: dict[int, None], pool: dict[int, None]) -> list[Candidate]:
        """Grow *cluster* in place until a pass accepts nothing.

        Returns the rejected candidates sharing the lowest total score in
        the stalled pass.
        """
        while True:
            candidates = []
            for ix in self.frontier(cluster):
                members = set(cluster)
                members.add(ix)
                candidates.append(Candidate(ix, self.score(members)))

            current = self.score(cluster)
            added = False
            for cand in candidates:
                s = cand.score
                if s.total <= current.total or (
                    s.num_deps == current.num_deps and s.num_outputs > current.num_outputs
                ):
                    self._emit(f"    adding {self._id(cand.index)} (score: {_fmt(s)})")
                    cluster[cand.index] = None
                    pool.pop(cand.index, None)
                    added = True
            self._emit("    ---------")

            if not added:
                if not candidates:
                    logger.debug("empty frontier, nothing left to grow into")
                    return []
                lowest = min(c.score.total for c in candidates)
                best = [c for c in candidates if c.score.total <= lowest]
                for cand in best:
                    self._emit(f"    lowest would have been {self._id(cand.index)} (score: {cand.score.total})")
                return best

    def run(self, seeds: Sequence[str]) -> GrowthResult:
        """Grow from *seeds* (node ids), restarting on stalls per ``max_restarts``.

        Raises
        ------
        KeyError
            If a seed id is not a node of the graph.
        """
        self._trace = []
        id_map = self.graph.id_map()
        pool: dict[int, None] = dict.fromkeys(self.graph.node_indices())
        cluster: dict[int, None] = {}
        for name in seeds:
            ix = id_map[name]
            cluster[ix] = None
            pool.pop(ix, None)

        result = GrowthResult(trace=self._trace)
        phase_seeds = list(seeds)
        restarts = 0
        self._emit(f"starting with {', '.join(phase_seeds)} (score: {_fmt(self.score(cluster))})")
        while True:
            best = self._grow_phase(cluster, pool)
            phase = GrowthPhase(
                seeds=phase_seeds,
                members=[self._id(ix) for ix in cluster],
                score=self.score(cluster),
                lowest_rejected=[(self._id(c.index), c.score.total) for c in best],
            )
            result.phases.append(phase)
            logger.debug("phase %d stalled with %d members", len(result.phases), len(phase.members))

            if not pool:
                logger.debug("every node is clustered, stopping")
                break
            next_ix = next(iter(pool))
            pool.pop(next_ix)
            cluster = {next_ix: None}
            phase_seeds = [self._id(next_ix)]
            self._emit(f"starting with {phase_seeds[0]} (score: {_fmt(self.score(cluster))})")
            if restarts >= self.max_restarts:
                result.next_seed = phase_seeds[0]
                break
            restarts += 1
        return result


def grow(
    graph: DotGraph,
    seeds: Iterable[str],
    *,
    max_restarts: int = DEFAULT_MAX_RESTARTS,
    on_trace: Optional[Callable[[str], None]] = None,
) -> GrowthResult:
    """Functional shortcut for ``ClusterGrower(...).run(seeds)``."""
    return ClusterGrower(graph, max_restarts=max_restarts, on_trace=on_trace).run(list(seeds))
