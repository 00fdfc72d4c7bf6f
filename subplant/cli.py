"""Command line entry point: read a DOT recipe graph and grow a sub-plant."""
from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from .algorithms.cluster import DEFAULT_MAX_RESTARTS, ClusterGrower
from .io.dot import read_dot

DEFAULT_INPUT = "recipe.dot"
DEFAULT_SEEDS = ("sulfuric-acid",)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="subplant",
        description="Greedily grow a self-contained sub-plant from seed nodes of a DOT graph.",
    )
    ap.add_argument("path", nargs="?", default=DEFAULT_INPUT, help=f"DOT file (default: {DEFAULT_INPUT})")
    ap.add_argument(
        "--seed",
        dest="seeds",
        action="append",
        metavar="ID",
        help=f"Seed node id, repeatable (default: {', '.join(DEFAULT_SEEDS)})",
    )
    ap.add_argument(
        "--max-restarts",
        type=int,
        default=DEFAULT_MAX_RESTARTS,
        help="Reseeded phases that keep growing after a stall (default: %(default)s)",
    )
    ap.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s)")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # read and parse failures are fatal
    graph = read_dot(args.path)
    grower = ClusterGrower(graph, max_restarts=args.max_restarts, on_trace=print)
    grower.run(args.seeds or list(DEFAULT_SEEDS))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
