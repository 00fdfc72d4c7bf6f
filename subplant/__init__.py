# subplant/__init__.py
"""subplant: DOT dependency graphs and greedy sub-plant clustering."""
from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    "adapters": "subplant.adapters",
    "algorithms": "subplant.algorithms",
    "core": "subplant.core",
    "io": "subplant.io",
    "cli": "subplant.cli",
    "dot": "subplant.io.dot",
    "cluster": "subplant.algorithms.cluster",
}

# Curated top-level symbols (lazy). name -> (module, attribute)
_lazy_symbols: dict[str, tuple[str, str]] = {
    # Core
    "DotGraph": ("subplant.core.graph", "DotGraph"),
    "DotGraphBuilder": ("subplant.core.builder", "DotGraphBuilder"),
    "GraphType": ("subplant.core.structure", "GraphType"),
    "Direction": ("subplant.core.structure", "Direction"),
    "Node": ("subplant.core.structure", "Node"),
    "Edge": ("subplant.core.structure", "Edge"),

    # DOT I/O
    "parse": ("subplant.io.dot", "parse"),
    "write": ("subplant.io.dot", "write"),
    "read_dot": ("subplant.io.dot", "read_dot"),
    "write_dot": ("subplant.io.dot", "write_dot"),
    "DotParseError": ("subplant.io.dot", "DotParseError"),

    # Clustering
    "ClusterGrower": ("subplant.algorithms.cluster", "ClusterGrower"),
    "grow": ("subplant.algorithms.cluster", "grow"),
    "score": ("subplant.algorithms.cluster", "score"),

    # Adapters
    "to_nx": ("subplant.adapters.networkx", "to_nx"),
    "from_nx": ("subplant.adapters.networkx", "from_nx"),
    "to_dataframes": ("subplant.adapters.dataframe_adapter", "to_dataframes"),
    "from_dataframes": ("subplant.adapters.dataframe_adapter", "from_dataframes"),
}

__all__ = sorted(set(list(_lazy_submodules) + list(_lazy_symbols)))


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("subplant")
except PackageNotFoundError:
    __version__ = "0.0.0"
