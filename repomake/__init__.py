# SPDX-License-Identifier: MIT
"""
Repomake: generates Makefiles from a declarative graph of build targets.

Targets (shell generators, Java libraries, ...) declare their sources,
flags and dependencies; repomake aggregates those across the graph and
emits a Makefile that is safe to run incrementally and in parallel.
"""

from __future__ import annotations

__version__ = "0.1.0"

from repomake.core.config import BuildConfig  # noqa: E402
from repomake.core.graph import BuildGraph  # noqa: E402
from repomake.core.registry import graph_from_specs  # noqa: E402
from repomake.generators.makefile import MakefileGenerator  # noqa: E402
from repomake.nodes import GenShNode, JavaLibraryNode  # noqa: E402

# Public API exports
__all__ = [
    # Version
    "__version__",
    # Core classes
    "BuildConfig",
    "BuildGraph",
    "graph_from_specs",
    # Node kinds
    "GenShNode",
    "JavaLibraryNode",
    # Generators
    "MakefileGenerator",
]
