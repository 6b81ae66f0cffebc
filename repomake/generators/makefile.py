# SPDX-License-Identifier: MIT
"""Makefile generator.

Turns a BuildGraph into a single Makefile: a global prologue, the rules of
every node in sorted target order, and the ``all`` and ``clean`` entry
points. The whole file is rendered in memory first, so a graph that fails
to generate never leaves a partial Makefile behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repomake.core.makefile import Makefile
from repomake.generators.generator import BaseGenerator

if TYPE_CHECKING:
    from repomake.core.config import BuildConfig
    from repomake.core.graph import BuildGraph
    from repomake.core.node import Node

logger = logging.getLogger(__name__)

HEADER = "# Generated by repomake. Do not edit."


def write_make_head(config: BuildConfig, out: Makefile) -> None:
    """Write the global prologue every generated Makefile starts with.

    Args:
        config: Global configuration providing the tree roots.
        out: Makefile to append to.
    """
    out.append_raw(HEADER)
    out.append_raw("")
    out.append_raw("ROOT_DIR := $(CURDIR)")
    out.append_raw(f"SRC_DIR := {config.source_dir}")
    out.append_raw(f"GEN_DIR := {config.genfile_dir}")
    out.append_raw(f"OBJ_DIR := {config.object_dir}")
    out.append_raw("")
    out.append_raw(".DEFAULT_GOAL := all")
    out.append_raw(".SUFFIXES:")
    out.append_raw(".DELETE_ON_ERROR:")


class MakefileGenerator(BaseGenerator):
    """Generator producing a Makefile for the whole graph.

    Example:
        graph = graph_from_specs(config, specs)
        MakefileGenerator().generate(graph, ".")
        # Creates ./Makefile; run with `make -j`
    """

    def __init__(self, *, output_filename: str = "Makefile", silent: bool = True) -> None:
        """Initialize the Makefile generator.

        Args:
            output_filename: Name of the Makefile to write.
            silent: Prefix commands with "@" so only progress lines print.
        """
        super().__init__("make", output_filename)
        self._silent = silent

    def build(self, graph: BuildGraph) -> Makefile:
        """Emit every rule of ``graph`` into a new Makefile.

        Freezes the graph first, so link and validation errors surface
        here before any rule is written.
        """
        graph.freeze()
        out = Makefile(silent=self._silent)
        write_make_head(graph.config, out)

        nodes = list(graph)
        kinds: dict[str, type[Node]] = {}
        for node in nodes:
            kinds.setdefault(node.kind, type(node))
        for kind in sorted(kinds):
            kinds[kind].write_make_head(graph.config, out)

        for node in nodes:
            node.write_make(out)

        all_rule = out.start_rule(
            "all", [node.user_target_name() for node in nodes], phony=True
        )
        out.finish_rule(all_rule)

        clean_rule = out.start_rule("clean", phony=True)
        for node in nodes:
            node.write_make_clean(clean_rule)
        out.finish_rule(clean_rule)

        logger.debug("Emitted %d rules for %d targets", len(out.rules), len(nodes))
        return out

    def render(self, graph: BuildGraph) -> str:
        """Return the Makefile text for ``graph`` without writing it."""
        return self.build(graph).render()
