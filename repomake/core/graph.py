# SPDX-License-Identifier: MIT
"""The target graph.

BuildGraph owns every Node of a build. It resolves dependency references
to nodes, rejects malformed graphs (unknown references, cycles, two nodes
claiming the same output) and freezes the nodes before any rule is
emitted.

Example:
    graph = BuildGraph(config)
    graph.add(lib)
    graph.add(app)
    graph.freeze()          # link + validate + freeze
    for node in graph:      # sorted by target reference
        node.write_make(makefile)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repomake.core.errors import DependencyCycleError, DuplicateOutputError, GraphError
from repomake.core.target import TargetInfo

if TYPE_CHECKING:
    from collections.abc import Iterator

    from repomake.core.config import BuildConfig
    from repomake.core.node import Node

logger = logging.getLogger(__name__)


class BuildGraph:
    """All nodes of a build, keyed by target reference.

    Attributes:
        config: Global configuration shared by the nodes.
    """

    def __init__(self, config: BuildConfig) -> None:
        self.config = config
        self._nodes: dict[TargetInfo, Node] = {}
        self._linked = False
        self._frozen = False

    def add(self, node: Node) -> Node:
        """Register a node.

        Raises:
            GraphError: If the graph is already linked or another node has
                the same target reference.
        """
        if self._linked:
            raise GraphError("cannot add nodes to a linked graph", node.target.full_path)
        if node.target in self._nodes:
            raise GraphError("target is defined twice", node.target.full_path)
        self._nodes[node.target] = node
        return node

    def get(self, target: TargetInfo | str) -> Node:
        """Look up a node by reference.

        Raises:
            GraphError: If no node has that reference.
        """
        if isinstance(target, str):
            target = TargetInfo.parse(target)
        try:
            return self._nodes[target]
        except KeyError:
            raise GraphError("unknown target", target.full_path) from None

    @property
    def frozen(self) -> bool:
        return self._frozen

    def link(self) -> None:
        """Resolve every dependency reference and check for cycles.

        Raises:
            GraphError: If a dependency names an unknown target.
            DependencyCycleError: If the dependency relation has a cycle.
        """
        if self._linked:
            return
        for node in self:
            resolved: list[Node] = []
            for dep in node.dependencies:
                if dep not in self._nodes:
                    raise GraphError(
                        f"dependency {dep.full_path} does not exist",
                        node.target.full_path,
                    )
                resolved.append(self._nodes[dep])
            node.link(resolved)
        self.check_acyclic()
        self._linked = True
        logger.debug("Linked %d targets", len(self._nodes))

    def check_acyclic(self) -> None:
        """Raise DependencyCycleError if any dependency chain loops.

        The depth-first search keeps an explicit stack, so chains of any
        length are checked.
        """
        done: set[TargetInfo] = set()
        for root in sorted(self._nodes):
            if root in done:
                continue
            stack = [root]
            on_stack = {root}
            pending = [iter(self._nodes[root].dependencies)]
            while pending:
                dep = next(pending[-1], None)
                if dep is None:
                    pending.pop()
                    target = stack.pop()
                    on_stack.discard(target)
                    done.add(target)
                    continue
                if dep in on_stack:
                    chain = [t.full_path for t in stack[stack.index(dep) :]]
                    raise DependencyCycleError(chain + [dep.full_path])
                if dep not in done:
                    stack.append(dep)
                    on_stack.add(dep)
                    pending.append(iter(self._nodes[dep].dependencies))

    def validate(self) -> None:
        """Check that no two nodes declare the same output path.

        Raises:
            DuplicateOutputError: Naming the path and both targets.
        """
        owners: dict[str, Node] = {}
        for node in self:
            for output in node.own_outputs():
                other = owners.get(output.path)
                if other is not None and other is not node:
                    raise DuplicateOutputError(
                        output.path, other.target.full_path, node.target.full_path
                    )
                owners[output.path] = node

    def freeze(self) -> None:
        """Link, validate and freeze every node. Idempotent."""
        if self._frozen:
            return
        self.link()
        self.validate()
        for node in self:
            node.freeze()
        self._frozen = True
        logger.debug("Froze %d targets", len(self._nodes))

    def __iter__(self) -> Iterator[Node]:
        return iter([self._nodes[t] for t in sorted(self._nodes)])

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, target: object) -> bool:
        if isinstance(target, str):
            target = TargetInfo.parse(target)
        return target in self._nodes

    def __repr__(self) -> str:
        return f"BuildGraph({len(self._nodes)} targets)"
