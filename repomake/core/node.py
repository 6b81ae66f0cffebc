# SPDX-License-Identifier: MIT
"""Node base class and the transitive aggregation engine.

A Node is one buildable unit in the target graph. Each node kind declares
what it contributes locally (flags, include dirs, produced objects,
environment, dependency files) through a fixed set of hooks, and decides
per collection type whether queries continue across its outgoing edges.
The aggregation engine below is written once against those hooks.

Lifecycle: a node is constructed from configuration, linked by the
BuildGraph (every dependency reference resolved to a Node), frozen, and
from then on only read. Queries run before linking raise GraphError;
query results are memoized only after freezing.
"""

from __future__ import annotations

import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from repomake.core.component import ComponentHelper
from repomake.core.errors import DependencyCycleError, GraphError
from repomake.core.makefile import make_escape
from repomake.core.reader import BuildFileReader
from repomake.core.resource import Resource, ResourceFileSet, ResourceRoot
from repomake.core.target import TargetInfo
from repomake.core.types import DependencyCollectionType, LanguageType

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from repomake.core.config import BuildConfig
    from repomake.core.makefile import Makefile, Rule

logger = logging.getLogger(__name__)

BINARIES = DependencyCollectionType.BINARIES
INCLUDE_DIRS = DependencyCollectionType.INCLUDE_DIRS
COMPILE_FLAGS = DependencyCollectionType.COMPILE_FLAGS
LINK_FLAGS = DependencyCollectionType.LINK_FLAGS
ENV_VARIABLES = DependencyCollectionType.ENV_VARIABLES
DEPENDENCY_FILES = DependencyCollectionType.DEPENDENCY_FILES


@dataclass
class LocalContributions:
    """What a node declares for one language, before any aggregation."""

    compile_flags: list[str] = field(default_factory=list)
    link_flags: list[str] = field(default_factory=list)
    include_dirs: list[str] = field(default_factory=list)
    env_variables: dict[str, str] = field(default_factory=dict)
    object_files: list[Resource] = field(default_factory=list)


class Node(ABC):
    """A vertex of the target graph.

    Subclasses implement local_write_make() and extend the local_* hooks.
    Contributions declared for LanguageType.NO_LANG apply to every
    language.

    Attributes:
        target: Reference identifying this node.
        config: Global configuration.
        dependencies: Ordered dependency references. Duplicates are allowed
            and collapse during traversal.
    """

    kind: ClassVar[str] = "node"

    def __init__(
        self,
        target: TargetInfo,
        config: BuildConfig,
        *,
        dependencies: Iterable[TargetInfo | str] = (),
        component: ComponentHelper | None = None,
    ) -> None:
        self.target = target
        self.config = config
        self.component = component or ComponentHelper()
        self._local: dict[LanguageType, LocalContributions] = {}
        self._dependency_nodes: list[Node] | None = None
        self._frozen = False
        self._cache: dict[tuple[str, LanguageType, bool], Any] = {}
        self.dependencies: list[TargetInfo] = []
        for dep in dependencies:
            self.add_dependency(dep)

    @classmethod
    def from_fields(
        cls, target: TargetInfo, config: BuildConfig, fields: Mapping[str, Any]
    ) -> Node:
        """Create a node from the fields of its build-file entry."""
        reader = BuildFileReader(target, config, fields)
        node = cls(
            target,
            config,
            dependencies=[
                TargetInfo.parse(d, target.dir)
                for d in reader.repeated_strings("dependencies")
            ],
        )
        node.parse(reader)
        return node

    def parse(self, reader: BuildFileReader) -> None:
        """Read kind-specific fields. Generic component fields live here."""
        component = reader.string("component")
        base_dir = reader.string("base_dir")
        if component or base_dir:
            self.component = ComponentHelper(component, base_dir)

    # Construction

    def _check_mutable(self) -> None:
        if self._frozen:
            raise GraphError("node is frozen", self.target.full_path)

    def add_dependency(self, dep: TargetInfo | str) -> None:
        self._check_mutable()
        if isinstance(dep, str):
            dep = TargetInfo.parse(dep, self.target.dir)
        self.dependencies.append(dep)

    def _contributions(self, lang: LanguageType) -> LocalContributions:
        self._check_mutable()
        return self._local.setdefault(lang, LocalContributions())

    def add_compile_flags(self, lang: LanguageType, *flags: str) -> None:
        self._contributions(lang).compile_flags.extend(flags)

    def add_link_flags(self, lang: LanguageType, *flags: str) -> None:
        self._contributions(lang).link_flags.extend(flags)

    def add_include_dirs(self, lang: LanguageType, *dirs: str) -> None:
        self._contributions(lang).include_dirs.extend(dirs)

    def add_env_variable(self, lang: LanguageType, name: str, value: str) -> None:
        self._contributions(lang).env_variables[name] = value

    def add_object_files(self, lang: LanguageType, *files: Resource) -> None:
        self._contributions(lang).object_files.extend(files)

    def _declared(self, lang: LanguageType) -> list[LocalContributions]:
        keys = [LanguageType.NO_LANG]
        if lang is not LanguageType.NO_LANG:
            keys.append(lang)
        return [self._local[k] for k in keys if k in self._local]

    # Graph state

    @property
    def linked(self) -> bool:
        return self._dependency_nodes is not None

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def dependency_nodes(self) -> list[Node]:
        """Resolved dependency nodes, in declaration order.

        Raises:
            GraphError: If the node has not been linked yet.
        """
        if self._dependency_nodes is None:
            raise GraphError("node queried before it was linked", self.target.full_path)
        return self._dependency_nodes

    def link(self, nodes: list[Node]) -> None:
        """Attach resolved dependency nodes. Called by BuildGraph.link()."""
        self._check_mutable()
        self._dependency_nodes = list(nodes)

    def freeze(self) -> None:
        """Make the node read-only and enable query memoization."""
        if not self.linked:
            raise GraphError("node frozen before it was linked", self.target.full_path)
        self._frozen = True
        self._cache.clear()

    # Declared files

    def own_inputs(self) -> list[Resource]:
        """Files this node reads that are declared explicitly."""
        return []

    def own_outputs(self) -> list[Resource]:
        """Files this node alone produces."""
        return [f for c in self._local.values() for f in c.object_files]

    # Local hooks

    def local_compile_flags(self, lang: LanguageType) -> Iterable[str]:
        for c in self._declared(lang):
            yield from c.compile_flags

    def local_link_flags(self, lang: LanguageType) -> Iterable[str]:
        for c in self._declared(lang):
            yield from c.link_flags

    def local_include_dirs(self, lang: LanguageType) -> Iterable[str]:
        for c in self._declared(lang):
            yield from c.include_dirs

    def local_env_variables(self, lang: LanguageType) -> Mapping[str, str]:
        env: dict[str, str] = {}
        for c in self._declared(lang):
            env.update(c.env_variables)
        return env

    def local_object_files(self, lang: LanguageType) -> Iterable[Resource]:
        for c in self._declared(lang):
            yield from c.object_files

    def local_object_roots(self, lang: LanguageType) -> Iterable[Resource]:
        return ()

    def local_dependency_files(self, lang: LanguageType) -> Iterable[Resource]:
        return ()

    def propagates(self, collection: DependencyCollectionType, lang: LanguageType) -> bool:
        """Whether queries for ``collection`` continue across this node's edges.

        When False, the direct dependencies' local contributions are still
        merged, but nothing reachable only through them is.
        """
        return True

    # Aggregation

    def _walk(
        self,
        collection: DependencyCollectionType,
        lang: LanguageType,
        merge: Callable[[Node], None],
        include_self: bool,
    ) -> None:
        """Depth-first, language-filtered walk over the dependency closure.

        Each reachable node is expanded at most once and its local
        contribution merged at most once. A node first reached across a
        blocking edge (merged only) is still expanded if a propagating edge
        reaches it later. The walk keeps an explicit stack, so its depth is
        not bounded by the interpreter recursion limit.

        Raises:
            DependencyCycleError: If the walk re-enters a node on its stack.
        """
        expanded: set[TargetInfo] = set()
        merged: set[TargetInfo] = set()
        on_stack: set[TargetInfo] = set()
        # Frames of (node, propagates, remaining dependencies).
        stack: list[tuple[Node, bool, Iterator[Node]]] = []
        if not include_self:
            merged.add(self.target)

        def merge_once(node: Node) -> None:
            if node.target not in merged:
                merged.add(node.target)
                merge(node)

        def enter(node: Node) -> None:
            expanded.add(node.target)
            on_stack.add(node.target)
            merge_once(node)
            through = node.propagates(collection, lang)
            stack.append((node, through, iter(node.dependency_nodes)))

        enter(self)
        while stack:
            node, through, remaining = stack[-1]
            dep = next(remaining, None)
            if dep is None:
                stack.pop()
                on_stack.discard(node.target)
                continue
            if dep.target in on_stack:
                chain = [n.target.full_path for n, _, _ in stack]
                start = chain.index(dep.target.full_path)
                raise DependencyCycleError(chain[start:] + [dep.target.full_path])
            if through:
                if dep.target not in expanded:
                    enter(dep)
            else:
                merge_once(dep)

    def _query(
        self,
        hook: str,
        lang: LanguageType,
        include_self: bool,
        compute: Callable[[], Any],
    ) -> Any:
        key = (hook, lang, include_self)
        if self._frozen and key in self._cache:
            return self._cache[key]
        result = compute()
        if self._frozen:
            self._cache[key] = result
        return result

    def _collect_strings(
        self,
        collection: DependencyCollectionType,
        hook: str,
        lang: LanguageType,
        include_self: bool,
    ) -> frozenset[str]:
        def compute() -> frozenset[str]:
            values: set[str] = set()

            def merge(node: Node) -> None:
                values.update(getattr(node, hook)(lang))

            self._walk(collection, lang, merge, include_self)
            return frozenset(values)

        return self._query(hook, lang, include_self, compute)

    def _collect_files(
        self,
        collection: DependencyCollectionType,
        hook: str,
        lang: LanguageType,
        include_self: bool,
    ) -> ResourceFileSet:
        def compute() -> ResourceFileSet:
            files = ResourceFileSet()

            def merge(node: Node) -> None:
                files.add_all(getattr(node, hook)(lang))

            self._walk(collection, lang, merge, include_self)
            return files

        return self._query(hook, lang, include_self, compute).copy()

    def _collect_env(self, lang: LanguageType, include_self: bool) -> dict[str, str]:
        def compute() -> dict[str, str]:
            env: dict[str, str] = {}

            def merge(node: Node) -> None:
                for key, value in node.local_env_variables(lang).items():
                    env.setdefault(key, value)

            self._walk(ENV_VARIABLES, lang, merge, include_self)
            return env

        return dict(self._query("local_env_variables", lang, include_self, compute))

    def include_dirs(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> list[str]:
        """Include directories (classpath roots for Java), longest first.

        Equal-length directories are ordered lexicographically.
        """
        dirs = self._collect_strings(
            INCLUDE_DIRS, "local_include_dirs", lang, include_self
        )
        return sorted(dirs, key=lambda d: (-len(d), d))

    def compile_flags(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> list[str]:
        return sorted(
            self._collect_strings(
                COMPILE_FLAGS, "local_compile_flags", lang, include_self
            )
        )

    def link_flags(self, lang: LanguageType, *, include_self: bool = True) -> list[str]:
        return sorted(
            self._collect_strings(LINK_FLAGS, "local_link_flags", lang, include_self)
        )

    def object_files(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> ResourceFileSet:
        return self._collect_files(BINARIES, "local_object_files", lang, include_self)

    def object_roots(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> ResourceFileSet:
        return self._collect_files(BINARIES, "local_object_roots", lang, include_self)

    def env_variables(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> dict[str, str]:
        """Environment bindings; the first binding seen for a name wins."""
        return self._collect_env(lang, include_self)

    def dependency_files(
        self, lang: LanguageType, *, include_self: bool = True
    ) -> ResourceFileSet:
        return self._collect_files(
            DEPENDENCY_FILES, "local_dependency_files", lang, include_self
        )

    # The input_* variants aggregate over dependencies only; rules use them
    # to gather prerequisites.

    def input_include_dirs(self, lang: LanguageType) -> list[str]:
        return self.include_dirs(lang, include_self=False)

    def input_compile_flags(self, lang: LanguageType) -> list[str]:
        return self.compile_flags(lang, include_self=False)

    def input_link_flags(self, lang: LanguageType) -> list[str]:
        return self.link_flags(lang, include_self=False)

    def input_object_files(self, lang: LanguageType) -> ResourceFileSet:
        return self.object_files(lang, include_self=False)

    def input_env_variables(self, lang: LanguageType) -> dict[str, str]:
        return self.env_variables(lang, include_self=False)

    def input_dependency_files(self, lang: LanguageType) -> ResourceFileSet:
        return self.dependency_files(lang, include_self=False)

    # Paths

    def component_helper(self, path: str) -> ComponentHelper:
        """Helper responsible for ``path``: ours if it covers it, else identity."""
        if self.component.covers_path(path):
            return self.component
        return ComponentHelper()

    def touchfile(self, suffix: str) -> Resource:
        """Marker file signalling that one of this node's steps completed."""
        return Resource(
            posixpath.join(
                self.config.object_dir,
                self.target.dir,
                f".{self.target.local_name}.{suffix}",
            ),
            ResourceRoot.OBJECT,
        )

    def user_target_name(self) -> str:
        """Name users pass to make to build this target."""
        return self.target.make_path

    # Emission

    @classmethod
    def write_make_head(cls, config: BuildConfig, out: Makefile) -> None:
        """Global definitions this kind's rules rely on.

        Called once per Makefile for every kind present in the graph,
        before any rule is written.
        """

    def write_make(self, out: Makefile) -> None:
        logger.debug("Writing rules for %s (%s)", self.target, self.kind)
        self.local_write_make(out)

    @abstractmethod
    def local_write_make(self, out: Makefile) -> None:
        """Emit this node's rules into ``out``."""

    def write_make_clean(self, rule: Rule) -> None:
        self.local_write_make_clean(rule)

    def local_write_make_clean(self, rule: Rule) -> None:
        for output in self.own_outputs():
            rule.write_command(f"rm -f {output.path}")

    def write_base_user_target(self, out: Makefile, targets: Iterable[Resource]) -> None:
        """Phony rule so users can type ``make path/to/target``."""
        rule = out.start_rule(self.user_target_name(), targets, phony=True)
        out.finish_rule(rule)

    def finish_touchfile_rule(self, out: Makefile, rule: Rule, touchfile: Resource) -> None:
        """Append the marker-writing commands to a primary rule and commit it."""
        rule.write_command(f"mkdir -p {touchfile.dirname}")
        rule.write_command(f"touch {touchfile.path}")
        out.finish_rule(rule)

    def write_touchfile_outputs(
        self,
        out: Makefile,
        touchfile: Resource,
        outputs: Iterable[Resource],
        describe_missing: Callable[[Resource], str],
    ) -> None:
        """One rule per real output of a touchfile-gated tool invocation.

        Each rule depends only on the marker, fails with the diagnostic from
        ``describe_missing`` if the tool did not produce the file, and
        re-touches the file so make's timestamps stay consistent. This keeps
        a single tool invocation while giving make one rule per output,
        which parallel make requires.
        """
        for output in outputs:
            rule = out.start_rule(output, touchfile)
            message = describe_missing(output).replace('"', '\\"')
            rule.write_command(
                make_escape(
                    f'if [ ! -f {output.path} ]; then echo "{message}"; exit 1; fi'
                )
            )
            rule.write_command(f"touch {output.path}")
            out.finish_rule(rule)

    def write_root_touchfile(
        self, out: Makefile, root_touchfile: Resource, outputs: Iterable[Resource]
    ) -> None:
        """Directory-level marker for consumers that need the whole group."""
        rule = out.start_rule(root_touchfile, outputs)
        rule.write_command(f"mkdir -p {root_touchfile.dirname}")
        rule.write_command(f"touch {root_touchfile.path}")
        out.finish_rule(rule)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.target.full_path!r})"
