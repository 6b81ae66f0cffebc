# SPDX-License-Identifier: MIT
"""Java library targets (``java_library``).

All sources of a java_library are compiled by a single ``javac``
invocation. Since javac writes one class file per source (at a location
derived from the package name, which repomake cannot see), the node
predicts every class file path and emits one rule per class file gated on
a touchfile, plus a directory-level marker for consumers that only need
the whole library.

Example build entry:
    {"kind": "java_library", "dir": "java", "name": "acme",
     "java_sources": ["com/acme/App.java", "com/acme/Util.java"],
     "java_root": ".",
     "java_compile_args": ["-source", "17"]}
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from repomake.core.component import has_path_prefix, strip_path_prefix, strip_special_dirs
from repomake.core.config import JAVA_COMPILE_FLAGS
from repomake.core.errors import ConfigurationError, GenerateError, InvalidSourceError
from repomake.core.node import Node
from repomake.core.registry import register_node_kind
from repomake.core.resource import Resource, ResourceRoot, canonical_path
from repomake.core.types import LanguageType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from repomake.core.component import ComponentHelper
    from repomake.core.config import BuildConfig
    from repomake.core.makefile import Makefile, Rule
    from repomake.core.reader import BuildFileReader
    from repomake.core.target import TargetInfo

JAVA = LanguageType.JAVA
JAVA_SUFFIX = ".java"
CLASS_SUFFIX = ".class"


@register_node_kind
class JavaLibraryNode(Node):
    """Compiles a set of Java sources into class files.

    Attributes:
        sources: Java source files.
        java_root: Directory javac's package layout is relative to.
        java_classpath: Classpath roots, longest first.
        java_local_compile_args: javac arguments for this target only.
        java_compile_args: javac arguments inherited by dependents.
        java_jar_args: Archive arguments, exposed as link flags.
    """

    kind = "java_library"

    def __init__(
        self,
        target: TargetInfo,
        config: BuildConfig,
        *,
        sources: Iterable[Resource] = (),
        java_root: str = ".",
        additional_classpaths: Iterable[str] = (),
        local_compile_args: Iterable[str] = (),
        compile_args: Iterable[str] = (),
        jar_args: Iterable[str] = (),
        dependencies: Iterable[TargetInfo | str] = (),
        component: ComponentHelper | None = None,
    ) -> None:
        super().__init__(
            target, config, dependencies=dependencies, component=component
        )
        self.sources: list[Resource] = []
        self.java_root = "."
        self.java_classpath: list[str] = []
        self.java_local_compile_args = list(local_compile_args)
        self.java_compile_args = list(compile_args)
        self.java_jar_args = list(jar_args)
        self._setup(list(sources), java_root, list(additional_classpaths))

    def parse(self, reader: BuildFileReader) -> None:
        super().parse(reader)
        self.java_local_compile_args = reader.repeated_strings("java_local_compile_args")
        self.java_compile_args = reader.repeated_strings("java_compile_args")
        self.java_jar_args = reader.repeated_strings("java_jar_args")
        self._setup(
            reader.repeated_files("java_sources"),
            reader.single_directory("java_root", "."),
            [r.path for r in reader.repeated_files("java_additional_classpaths")],
        )

    def _setup(
        self, sources: list[Resource], java_root: str, additional: list[str]
    ) -> None:
        """Validate sources and compute the classpath.

        Raises:
            InvalidSourceError: If a source is not a .java file.
            ConfigurationError: If java_root lies outside the project.
        """
        for source in sources:
            if not source.has_suffix(JAVA_SUFFIX):
                raise InvalidSourceError(
                    source.path, self.target.full_path, JAVA_SUFFIX
                )
        java_root = canonical_path(java_root)
        if java_root.startswith("/") or java_root == ".." or java_root.startswith("../"):
            raise ConfigurationError(
                f"java_root {java_root} is outside the project", self.target.full_path
            )

        self.sources = list(dict.fromkeys(sources))
        self.java_root = java_root

        relative_root = strip_special_dirs(self.config, java_root)
        classpath: list[str] = [canonical_path(p) for p in additional]
        classpath.append(java_root)
        classpath.append(canonical_path(posixpath.join(self.config.genfile_dir, relative_root)))
        classpath.append(canonical_path(posixpath.join(self.config.object_dir, relative_root)))
        self.java_classpath = sort_longest_first(classpath)

    # Paths

    def object_root(self) -> Resource:
        """Private directory javac writes this library's classes to."""
        return Resource.from_local_path(
            self.config.object_dir, f"lib_{self.target.make_path}", ResourceRoot.OBJECT
        )

    def root_touchfile(self) -> Resource:
        return Resource.from_local_path(
            self.object_root().path, ".dummy.touch", ResourceRoot.OBJECT
        )

    def class_file(self, source: Resource) -> Resource:
        """Predict where javac will write the class compiled from ``source``.

        The global roots are stripped from the source and from every
        classpath root first, so a generated source under any classpath
        root lines up with it. Then the longest matching classpath root is
        stripped, the remainder is rewritten through the component helper
        and rooted under object_root().
        """
        if not source.has_suffix(JAVA_SUFFIX):
            raise InvalidSourceError(source.path, self.target.full_path, JAVA_SUFFIX)
        path = strip_special_dirs(
            self.config, source.with_suffix(JAVA_SUFFIX, CLASS_SUFFIX).path
        )
        roots = sort_longest_first(
            strip_special_dirs(self.config, root) for root in self.java_classpath
        )
        for root in roots:
            if root not in ("", ".") and has_path_prefix(path, root):
                path = strip_path_prefix(path, root)
                break
        path = self.component_helper(path).rewrite_file(self.config, path)
        if path.startswith("../") or path.startswith("/"):
            raise ConfigurationError(
                f"cannot place class file for {source.path} under the object tree",
                self.target.full_path,
            )
        return Resource.from_local_path(
            self.object_root().path, path, ResourceRoot.OBJECT
        )

    def class_files(self) -> list[Resource]:
        return [self.class_file(s) for s in self.sources]

    def own_inputs(self) -> list[Resource]:
        return list(self.sources)

    def own_outputs(self) -> list[Resource]:
        return super().own_outputs() + self.class_files()

    # Aggregation hooks

    def local_compile_flags(self, lang: LanguageType) -> Iterable[str]:
        yield from super().local_compile_flags(lang)
        if lang is JAVA:
            yield from self.java_compile_args

    def local_link_flags(self, lang: LanguageType) -> Iterable[str]:
        yield from super().local_link_flags(lang)
        if lang is JAVA:
            yield from self.java_jar_args

    def local_include_dirs(self, lang: LanguageType) -> Iterable[str]:
        yield from super().local_include_dirs(lang)
        yield from self.java_classpath
        yield self.object_root().path

    def local_object_files(self, lang: LanguageType) -> Iterable[Resource]:
        yield from super().local_object_files(lang)
        yield from self.class_files()

    def local_object_roots(self, lang: LanguageType) -> Iterable[Resource]:
        yield from super().local_object_roots(lang)
        yield self.root_touchfile()

    def local_dependency_files(self, lang: LanguageType) -> Iterable[Resource]:
        yield from super().local_dependency_files(lang)
        yield from self.sources
        # Dependent javac invocations read our class files too.
        yield from self.local_object_files(lang)

    # Emission

    def javac_command(self) -> str:
        config = self.config
        compile_args = set(self.compile_flags(JAVA))
        compile_args.update(self.java_local_compile_args)
        compile_args.update(config.flags(JAVA_COMPILE_FLAGS))

        classpath: list[str] = []
        for entry in [
            config.root_dir,
            config.genfile_dir,
            config.source_dir,
            canonical_path(posixpath.join(config.source_dir, config.genfile_dir)),
            *self.include_dirs(JAVA),
        ]:
            if entry not in classpath:
                classpath.append(entry)

        parts = ["javac", f"-d {self.object_root().path}", f"-s {config.genfile_dir}"]
        parts.extend(sorted(compile_args))
        parts.append("-cp " + ":".join(classpath))
        parts.extend(s.path for s in self.sources)
        return " ".join(parts)

    def local_write_make(self, out: Makefile) -> None:
        class_files = self.class_files()
        object_root = self.object_root()

        touchfile = self.touchfile("compile")
        prerequisites = self.input_dependency_files(JAVA).files() + self.sources
        rule = out.start_rule(touchfile, prerequisites)
        rule.write_user_echo("Compiling", f"{self.target.make_path} (java)")
        for directory in sorted({c.dirname for c in class_files}):
            rule.write_command(f"mkdir -p {directory}")
        rule.write_command(f"mkdir -p {object_root.path}")
        if self.sources:
            rule.write_command(self.javac_command())
        self.finish_touchfile_rule(out, rule, touchfile)

        prefix = object_root.path + "/"
        for class_file in class_files:
            if not class_file.path.startswith(prefix):
                raise GenerateError(
                    f"class file {class_file.path} is outside {object_root.path}",
                    self.target.full_path,
                )

        def describe_missing(class_file: Resource) -> str:
            suffix = class_file.path[len(prefix) :]
            package = posixpath.dirname(suffix).replace("/", ".") or "(default)"
            return (
                f"Class file not generated: {class_file.path}, or it was generated "
                "in an unexpected location. Make sure java_root is specified "
                f"correctly or the package name for the object is: {package}"
            )

        self.write_touchfile_outputs(out, touchfile, class_files, describe_missing)
        self.write_root_touchfile(out, self.root_touchfile(), class_files)
        self.write_base_user_target(out, class_files)

    def local_write_make_clean(self, rule: Rule) -> None:
        rule.write_command(f"rm -rf {self.object_root().path}")
        rule.write_command(f"rm -f {self.touchfile('compile').path}")


def sort_longest_first(paths: Iterable[str]) -> list[str]:
    """De-duplicate roots and order them for longest-prefix matching."""
    return sorted(set(paths), key=lambda p: (-len(p), p))
