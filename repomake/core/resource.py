# SPDX-License-Identifier: MIT
"""Rooted file path values.

A Resource is an immutable path that knows which tree it lives under:
the source tree, the generated-file tree or the object tree. Resources
compare and hash by their canonical path only, so two Resources naming
the same file are interchangeable regardless of how they were built.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class ResourceRoot(Enum):
    """Tree a Resource belongs under."""

    SOURCE = "source"
    GENFILE = "genfile"
    OBJECT = "object"


def canonical_path(path: str) -> str:
    """Normalize a path to the form used in Makefiles.

    Backslashes become forward slashes, redundant separators and ``.``
    components are collapsed, and a leading ``./`` is dropped.
    """
    path = path.replace("\\", "/")
    if not path:
        return "."
    return posixpath.normpath(path)


@dataclass(frozen=True)
class Resource:
    """A file path rooted under one of the three global trees.

    Attributes:
        path: Canonical POSIX path, relative to the project root.
        root: Tree the path belongs to. Not part of equality.
    """

    path: str
    root: ResourceRoot = field(default=ResourceRoot.SOURCE, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", canonical_path(self.path))

    @classmethod
    def from_local_path(
        cls,
        directory: str,
        name: str,
        root: ResourceRoot = ResourceRoot.SOURCE,
    ) -> Resource:
        """Create a Resource for ``name`` inside ``directory``."""
        return cls(posixpath.join(directory, name) if directory else name, root)

    @property
    def dirname(self) -> str:
        return posixpath.dirname(self.path) or "."

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path)

    def has_suffix(self, suffix: str) -> bool:
        return self.path.endswith(suffix)

    def with_suffix(self, old: str, new: str) -> Resource:
        """Replace the trailing ``old`` suffix with ``new``.

        Raises:
            ValueError: If the path does not end in ``old``.
        """
        if not self.path.endswith(old):
            raise ValueError(f"{self.path} does not end in {old}")
        return Resource(self.path[: len(self.path) - len(old)] + new, self.root)

    def __str__(self) -> str:
        return self.path


class ResourceFileSet:
    """De-duplicated collection of Resources.

    Membership is by canonical path. Iteration follows first-insertion
    order, which is deterministic for a deterministic traversal.
    """

    __slots__ = ("_files",)

    def __init__(self, files: Iterable[Resource] = ()) -> None:
        self._files: dict[str, Resource] = {}
        self.add_all(files)

    def add(self, resource: Resource) -> None:
        self._files.setdefault(resource.path, resource)

    def add_all(self, resources: Iterable[Resource]) -> None:
        for resource in resources:
            self.add(resource)

    def files(self) -> list[Resource]:
        return list(self._files.values())

    def paths(self) -> list[str]:
        return list(self._files)

    def copy(self) -> ResourceFileSet:
        return ResourceFileSet(self._files.values())

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Resource):
            return item.path in self._files
        if isinstance(item, str):
            return canonical_path(item) in self._files
        return False

    def __iter__(self) -> Iterator[Resource]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"ResourceFileSet({self.paths()!r})"
