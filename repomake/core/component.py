# SPDX-License-Identifier: MIT
"""Path rewriting between the source layout and the generated layouts.

Nodes often have to predict where an external tool will put an artifact
before the tool has run. A ComponentHelper maps a path prefix (the
"component") onto a base output directory, so that prediction always goes
through one place instead of ad hoc string concatenation.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING

from repomake.core.resource import canonical_path

if TYPE_CHECKING:
    from repomake.core.config import BuildConfig


def has_path_prefix(path: str, prefix: str) -> bool:
    """Whether ``prefix`` names ``path`` or one of its parent directories."""
    if prefix in ("", "."):
        return True
    return path == prefix or path.startswith(prefix + "/")


def strip_path_prefix(path: str, prefix: str) -> str:
    """Remove a directory prefix previously checked with has_path_prefix()."""
    if prefix in ("", "."):
        return path
    if path == prefix:
        return ""
    return path[len(prefix) + 1 :]


def strip_special_dirs(config: BuildConfig, path: str) -> str:
    """Strip whichever global root prefixes ``path``.

    Roots are tried longest first, so a genfile tree nested inside the
    source tree wins over the source tree itself.

    Args:
        config: Configuration naming the global roots.
        path: Path to strip.

    Returns:
        The path relative to its root, or the path unchanged if it is not
        under any of them.
    """
    path = canonical_path(path)
    for root in config.special_dirs():
        if has_path_prefix(path, root):
            return strip_path_prefix(path, root)
    return path


class ComponentHelper:
    """Maps a component prefix onto a base output directory.

    Example:
        helper = ComponentHelper("github.com/acme", "third_party/acme")
        helper.covers_path("github.com/acme/util/x.proto")  # True
        helper.rewrite_file(config, ".gen-files/github.com/acme/util/x.pb")
        # -> "third_party/acme/util/x.pb"

    Attributes:
        component: Path prefix this helper is responsible for. The empty
            component covers every path.
        base_dir: Directory the component is re-rooted under.
    """

    __slots__ = ("component", "base_dir")

    def __init__(self, component: str = "", base_dir: str = "") -> None:
        self.component = "" if component in ("", ".") else canonical_path(component)
        self.base_dir = "" if base_dir in ("", ".") else canonical_path(base_dir)

    def covers_path(self, path: str) -> bool:
        return has_path_prefix(canonical_path(path), self.component)

    def rewrite_file(self, config: BuildConfig, path: str) -> str:
        """Re-root a path from any global tree under this helper's base_dir.

        Args:
            config: Configuration naming the global roots.
            path: Path under the source, genfile or object tree.

        Returns:
            The rewritten path.
        """
        relative = strip_special_dirs(config, path)
        if has_path_prefix(relative, self.component):
            relative = strip_path_prefix(relative, self.component)
        if not self.base_dir:
            return relative
        if not relative:
            return self.base_dir
        return posixpath.join(self.base_dir, relative)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComponentHelper):
            return NotImplemented
        return (self.component, self.base_dir) == (other.component, other.base_dir)

    def __hash__(self) -> int:
        return hash((self.component, self.base_dir))

    def __repr__(self) -> str:
        return f"ComponentHelper({self.component!r}, {self.base_dir!r})"
