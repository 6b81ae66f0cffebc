# SPDX-License-Identifier: MIT
"""Target references.

A target reference is a globally-unique, path-like identifier of the
form ``//dir/path:name``. It names exactly one Node in the graph and is
the key of every dependency edge.
"""

from __future__ import annotations

import posixpath

from repomake.core.errors import ConfigurationError


class TargetInfo:
    """A parsed target reference.

    Example:
        t = TargetInfo.parse("//java/acme:app")
        t.full_path   # "//java/acme:app"
        t.make_path   # "java/acme/app"

    Attributes:
        dir: Directory of the build file declaring the target ("" for root).
        local_name: Name of the target within its directory.
    """

    __slots__ = ("dir", "local_name")

    def __init__(self, dir: str, local_name: str) -> None:
        if not local_name or "/" in local_name or ":" in local_name:
            raise ConfigurationError(f"invalid target name {local_name!r}")
        dir = dir.strip("/")
        self.dir = "" if dir == "." else posixpath.normpath(dir) if dir else ""
        self.local_name = local_name

    @classmethod
    def parse(cls, ref: str, current_dir: str = "") -> TargetInfo:
        """Parse a target reference.

        Accepted forms:
            //dir/path:name   absolute
            //dir/path        absolute, name defaults to the last component
            :name or name     relative to current_dir

        Args:
            ref: Reference text.
            current_dir: Directory relative references resolve against.

        Raises:
            ConfigurationError: If the reference is malformed.
        """
        if not ref:
            raise ConfigurationError("empty target reference")
        if ref.startswith("//"):
            body = ref[2:]
            if ":" in body:
                dir, _, name = body.partition(":")
            else:
                dir, name = body, posixpath.basename(body)
            return cls(dir, name)
        name = ref[1:] if ref.startswith(":") else ref
        if "/" in name or ":" in name:
            raise ConfigurationError(f"invalid target reference {ref!r}")
        return cls(current_dir, name)

    @property
    def full_path(self) -> str:
        return f"//{self.dir}:{self.local_name}"

    @property
    def make_path(self) -> str:
        """Path-like name used for user targets and private directories."""
        if self.dir:
            return f"{self.dir}/{self.local_name}"
        return self.local_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TargetInfo):
            return NotImplemented
        return self.full_path == other.full_path

    def __lt__(self, other: TargetInfo) -> bool:
        return self.full_path < other.full_path

    def __hash__(self) -> int:
        return hash(self.full_path)

    def __repr__(self) -> str:
        return f"TargetInfo({self.full_path!r})"

    def __str__(self) -> str:
        return self.full_path
