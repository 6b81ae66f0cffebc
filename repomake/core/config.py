# SPDX-License-Identifier: MIT
"""Global build configuration for repomake.

BuildConfig carries what every node needs to know about the build
outside its own target: the three global roots (source, generated
files, objects) and the registry of pass-through compiler flags keyed
by flag group (for example ``-JC`` for extra javac arguments).

Example:
    config = BuildConfig(object_dir="out/obj")
    config.add_flag("-JC", "-g")

    # Or pick up REPOMAKE_* variables set by a driver
    config = BuildConfig.from_environ()
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from repomake.core.errors import ConfigurationError
from repomake.core.resource import canonical_path

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_GENFILE_DIR = ".gen-files"
DEFAULT_OBJECT_DIR = ".gen-obj"

# Flag group for extra javac arguments.
JAVA_COMPILE_FLAGS = "-JC"


@dataclass
class BuildConfig:
    """Global roots and pass-through flags.

    Attributes:
        root_dir: Project root, the directory make runs in.
        source_dir: Root of the source tree, relative to root_dir.
        genfile_dir: Root of the generated-file tree.
        object_dir: Root of the object tree.
        flag_groups: Pass-through flags keyed by flag group tag.
    """

    root_dir: str = "."
    source_dir: str = "."
    genfile_dir: str = DEFAULT_GENFILE_DIR
    object_dir: str = DEFAULT_OBJECT_DIR
    flag_groups: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.root_dir = canonical_path(self.root_dir)
        self.source_dir = canonical_path(self.source_dir)
        self.genfile_dir = canonical_path(self.genfile_dir)
        self.object_dir = canonical_path(self.object_dir)
        for tag, values in self.flag_groups.items():
            if isinstance(values, str) or not all(
                isinstance(v, str) for v in values
            ):
                raise ConfigurationError(
                    f"flag group {tag!r} must be a list of strings"
                )
            self.flag_groups[tag] = list(values)

    def flags(self, tag: str) -> list[str]:
        """Get the pass-through flags registered for a flag group.

        Args:
            tag: Flag group tag (e.g., "-JC").

        Returns:
            The flags in registration order, or an empty list.
        """
        return list(self.flag_groups.get(tag, []))

    def add_flag(self, tag: str, value: str) -> None:
        """Register one pass-through flag under a flag group."""
        self.flag_groups.setdefault(tag, []).append(value)

    def special_dirs(self) -> list[str]:
        """Global roots that can prefix a path, longest first.

        The source root is skipped when it is the project root itself,
        since every relative path trivially lives under ".".
        """
        roots = {
            d
            for d in (self.source_dir, self.genfile_dir, self.object_dir)
            if d not in ("", ".")
        }
        return sorted(roots, key=lambda d: (-len(d), d))

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> BuildConfig:
        """Create a configuration from REPOMAKE_* environment variables.

        Recognized variables: REPOMAKE_ROOT_DIR, REPOMAKE_SOURCE_DIR,
        REPOMAKE_GENFILE_DIR, REPOMAKE_OBJECT_DIR and REPOMAKE_FLAGS (a JSON
        object mapping flag group tags to lists of flags).

        Args:
            environ: Mapping to read instead of os.environ.

        Raises:
            ConfigurationError: If REPOMAKE_FLAGS is not valid JSON.
        """
        if environ is None:
            environ = os.environ

        flag_groups: dict[str, list[str]] = {}
        raw_flags = environ.get("REPOMAKE_FLAGS")
        if raw_flags:
            try:
                flag_groups = json.loads(raw_flags)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"invalid REPOMAKE_FLAGS: {e}") from e
            if not isinstance(flag_groups, dict):
                raise ConfigurationError("REPOMAKE_FLAGS must be a JSON object")

        return cls(
            root_dir=environ.get("REPOMAKE_ROOT_DIR", "."),
            source_dir=environ.get("REPOMAKE_SOURCE_DIR", "."),
            genfile_dir=environ.get("REPOMAKE_GENFILE_DIR", DEFAULT_GENFILE_DIR),
            object_dir=environ.get("REPOMAKE_OBJECT_DIR", DEFAULT_OBJECT_DIR),
            flag_groups=flag_groups,
        )

    @classmethod
    def load(cls, path: Path | str) -> BuildConfig:
        """Load a configuration saved with save().

        Raises:
            ConfigurationError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            with open(path) as f:
                data: dict[str, Any] = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(f"cannot load configuration {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"configuration {path} must be a JSON object")
        logger.debug("Loaded configuration from %s", path)
        known = {"root_dir", "source_dir", "genfile_dir", "object_dir", "flag_groups"}
        return cls(**{k: v for k, v in data.items() if k in known})

    def save(self, path: Path | str) -> None:
        """Save the configuration as JSON.

        Args:
            path: Destination file; parent directories are created.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "root_dir": self.root_dir,
            "source_dir": self.source_dir,
            "genfile_dir": self.genfile_dir,
            "object_dir": self.object_dir,
            "flag_groups": self.flag_groups,
        }
        with open(path, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
