# SPDX-License-Identifier: MIT
"""Typed access to the fields of one build-file entry.

The build-file parser itself lives outside repomake; it hands each target
over as a plain mapping of field names to values. BuildFileReader turns
those raw values into Resources, strings and flags, resolving relative
paths against the directory of the target that declared them.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING, Any

from repomake.core.errors import ConfigurationError
from repomake.core.resource import Resource, ResourceRoot

if TYPE_CHECKING:
    from collections.abc import Mapping

    from repomake.core.config import BuildConfig
    from repomake.core.target import TargetInfo


class BuildFileReader:
    """Reads fields of a single build-file entry.

    File values are resolved as follows:
        //path/to/file   relative to the project root
        $GEN_DIR/file    under the genfile tree, target directory appended
        other            relative to the target's directory

    Attributes:
        target: Target whose entry is being read.
        config: Global configuration.
        fields: Raw field values.
    """

    def __init__(
        self, target: TargetInfo, config: BuildConfig, fields: Mapping[str, Any]
    ) -> None:
        self.target = target
        self.config = config
        self.fields = dict(fields)

    def _error(self, key: str, message: str) -> ConfigurationError:
        return ConfigurationError(f"field {key!r}: {message}", self.target.full_path)

    def _resolve(self, value: str) -> Resource:
        if value.startswith("//"):
            return Resource(value[2:])
        if value.startswith("$GEN_DIR/"):
            return Resource(
                posixpath.join(
                    self.config.genfile_dir, self.target.dir, value[len("$GEN_DIR/") :]
                ),
                ResourceRoot.GENFILE,
            )
        return Resource.from_local_path(self.target.dir, value)

    def repeated_strings(self, key: str) -> list[str]:
        value = self.fields.get(key, [])
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)) or not all(
            isinstance(v, str) for v in value
        ):
            raise self._error(key, "expected a list of strings")
        return list(value)

    def repeated_files(self, key: str) -> list[Resource]:
        return [self._resolve(v) for v in self.repeated_strings(key)]

    def single_directory(self, key: str, default: str | None = None) -> str:
        """Read a directory field, resolved like a file.

        Raises:
            ConfigurationError: If the field is missing and has no default.
        """
        value = self.fields.get(key, default)
        if value is None:
            raise self._error(key, "required directory is missing")
        if not isinstance(value, str):
            raise self._error(key, "expected a directory path")
        if value in ("", "."):
            return self.target.dir or "."
        return self._resolve(value).path

    def string(self, key: str, default: str = "") -> str:
        value = self.fields.get(key, default)
        if not isinstance(value, str):
            raise self._error(key, "expected a string")
        return value

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self.fields.get(key, default)
        if not isinstance(value, bool):
            raise self._error(key, "expected true or false")
        return value

    def mapping(self, key: str) -> dict[str, str]:
        value = self.fields.get(key, {})
        if not isinstance(value, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise self._error(key, "expected a mapping of strings")
        return dict(value)
