# SPDX-License-Identifier: MIT
"""Tag sets scoping aggregation queries over the target graph."""

from __future__ import annotations

from enum import Enum


class LanguageType(Enum):
    """Language a query is made on behalf of."""

    NO_LANG = "none"
    SHELL = "shell"
    NATIVE = "native"
    JAVA = "java"
    PYTHON = "python"
    GO = "go"


class DependencyCollectionType(Enum):
    """What an aggregation query collects.

    BINARIES covers produced artifacts: object files and object roots.
    """

    BINARIES = "binaries"
    INCLUDE_DIRS = "include_dirs"
    COMPILE_FLAGS = "compile_flags"
    LINK_FLAGS = "link_flags"
    ENV_VARIABLES = "env_variables"
    DEPENDENCY_FILES = "dependency_files"
