# SPDX-License-Identifier: MIT
"""Build file generators for repomake."""

from repomake.generators.generator import BaseGenerator
from repomake.generators.makefile import MakefileGenerator, write_make_head

__all__ = [
    "BaseGenerator",
    "MakefileGenerator",
    "write_make_head",
]
