# SPDX-License-Identifier: MIT
"""Built-in node kinds. Importing this package registers them."""

from repomake.nodes.gen_sh import GenShNode
from repomake.nodes.java_library import JavaLibraryNode

__all__ = [
    "GenShNode",
    "JavaLibraryNode",
]
