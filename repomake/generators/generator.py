# SPDX-License-Identifier: MIT
"""Base class for build file generators.

A generator renders a frozen BuildGraph to the text of one build file.
Rendering happens entirely in memory; the file is only written once the
whole graph has been rendered, so a failed generation leaves any existing
file untouched.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repomake.core.graph import BuildGraph

logger = logging.getLogger(__name__)


class BaseGenerator(ABC):
    """Renders a graph to a single build file.

    Subclasses implement render().

    Attributes:
        name: Short generator name, e.g. "make".
        output_filename: Name of the file generate() writes.
    """

    def __init__(self, name: str, output_filename: str) -> None:
        self.name = name
        self.output_filename = output_filename

    @abstractmethod
    def render(self, graph: BuildGraph) -> str:
        """Return the build file text for ``graph``."""

    def generate(self, graph: BuildGraph, output_dir: Path | str) -> Path:
        """Render ``graph`` and write it to ``output_dir``.

        Args:
            graph: Target graph to generate for. It is frozen if it is not
                already.
            output_dir: Directory to write the build file to. Created if
                missing.

        Returns:
            Path of the written file.

        Raises:
            GraphError: If the graph cannot be linked or validated. Nothing
                is written in that case.
        """
        text = self.render(graph)
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        output_file = output_dir / self.output_filename
        with open(output_file, "w") as f:
            f.write(text)
        logger.info("Wrote %s (%d targets)", output_file, len(graph))
        return output_file

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r}, {self.output_filename!r})"
