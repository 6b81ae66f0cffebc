# SPDX-License-Identifier: MIT
"""Custom exceptions for repomake.

All repomake exceptions inherit from RepomakeError. Every error raised
while generating a Makefile is terminal: generation is all-or-nothing,
so a single invalid target prevents the whole script from being written.
"""

from __future__ import annotations


class RepomakeError(Exception):
    """Base class for all repomake exceptions.

    Attributes:
        message: The error message.
        target: Optional full path of the target the error concerns.
    """

    def __init__(self, message: str, target: str | None = None) -> None:
        self.message = message
        self.target = target
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.target:
            return f"{self.target}: {self.message}"
        return self.message


class ConfigurationError(RepomakeError):
    """Invalid configuration or build-file field value."""


class InvalidSourceError(ConfigurationError):
    """A source file does not carry the extension its target requires.

    Attributes:
        source: Path of the offending source file.
    """

    def __init__(self, source: str, target: str, expected_suffix: str) -> None:
        self.source = source
        self.expected_suffix = expected_suffix
        super().__init__(
            f"invalid source {source} (expected a {expected_suffix} file)", target
        )


class GraphError(RepomakeError):
    """The target graph is malformed or used before it was linked."""


class DependencyCycleError(GraphError):
    """Circular dependency detected in the target graph.

    Attributes:
        cycle: Target paths forming the cycle, first element repeated last.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"dependency cycle: {cycle_str}")


class GenerateError(RepomakeError):
    """Error during the generate phase."""


class DuplicateOutputError(GenerateError):
    """Two targets declare the same output path.

    Attributes:
        path: The contested output path.
        targets: Full paths of the two targets claiming it.
    """

    def __init__(self, path: str, first: str, second: str) -> None:
        self.path = path
        self.targets = (first, second)
        super().__init__(f"output {path} is declared by both {first} and {second}")


class RuleError(GenerateError):
    """A Makefile rule was started, finished or rendered incorrectly."""


class DuplicateRuleError(RuleError):
    """Two rules produce the same output."""

    def __init__(self, output: str) -> None:
        self.output = output
        super().__init__(f"duplicate rule for output {output}")
