# SPDX-License-Identifier: MIT
"""Rule sink for Makefile emission.

Nodes never write text directly. They start a Rule, append literal shell
commands to it, and finish it; only finished rules are part of the
Makefile. Rendering is deterministic: rules appear in the order they were
finished, prerequisites in the order they were given.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from repomake.core.errors import DuplicateRuleError, RuleError
from repomake.core.resource import Resource, canonical_path

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def make_escape(text: str) -> str:
    """Escape text for literal use inside a Makefile recipe."""
    return text.replace("$", "$$")


def _as_paths(items: str | Resource | Iterable[str | Resource]) -> list[str]:
    if isinstance(items, (str, Resource)):
        items = [items]
    paths: list[str] = []
    seen: set[str] = set()
    for item in items:
        path = item.path if isinstance(item, Resource) else item
        for token in path.split():
            if token not in seen:
                seen.add(token)
                paths.append(token)
    return paths


class Rule:
    """One rule under construction: outputs, prerequisites and commands.

    Obtain rules from Makefile.start_rule(); a rule does not belong to the
    Makefile until Makefile.finish_rule() is called on it.

    Attributes:
        outputs: Files (or phony names) the rule produces.
        prerequisites: Files the rule depends on.
        commands: Literal shell command lines, in execution order.
        echo: Optional progress line, emitted before the commands.
        phony: Whether the outputs are phony targets.
    """

    __slots__ = ("outputs", "prerequisites", "commands", "echo", "phony", "_owner")

    def __init__(
        self,
        outputs: list[str],
        prerequisites: list[str],
        phony: bool,
        owner: Makefile,
    ) -> None:
        self.outputs = outputs
        self.prerequisites = prerequisites
        self.commands: list[str] = []
        self.echo: str | None = None
        self.phony = phony
        self._owner = owner

    def write_command(self, line: str) -> None:
        self.commands.append(line)

    def write_user_echo(self, verb: str, display_name: str) -> None:
        """Set the human-readable progress line for this rule."""
        self.echo = f'echo "{make_escape(verb)}: {make_escape(display_name)}"'

    def render(self, silent: bool = True) -> str:
        prefix = "@" if silent else ""
        head = " ".join(self.outputs) + ":"
        if self.prerequisites:
            head += " " + " ".join(self.prerequisites)
        lines = [head]
        commands = ([self.echo] if self.echo else []) + self.commands
        lines.extend(f"\t{prefix}{command}" for command in commands)
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"Rule({self.outputs!r}, prerequisites={len(self.prerequisites)})"


class Makefile:
    """Ordered set of finished rules plus verbatim prologue text.

    Example:
        out = Makefile()
        rule = out.start_rule("obj/x.touch", ["src/x.java"])
        rule.write_command("touch obj/x.touch")
        out.finish_rule(rule)
        text = out.render()

    Attributes:
        silent: Prefix commands with "@" so make does not echo them.
    """

    def __init__(self, *, silent: bool = True) -> None:
        self.silent = silent
        self._prologue: list[str] = []
        self._rules: list[Rule] = []
        self._outputs: dict[str, Rule] = {}
        self._open: list[Rule] = []

    @property
    def rules(self) -> list[Rule]:
        """Finished rules, in emission order."""
        return list(self._rules)

    def rule_for(self, output: str) -> Rule | None:
        """Finished rule producing ``output``, if any."""
        return self._outputs.get(canonical_path(output))

    def append_raw(self, text: str) -> None:
        """Append verbatim text to the prologue."""
        self._prologue.append(text if text.endswith("\n") else text + "\n")

    def start_rule(
        self,
        outputs: str | Resource | Iterable[str | Resource],
        prerequisites: str | Resource | Iterable[str | Resource] = (),
        *,
        phony: bool = False,
    ) -> Rule:
        """Begin a rule.

        Args:
            outputs: Output path(s) or phony name(s).
            prerequisites: Prerequisite paths. Strings are split on
                whitespace; duplicates are dropped.
            phony: Whether the outputs are phony targets.

        Returns:
            The Rule to append commands to.

        Raises:
            RuleError: If no output is given.
        """
        output_paths = _as_paths(outputs)
        if not output_paths:
            raise RuleError("rule has no outputs")
        if not phony:
            output_paths = [canonical_path(p) for p in output_paths]
        rule = Rule(output_paths, _as_paths(prerequisites), phony, self)
        self._open.append(rule)
        return rule

    def finish_rule(self, rule: Rule) -> None:
        """Commit a rule started with start_rule().

        Raises:
            RuleError: If the rule is not open in this Makefile.
            DuplicateRuleError: If another rule already produces one of
                its outputs.
        """
        if rule._owner is not self or rule not in self._open:
            raise RuleError(f"rule for {' '.join(rule.outputs)} is not open")
        for output in rule.outputs:
            if output in self._outputs:
                raise DuplicateRuleError(output)
        self._open.remove(rule)
        for output in rule.outputs:
            self._outputs[output] = rule
        self._rules.append(rule)

    def render(self) -> str:
        """Serialize the Makefile.

        Raises:
            RuleError: If a rule was started but never finished.
        """
        if self._open:
            unfinished = ", ".join(" ".join(r.outputs) for r in self._open)
            raise RuleError(f"unfinished rules: {unfinished}")

        parts = list(self._prologue)
        for rule in self._rules:
            parts.append("\n")
            parts.append(rule.render(self.silent))
        phony = [o for rule in self._rules if rule.phony for o in rule.outputs]
        if phony:
            parts.append("\n")
            parts.append(".PHONY: " + " ".join(phony) + "\n")
        return "".join(parts)

    def write(self, path: Path | str) -> None:
        """Render and write the Makefile to ``path``."""
        text = self.render()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(text)
        logger.debug("Wrote %d rules to %s", len(self._rules), path)
