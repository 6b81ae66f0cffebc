# SPDX-License-Identifier: MIT
"""Generic shell command targets (``gen_sh``).

A gen_sh target runs an arbitrary build command with explicitly declared
inputs and outputs. Nothing is derived: whatever the command reads must
be listed as an input, whatever it writes as an output.

Example build entry:
    {"kind": "gen_sh", "dir": "tools", "name": "version",
     "build_cmd": "./gen_version.sh > $GEN_DIR/version.h",
     "input_files": ["gen_version.sh"],
     "outs": ["$GEN_DIR/version.h"]}
"""

from __future__ import annotations

import posixpath
import shlex
from typing import TYPE_CHECKING

from repomake.core.makefile import make_escape
from repomake.core.node import Node
from repomake.core.registry import register_node_kind
from repomake.core.resource import Resource, ResourceRoot
from repomake.core.types import DependencyCollectionType, LanguageType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from repomake.core.component import ComponentHelper
    from repomake.core.config import BuildConfig
    from repomake.core.makefile import Makefile, Rule
    from repomake.core.reader import BuildFileReader
    from repomake.core.target import TargetInfo

# Collections a gen_sh target forwards to its consumers. Raw dependency
# files are not among them: consumers depend on the completion marker.
_PROPAGATED = frozenset(
    {
        DependencyCollectionType.BINARIES,
        DependencyCollectionType.INCLUDE_DIRS,
        DependencyCollectionType.ENV_VARIABLES,
    }
)


@register_node_kind
class GenShNode(Node):
    """Runs a shell command producing declared outputs.

    Attributes:
        build_cmd: Command producing the outputs.
        clean_cmd: Optional command run by ``make clean``.
        input_files: Files the command reads.
        outputs: Files the command writes.
        cd: Run the commands from the target's directory.
        local_env_vars: Environment overrides for this target's commands only.
        escape_command: Escape ``$`` in the commands for make.
        make_name: Verb shown in the progress line.
        make_target: Name of the phony user target.
    """

    kind = "gen_sh"

    def __init__(
        self,
        target: TargetInfo,
        config: BuildConfig,
        *,
        build_cmd: str = "",
        clean_cmd: str = "",
        input_files: Iterable[Resource] = (),
        outputs: Iterable[Resource] = (),
        cd: bool = True,
        local_env_vars: Mapping[str, str] | None = None,
        escape_command: bool = True,
        make_name: str = "Script",
        make_target: str | None = None,
        dependencies: Iterable[TargetInfo | str] = (),
        component: ComponentHelper | None = None,
    ) -> None:
        super().__init__(
            target, config, dependencies=dependencies, component=component
        )
        self.build_cmd = build_cmd
        self.clean_cmd = clean_cmd
        self.input_files = list(input_files)
        self.outputs = list(dict.fromkeys(outputs))
        self.cd = cd
        self.local_env_vars = dict(local_env_vars or {})
        self.escape_command = escape_command
        self.make_name = make_name
        self.make_target = make_target or target.make_path

    @classmethod
    def write_make_head(cls, config: BuildConfig, out: Makefile) -> None:
        """Define the environment every gen_sh command runs with."""
        out.append_raw(
            "GEN_SH_EXPORTS := export ROOT_DIR=$(ROOT_DIR)"
            f" GEN_DIR=$(ROOT_DIR)/{config.genfile_dir}"
            f" OBJ_DIR=$(ROOT_DIR)/{config.object_dir}"
            f" SRC_DIR=$(ROOT_DIR)/{config.source_dir}"
        )

    def parse(self, reader: BuildFileReader) -> None:
        super().parse(reader)
        self.build_cmd = reader.string("build_cmd")
        self.clean_cmd = reader.string("clean_cmd")
        self.input_files = reader.repeated_files("input_files")
        self.outputs = list(dict.fromkeys(reader.repeated_files("outs")))
        self.cd = reader.boolean("cd", True)
        self.local_env_vars = reader.mapping("env")
        self.escape_command = reader.boolean("escape_command", True)
        self.make_name = reader.string("make_name", "Script")
        self.make_target = reader.string("make_target", self.target.make_path)

    def set(
        self,
        build_cmd: str,
        clean_cmd: str,
        input_files: Iterable[Resource],
        outputs: Iterable[Resource],
    ) -> None:
        """Alternative to parsing, for nodes built by other node kinds."""
        self._check_mutable()
        self.build_cmd = build_cmd
        self.clean_cmd = clean_cmd
        self.input_files = list(input_files)
        self.outputs = list(dict.fromkeys(outputs))

    def logfile(self) -> Resource:
        """File capturing the build command's output."""
        return Resource(
            posixpath.join(
                self.config.object_dir,
                self.target.dir,
                f".{self.target.local_name}.logfile",
            ),
            ResourceRoot.OBJECT,
        )

    def completion_touchfile(self) -> Resource:
        """Marker consumers depend on: command ran and every output exists."""
        return self.touchfile("done")

    def user_target_name(self) -> str:
        return self.make_target

    def own_inputs(self) -> list[Resource]:
        return list(self.input_files)

    def own_outputs(self) -> list[Resource]:
        return super().own_outputs() + list(self.outputs)

    # Aggregation hooks

    def propagates(
        self, collection: DependencyCollectionType, lang: LanguageType
    ) -> bool:
        return collection in _PROPAGATED

    def local_object_files(self, lang: LanguageType) -> Iterable[Resource]:
        yield from super().local_object_files(lang)
        yield from self.outputs

    def local_dependency_files(self, lang: LanguageType) -> Iterable[Resource]:
        # Not the inputs: the completion marker already covers them.
        yield self.completion_touchfile()

    # Emission

    def shell_command(self, cmd: str) -> str:
        """Wrap ``cmd`` with environment, working directory and logging."""
        env = self.input_env_variables(LanguageType.SHELL)
        env.update(self.local_env_vars)
        exports = "$(GEN_SH_EXPORTS)"
        for name in sorted(env):
            exports += f" {name}={make_escape(shlex.quote(env[name]))}"

        if self.escape_command:
            cmd = make_escape(cmd)
        if self.cd and self.target.dir:
            cmd = f"cd {self.target.dir} && {cmd}"

        log = self.logfile().path
        return f"({exports}; {cmd}) > {log} 2>&1 || (cat {log}; exit 1)"

    def local_write_make(self, out: Makefile) -> None:
        touchfile = self.touchfile("gen_sh")
        prerequisites = list(self.input_files)
        prerequisites.extend(self.input_dependency_files(LanguageType.SHELL))

        rule = out.start_rule(touchfile, prerequisites)
        rule.write_user_echo(self.make_name, self.make_target)
        directories = {r.dirname for r in self.outputs}
        directories.add(self.logfile().dirname)
        for directory in sorted(directories):
            rule.write_command(f"mkdir -p {directory}")
        if self.build_cmd:
            rule.write_command(self.shell_command(self.build_cmd))
        self.finish_touchfile_rule(out, rule, touchfile)

        self.write_touchfile_outputs(
            out,
            touchfile,
            self.outputs,
            lambda output: (
                f"Output file not generated: {output.path}. "
                f"Check the build_cmd of {self.target.full_path}"
            ),
        )
        done = self.completion_touchfile()
        self.write_root_touchfile(out, done, [touchfile] + self.outputs)
        self.write_base_user_target(out, [done])

    def local_write_make_clean(self, rule: Rule) -> None:
        if self.clean_cmd:
            rule.write_command(f"mkdir -p {self.logfile().dirname}")
            rule.write_command(self.shell_command(self.clean_cmd))
        for output in self.outputs:
            rule.write_command(f"rm -f {output.path}")
        for marker in (self.touchfile("gen_sh"), self.completion_touchfile()):
            rule.write_command(f"rm -f {marker.path}")
