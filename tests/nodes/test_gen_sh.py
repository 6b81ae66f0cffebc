# SPDX-License-Identifier: MIT
"""Tests for repomake.nodes.gen_sh."""

from repomake.core.config import BuildConfig
from repomake.core.graph import BuildGraph
from repomake.core.makefile import Makefile
from repomake.core.registry import graph_from_specs
from repomake.core.resource import Resource, ResourceRoot
from repomake.core.target import TargetInfo
from repomake.core.types import LanguageType
from repomake.nodes.gen_sh import GenShNode

TOUCHFILE = ".gen-obj/tools/.version.gen_sh"
DONE = ".gen-obj/tools/.version.done"
LOGFILE = ".gen-obj/tools/.version.logfile"


def version_node(**kwargs):
    kwargs.setdefault("build_cmd", "./gen.sh > $GEN_DIR/version.h")
    kwargs.setdefault("input_files", [Resource("tools/gen.sh")])
    kwargs.setdefault(
        "outputs", [Resource(".gen-files/tools/version.h", ResourceRoot.GENFILE)]
    )
    return GenShNode(TargetInfo("tools", "version"), BuildConfig(), **kwargs)


def emit(*nodes):
    graph = BuildGraph(BuildConfig())
    for node in nodes:
        graph.add(node)
    graph.freeze()
    out = Makefile()
    for node in graph:
        node.write_make(out)
    return out


class TestGenShRules:
    def test_primary_rule(self):
        out = emit(version_node())
        rule = out.rule_for(TOUCHFILE)

        assert rule.prerequisites == ["tools/gen.sh"]
        assert rule.echo == 'echo "Script: tools/version"'
        assert rule.commands == [
            "mkdir -p .gen-files/tools",
            "mkdir -p .gen-obj/tools",
            "($(GEN_SH_EXPORTS); cd tools && ./gen.sh > $$GEN_DIR/version.h)"
            f" > {LOGFILE} 2>&1 || (cat {LOGFILE}; exit 1)",
            "mkdir -p .gen-obj/tools",
            f"touch {TOUCHFILE}",
        ]

    def test_output_rules(self):
        out = emit(version_node())
        rule = out.rule_for(".gen-files/tools/version.h")

        assert rule.prerequisites == [TOUCHFILE]
        assert rule.commands[0].startswith("if [ ! -f .gen-files/tools/version.h ];")
        assert "Check the build_cmd of //tools:version" in rule.commands[0]
        assert "exit 1" in rule.commands[0]
        assert rule.commands[1] == "touch .gen-files/tools/version.h"

    def test_completion_and_user_target(self):
        out = emit(version_node())

        done = out.rule_for(DONE)
        assert done.prerequisites == [TOUCHFILE, ".gen-files/tools/version.h"]
        user = out.rule_for("tools/version")
        assert user.phony
        assert user.prerequisites == [DONE]

    def test_one_rule_per_output_plus_two(self):
        outputs = [Resource(f".gen-files/tools/out{i}.txt") for i in range(3)]
        out = emit(version_node(outputs=outputs))

        assert len([r for r in out.rules if not r.phony]) == len(outputs) + 2

    def test_duplicate_outputs_collapse(self):
        node = version_node(outputs=[Resource("a.txt"), Resource("./a.txt")])
        assert node.outputs == [Resource("a.txt")]

    def test_make_name_and_target(self):
        out = emit(version_node(make_name="Generating", make_target="version"))

        assert out.rule_for(TOUCHFILE).echo == 'echo "Generating: version"'
        assert out.rule_for("version").phony

    def test_dollar_in_names_is_escaped(self):
        out = emit(
            version_node(
                make_target="v$x", outputs=[Resource(".gen-files/tools/$v.h")]
            )
        )

        assert out.rule_for(TOUCHFILE).echo == 'echo "Script: v$$x"'
        check = out.rule_for(".gen-files/tools/$v.h").commands[0]
        assert check.startswith("if [ ! -f .gen-files/tools/$$v.h ];")
        assert ".gen-files/tools/$v.h" not in check


class TestGenShCommand:
    def test_cd_into_target_dir(self):
        node = version_node()
        emit(node)
        cmd = node.shell_command("make all")
        assert "; cd tools && make all)" in cmd

    def test_cd_disabled(self):
        node = version_node(cd=False)
        emit(node)
        cmd = node.shell_command("make all")
        assert cmd.startswith("($(GEN_SH_EXPORTS); make all)")

    def test_no_cd_at_root(self):
        node = GenShNode(TargetInfo("", "root"), BuildConfig(), build_cmd="make all")
        emit(node)
        assert "cd " not in node.shell_command("make all")

    def test_escape_disabled(self):
        node = version_node(escape_command=False)
        emit(node)
        assert "$(MAKE) -C sub" in node.shell_command("$(MAKE) -C sub")

    def test_local_env_overrides(self):
        node = version_node(local_env_vars={"MODE": "fast build", "COST": "$5"})
        emit(node)
        cmd = node.shell_command("true")
        assert "$(GEN_SH_EXPORTS) COST='$$5' MODE='fast build';" in cmd

    def test_inherits_dependency_environment(self):
        tool = GenShNode(TargetInfo("tools", "tool"), BuildConfig(), build_cmd="true")
        tool.add_env_variable(LanguageType.SHELL, "TOOL", "tools/bin/tool")
        node = version_node(
            dependencies=[":tool"], local_env_vars={"TOOL": "override"}
        )
        graph = BuildGraph(BuildConfig())
        graph.add(tool)
        graph.add(node)
        graph.freeze()

        assert node.input_env_variables(LanguageType.SHELL) == {
            "TOOL": "tools/bin/tool"
        }
        assert "TOOL=override;" in node.shell_command("true")


class TestGenShDependencies:
    def test_depends_on_completion_marker(self):
        producer = version_node()
        consumer = GenShNode(
            TargetInfo("app", "use"),
            BuildConfig(),
            build_cmd="cat $GEN_DIR/../tools/version.h",
            dependencies=["//tools:version"],
        )
        out = emit(producer, consumer)

        rule = out.rule_for(".gen-obj/app/.use.gen_sh")
        assert rule.prerequisites == [DONE]
        assert "tools/gen.sh" not in rule.prerequisites

    def test_outputs_are_object_files(self):
        node = version_node()
        emit(node)
        assert node.object_files(LanguageType.NATIVE).paths() == [
            ".gen-files/tools/version.h"
        ]
        assert node.dependency_files(LanguageType.JAVA).paths() == [DONE]


class TestGenShHead:
    def test_exports(self):
        out = Makefile()
        GenShNode.write_make_head(BuildConfig(), out)
        text = out.render()
        assert text.startswith("GEN_SH_EXPORTS := export ROOT_DIR=$(ROOT_DIR)")
        assert "GEN_DIR=$(ROOT_DIR)/.gen-files" in text
        assert "OBJ_DIR=$(ROOT_DIR)/.gen-obj" in text
        assert "SRC_DIR=$(ROOT_DIR)/." in text


class TestGenShClean:
    def test_clean_commands(self):
        node = version_node(clean_cmd="rm -rf cache")
        emit(node)
        rule = Makefile().start_rule("clean", phony=True)
        node.write_make_clean(rule)

        assert rule.commands[0] == "mkdir -p .gen-obj/tools"
        assert "cd tools && rm -rf cache" in rule.commands[1]
        assert rule.commands[2:] == [
            "rm -f .gen-files/tools/version.h",
            f"rm -f {TOUCHFILE}",
            f"rm -f {DONE}",
        ]

    def test_clean_without_command(self):
        node = version_node()
        emit(node)
        rule = Makefile().start_rule("clean", phony=True)
        node.write_make_clean(rule)
        assert rule.commands[0] == "rm -f .gen-files/tools/version.h"


class TestGenShParse:
    def test_fields(self):
        graph = graph_from_specs(
            BuildConfig(),
            [
                {
                    "kind": "gen_sh",
                    "dir": "tools",
                    "name": "version",
                    "build_cmd": "./gen.sh",
                    "clean_cmd": "./gen.sh --clean",
                    "input_files": ["gen.sh", "//VERSION"],
                    "outs": ["$GEN_DIR/version.h"],
                    "cd": False,
                    "env": {"MODE": "release"},
                    "make_name": "Stamping",
                },
            ],
        )
        node = graph.get("//tools:version")

        assert node.build_cmd == "./gen.sh"
        assert node.clean_cmd == "./gen.sh --clean"
        assert [r.path for r in node.input_files] == ["tools/gen.sh", "VERSION"]
        assert node.outputs[0].root is ResourceRoot.GENFILE
        assert node.cd is False
        assert node.local_env_vars == {"MODE": "release"}
        assert node.escape_command is True
        assert node.make_name == "Stamping"
        assert node.make_target == "tools/version"

    def test_set(self):
        node = GenShNode(TargetInfo("tools", "x"), BuildConfig())
        node.set("build", "clean", [Resource("in")], [Resource("out")])
        assert node.build_cmd == "build"
        assert node.own_inputs() == [Resource("in")]
        assert node.own_outputs() == [Resource("out")]
