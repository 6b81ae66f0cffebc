# SPDX-License-Identifier: MIT
"""Tests for repomake.core.makefile."""

import pytest

from repomake.core.errors import DuplicateRuleError, RuleError
from repomake.core.makefile import Makefile, make_escape
from repomake.core.resource import Resource


class TestMakeEscape:
    def test_dollar_is_doubled(self):
        assert make_escape("echo $HOME $(X)") == "echo $$HOME $$(X)"

    def test_plain_text_unchanged(self):
        assert make_escape("javac -g") == "javac -g"


class TestRule:
    def test_render(self):
        out = Makefile()
        rule = out.start_rule("obj/x.touch", ["src/a.java", "src/b.java"])
        rule.write_command("mkdir -p obj")
        rule.write_command("touch obj/x.touch")
        assert rule.render() == (
            "obj/x.touch: src/a.java src/b.java\n"
            "\t@mkdir -p obj\n"
            "\t@touch obj/x.touch\n"
        )

    def test_render_verbose(self):
        out = Makefile(silent=False)
        rule = out.start_rule("x", "y")
        rule.write_command("touch x")
        assert rule.render(silent=False) == "x: y\n\ttouch x\n"

    def test_user_echo_comes_first(self):
        out = Makefile()
        rule = out.start_rule("x")
        rule.write_command("touch x")
        rule.write_user_echo("Compiling", "java/acme (java)")
        lines = rule.render().splitlines()
        assert lines[1] == '\t@echo "Compiling: java/acme (java)"'
        assert lines[2] == "\t@touch x"

    def test_user_echo_is_escaped(self):
        rule = Makefile().start_rule("x")
        rule.write_user_echo("Script", "tools/$(NAME)")
        assert rule.echo == 'echo "Script: tools/$$(NAME)"'

    def test_prerequisites_split_and_deduplicated(self):
        out = Makefile()
        rule = out.start_rule("x", ["a b", Resource("a"), "c"])
        assert rule.prerequisites == ["a", "b", "c"]

    def test_outputs_canonicalized(self):
        out = Makefile()
        rule = out.start_rule("./obj//x.o")
        assert rule.outputs == ["obj/x.o"]


class TestMakefile:
    def test_only_finished_rules_are_kept(self):
        out = Makefile()
        rule = out.start_rule("x")
        assert out.rules == []
        out.finish_rule(rule)
        assert out.rules == [rule]
        assert out.rule_for("x") is rule
        assert out.rule_for("y") is None

    def test_rule_needs_output(self):
        with pytest.raises(RuleError):
            Makefile().start_rule([])

    def test_finish_twice(self):
        out = Makefile()
        rule = out.start_rule("x")
        out.finish_rule(rule)
        with pytest.raises(RuleError):
            out.finish_rule(rule)

    def test_finish_foreign_rule(self):
        rule = Makefile().start_rule("x")
        with pytest.raises(RuleError):
            Makefile().finish_rule(rule)

    def test_duplicate_output(self):
        out = Makefile()
        out.finish_rule(out.start_rule("obj/x.o"))
        with pytest.raises(DuplicateRuleError) as exc_info:
            out.finish_rule(out.start_rule("obj/x.o"))
        assert exc_info.value.output == "obj/x.o"

    def test_render_with_unfinished_rule(self):
        out = Makefile()
        out.start_rule("x")
        with pytest.raises(RuleError, match="unfinished"):
            out.render()

    def test_render(self):
        out = Makefile()
        out.append_raw("ROOT_DIR := $(CURDIR)")
        rule = out.start_rule("x", "y")
        rule.write_command("touch x")
        out.finish_rule(rule)
        out.finish_rule(out.start_rule("all", "x", phony=True))

        assert out.render() == (
            "ROOT_DIR := $(CURDIR)\n"
            "\n"
            "x: y\n"
            "\t@touch x\n"
            "\n"
            "all: x\n"
            "\n"
            ".PHONY: all\n"
        )

    def test_write(self, tmp_path):
        out = Makefile()
        out.finish_rule(out.start_rule("all", phony=True))
        path = tmp_path / "sub" / "Makefile"
        out.write(path)
        assert path.read_text() == out.render()
