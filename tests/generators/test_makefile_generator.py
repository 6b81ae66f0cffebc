# SPDX-License-Identifier: MIT
"""Tests for repomake.generators.makefile."""

import pytest

from repomake.core.config import BuildConfig
from repomake.core.errors import DuplicateOutputError, GraphError
from repomake.core.makefile import Makefile
from repomake.core.registry import graph_from_specs
from repomake.generators import BaseGenerator, MakefileGenerator, write_make_head

SPECS = [
    {
        "kind": "gen_sh",
        "dir": "tools",
        "name": "version",
        "build_cmd": "./gen.sh > $GEN_DIR/Version.java",
        "input_files": ["gen.sh"],
        "outs": ["$GEN_DIR/Version.java"],
    },
    {
        "kind": "java_library",
        "dir": "java",
        "name": "app",
        "java_sources": ["com/acme/App.java", "//.gen-files/tools/Version.java"],
        "dependencies": ["//tools:version"],
    },
]


class TestWriteMakeHead:
    def test_prologue(self):
        out = Makefile()
        write_make_head(BuildConfig(object_dir="out"), out)
        lines = out.render().splitlines()

        assert lines[0].startswith("# Generated by repomake")
        assert "ROOT_DIR := $(CURDIR)" in lines
        assert "OBJ_DIR := out" in lines
        assert ".SUFFIXES:" in lines
        assert ".DELETE_ON_ERROR:" in lines


class TestMakefileGenerator:
    def test_is_generator(self):
        gen = MakefileGenerator()
        assert isinstance(gen, BaseGenerator)
        assert gen.name == "make"
        assert gen.output_filename == "Makefile"

    def test_base_is_abstract(self):
        with pytest.raises(TypeError):
            BaseGenerator("make", "Makefile")

    def test_render(self):
        text = MakefileGenerator().render(graph_from_specs(BuildConfig(), SPECS))

        assert "GEN_SH_EXPORTS := export" in text
        assert "\njava/app: " in text
        assert "\ntools/version: .gen-obj/tools/.version.done\n" in text
        assert "\nall: java/app tools/version\n" in text
        assert "\n.PHONY: java/app tools/version all clean\n" in text

    def test_kind_heads_only_for_present_kinds(self):
        specs = [SPECS[1] | {"dependencies": [], "java_sources": ["A.java"]}]
        text = MakefileGenerator().render(graph_from_specs(BuildConfig(), specs))
        assert "GEN_SH_EXPORTS" not in text

    def test_java_depends_on_generator(self):
        out = MakefileGenerator().build(graph_from_specs(BuildConfig(), SPECS))
        rule = out.rule_for(".gen-obj/java/.app.compile")

        assert ".gen-obj/tools/.version.done" in rule.prerequisites
        assert ".gen-files/tools/Version.java" in rule.prerequisites

    def test_clean_rule(self):
        out = MakefileGenerator().build(graph_from_specs(BuildConfig(), SPECS))
        clean = out.rule_for("clean")

        assert clean.phony
        assert "rm -rf .gen-obj/lib_java/app" in clean.commands
        assert "rm -f .gen-files/tools/Version.java" in clean.commands

    def test_verbose(self):
        text = MakefileGenerator(silent=False).render(
            graph_from_specs(BuildConfig(), SPECS)
        )
        assert "\ttouch .gen-obj/tools/.version.done\n" in text

    def test_deterministic(self):
        first = MakefileGenerator().render(graph_from_specs(BuildConfig(), SPECS))
        second = MakefileGenerator().render(
            graph_from_specs(BuildConfig(), list(reversed(SPECS)))
        )
        assert first == second


class TestGenerate:
    def test_writes_makefile(self, tmp_path):
        graph = graph_from_specs(BuildConfig(), SPECS)
        path = MakefileGenerator().generate(graph, tmp_path / "build")

        assert path == tmp_path / "build" / "Makefile"
        assert path.read_text() == MakefileGenerator().render(graph)

    def test_custom_filename(self, tmp_path):
        graph = graph_from_specs(BuildConfig(), SPECS)
        path = MakefileGenerator(output_filename="repo.mk").generate(graph, tmp_path)
        assert path.name == "repo.mk"

    def test_no_file_on_error(self, tmp_path):
        specs = [SPECS[0], SPECS[0] | {"name": "again"}]
        graph = graph_from_specs(BuildConfig(), specs)
        with pytest.raises(DuplicateOutputError):
            MakefileGenerator().generate(graph, tmp_path)
        assert not (tmp_path / "Makefile").exists()

    def test_existing_makefile_untouched_on_error(self, tmp_path):
        (tmp_path / "Makefile").write_text("previous\n")
        graph = graph_from_specs(
            BuildConfig(), [SPECS[1] | {"dependencies": ["//missing:target"]}]
        )
        with pytest.raises(GraphError):
            MakefileGenerator().generate(graph, tmp_path)
        assert (tmp_path / "Makefile").read_text() == "previous\n"

    def test_custom_generator_writes_rendered_text(self, tmp_path):
        class TargetList(BaseGenerator):
            def render(self, graph):
                return "".join(f"{n.target.full_path}\n" for n in graph)

        graph = graph_from_specs(BuildConfig(), SPECS)
        path = TargetList("targets", "targets.txt").generate(graph, str(tmp_path))

        assert path == tmp_path / "targets.txt"
        assert path.read_text() == "//java:app\n//tools:version\n"
