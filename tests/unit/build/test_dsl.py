"""Tests for the build script DSL."""

import pytest

from scriptbuild.build.dsl import (
    ProjectDecl,
    ScriptRecorder,
    plugins,
    project,
    recording,
    repos,
    script_namespace,
)
from scriptbuild.files.file_spec import LiteralSpec, PatternSpec


class TestRecording:
    def test_calls_are_recorded(self):
        with recording(ScriptRecorder()) as recorder:
            plugins("plugins/a", "plugins/b")
            repos("https://repo.example.com")
            decl = project(name="core", version="1.0")

        assert recorder.plugin_ids == ["plugins/a", "plugins/b"]
        assert recorder.repos == ["https://repo.example.com"]
        assert recorder.projects == [decl]

    def test_dsl_outside_run_raises(self):
        with pytest.raises(RuntimeError):
            project(name="orphan")

    def test_recorders_are_isolated(self):
        with recording(ScriptRecorder()) as outer:
            project(name="outer")
            with recording(ScriptRecorder()) as inner:
                project(name="inner")
            project(name="outer2")

        assert [p.name for p in outer.projects] == ["outer", "outer2"]
        assert [p.name for p in inner.projects] == ["inner"]

    def test_recorder_reset_after_exception(self):
        with pytest.raises(ValueError):
            with recording(ScriptRecorder()):
                raise ValueError("boom")
        with pytest.raises(RuntimeError):
            plugins("x")


class TestProjectDecl:
    def test_sources_are_coerced_to_specs(self):
        with recording(ScriptRecorder()):
            decl = project(name="core", sources=["src/**/*.py", "setup.cfg"], resources="res/*")

        assert decl.sources == [PatternSpec("src/**/*.py"), LiteralSpec("setup.cfg")]
        assert decl.resources == [PatternSpec("res/*")]

    def test_source_files_resolve_with_excludes(self, tmp_path):
        core = tmp_path / "core"
        (core / "src" / "generated").mkdir(parents=True)
        (core / "src" / "main.py").write_text("")
        (core / "src" / "generated" / "gen.py").write_text("")

        decl = ProjectDecl(
            name="core",
            directory="core",
            sources=[PatternSpec("src/**/*.py"), LiteralSpec("extra.py")],
            excludes=["**/generated/**"],
        )
        assert decl.source_files(str(tmp_path)) == ["src/main.py", "extra.py"]

    def test_resource_files(self, tmp_path):
        (tmp_path / "res").mkdir()
        (tmp_path / "res" / "logo.png").write_text("")
        decl = ProjectDecl(name="app", resources=[PatternSpec("res/*.png")])
        assert decl.resource_files(str(tmp_path)) == ["res/logo.png"]

    def test_single_exclude_string(self):
        with recording(ScriptRecorder()):
            decl = project(name="core", excludes="**/tmp/**")
        assert decl.excludes == ["**/tmp/**"]


def test_script_namespace_exposes_dsl():
    namespace = script_namespace("/work/build.py", ("debug",))
    assert namespace["__file__"] == "/work/build.py"
    assert namespace["active_profiles"] == ("debug",)
    assert namespace["project"] is project
    assert namespace["plugins"] is plugins
    assert namespace["repos"] is repos
