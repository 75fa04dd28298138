"""Tests for cache path configuration."""

from pathlib import Path

from scriptbuild.paths import (
    SCRIPT_ARTIFACT,
    build_file_key,
    find_build_script_location,
    get_cache_root,
    is_dev_mode,
)


class TestCacheRoot:
    def test_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCRIPTBUILD_CACHE_DIR", str(tmp_path / "custom"))
        assert get_cache_root() == (tmp_path / "custom").resolve()

    def test_dev_mode(self, monkeypatch):
        monkeypatch.delenv("SCRIPTBUILD_CACHE_DIR", raising=False)
        monkeypatch.setenv("SCRIPTBUILD_DEV_MODE", "1")
        assert is_dev_mode()
        assert get_cache_root() == Path.home() / ".scriptbuild" / "cache_dev"

    def test_default(self, monkeypatch):
        monkeypatch.delenv("SCRIPTBUILD_CACHE_DIR", raising=False)
        monkeypatch.delenv("SCRIPTBUILD_DEV_MODE", raising=False)
        assert not is_dev_mode()
        assert get_cache_root() == Path.home() / ".scriptbuild" / "cache"


class TestBuildScriptLocation:
    def test_deterministic(self, tmp_path):
        build_file = tmp_path / "proj" / "build.py"
        first = find_build_script_location(tmp_path / "cache", build_file)
        second = find_build_script_location(tmp_path / "cache", build_file)
        assert first == second
        assert first.name == SCRIPT_ARTIFACT
        assert first.parent.parent == tmp_path / "cache" / "scripts"

    def test_distinct_build_files_get_distinct_directories(self, tmp_path):
        a = find_build_script_location(tmp_path, tmp_path / "a" / "build.py")
        b = find_build_script_location(tmp_path, tmp_path / "b" / "build.py")
        assert a.parent != b.parent

    def test_key_shape(self, tmp_path):
        key = build_file_key(tmp_path / "build.py")
        assert len(key) == 16
        int(key, 16)

    def test_custom_artifact_name(self, tmp_path):
        location = find_build_script_location(tmp_path, tmp_path / "build.py", "other.zip")
        assert location.name == "other.zip"
