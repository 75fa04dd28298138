"""Pytest configuration and fixtures for scriptbuild tests.

Every test gets its own cache root (via SCRIPTBUILD_CACHE_DIR) so nothing
touches ~/.scriptbuild, and console output is reset to a quiet default.
"""

import io
import sys
from pathlib import Path

import pytest

from scriptbuild import output
from scriptbuild.build.build_context import BuildContext
from scriptbuild.build.task_result import TaskResult


class RecordingToolchain:
    """Fake toolchain: records calls and writes a placeholder artifact."""

    def __init__(self):
        self.calls: list[tuple[list[Path], list[str], Path]] = []
        self.failures: dict[str, str] = {}
        self.before_write = None

    def fail_when_source_contains(self, marker: str, message: str) -> None:
        self.failures[marker] = message

    def compile(self, sources, classpath, output_path):
        self.calls.append((list(sources), list(classpath), output_path))
        if self.before_write is not None:
            self.before_write(output_path)
        text = Path(sources[0]).read_text(encoding="utf-8")
        for marker, message in self.failures.items():
            if marker in text:
                return TaskResult.failure(message)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"artifact")
        return TaskResult.ok()


@pytest.fixture(autouse=True)
def _quiet_output():
    """Keep timestamped output out of test logs unless a test asks for it."""
    stream = io.StringIO()
    output.init_timer(stream)
    output.set_verbose(False)
    yield stream
    output.init_timer(sys.stdout)
    output.set_verbose(False)


@pytest.fixture
def cache_root(tmp_path, monkeypatch) -> Path:
    root = tmp_path / "cache"
    monkeypatch.setenv("SCRIPTBUILD_CACHE_DIR", str(root))
    return root


@pytest.fixture
def toolchain() -> RecordingToolchain:
    return RecordingToolchain()


@pytest.fixture
def context(cache_root, toolchain) -> BuildContext:
    """BuildContext with the recording toolchain and an isolated cache."""
    return BuildContext.create(cache_root=cache_root, toolchain=toolchain, tool_version="1.0.0")
