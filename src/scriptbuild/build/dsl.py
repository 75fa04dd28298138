"""Build script DSL.

A build script is plain Python that declares what to build:

    plugins("plugins/codegen")
    repos("https://repo.example.com/releases")

    debug = False   # rewritten to True when the "debug" profile is active

    project(
        name="core",
        version="1.2.0",
        directory="core",
        sources=["src/**/*.py"],
        excludes=["**/generated/**"],
        properties={"debug": debug},
    )

The DSL functions are injected into the script's globals and can also be
imported from this module. Calls are recorded into the ScriptRecorder that
is active for the current run; the recorder is held in a context variable
so nothing is kept in module globals between runs.
"""

import builtins
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional, Sequence, Union

from scriptbuild.files.file_spec import FileSpec, LiteralSpec, PatternSpec, resolve, to_file_spec
from scriptbuild.files.glob import compile_globs

DSL_NAMES = ("project", "plugins", "repos")
DIRECTIVE_NAMES = ("plugins", "repos")

_active_recorder: ContextVar[Optional["ScriptRecorder"]] = ContextVar("scriptbuild_recorder", default=None)


@dataclass
class ProjectDecl:
    """A build unit declared by a build script.

    Attributes:
        name: Project name
        version: Project version string
        directory: Project directory, relative to the build file's directory
        sources: Source file selections
        resources: Resource file selections
        excludes: Exclude patterns applied to pattern-based selections
        dependencies: Dependency identifiers, in declaration order
        properties: Free-form properties for plugins
    """

    name: str
    version: str = "0.1"
    directory: str = "."
    sources: list[FileSpec] = field(default_factory=list)
    resources: list[FileSpec] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    properties: dict[str, Any] = field(default_factory=dict)

    def _resolve_all(self, specs: Sequence[FileSpec], base_dir: Optional[str]) -> list[str]:
        exclude_globs = [compile_globs(self.excludes)] if self.excludes else []
        files: list[str] = []
        for spec in specs:
            files.extend(resolve(spec, base_dir, self.directory, exclude_globs))
        return files

    def source_files(self, base_dir: Optional[str] = None) -> list[str]:
        """Resolve ``sources`` beneath the project directory."""
        return self._resolve_all(self.sources, base_dir)

    def resource_files(self, base_dir: Optional[str] = None) -> list[str]:
        """Resolve ``resources`` beneath the project directory."""
        return self._resolve_all(self.resources, base_dir)


class ScriptRecorder:
    """Collects DSL calls made while a build script runs."""

    def __init__(self, profiles: Iterable[str] = ()):
        self.profiles = tuple(profiles)
        self.projects: list[ProjectDecl] = []
        self.plugin_ids: list[str] = []
        self.repos: list[str] = []


@contextmanager
def recording(recorder: ScriptRecorder) -> Iterator[ScriptRecorder]:
    """Make ``recorder`` the target of DSL calls for the duration of the block."""
    token = _active_recorder.set(recorder)
    try:
        yield recorder
    finally:
        _active_recorder.reset(token)


def _recorder() -> ScriptRecorder:
    recorder = _active_recorder.get()
    if recorder is None:
        raise RuntimeError("Build script DSL called outside of a build script run")
    return recorder


def _specs(values: Iterable[Union[str, FileSpec]]) -> list[FileSpec]:
    if isinstance(values, (str, LiteralSpec, PatternSpec)):
        values = [values]
    return [to_file_spec(v) for v in values]


def project(
    name: str,
    version: str = "0.1",
    directory: str = ".",
    sources: Iterable[Union[str, FileSpec]] = (),
    resources: Iterable[Union[str, FileSpec]] = (),
    excludes: Iterable[str] = (),
    dependencies: Iterable[str] = (),
    properties: Optional[dict[str, Any]] = None,
) -> ProjectDecl:
    """Declare a project. Returns the declaration so scripts can refer to it."""
    decl = ProjectDecl(
        name=name,
        version=version,
        directory=directory,
        sources=_specs(sources),
        resources=_specs(resources),
        excludes=[excludes] if isinstance(excludes, str) else list(excludes),
        dependencies=list(dependencies),
        properties=dict(properties or {}),
    )
    _recorder().projects.append(decl)
    return decl


def plugins(*plugin_ids: str) -> None:
    """Declare plugins; resolved to locations before the full script compiles."""
    _recorder().plugin_ids.extend(plugin_ids)


def repos(*urls: str) -> None:
    """Declare repositories that plugin resolution may consult."""
    _recorder().repos.extend(urls)


def script_namespace(filename: str, profiles: Sequence[str] = ()) -> dict[str, Any]:
    """Globals for executing a build script (or its preamble)."""
    return {
        "__name__": "build_script",
        "__file__": filename,
        "__builtins__": builtins,
        "active_profiles": tuple(profiles),
        "project": project,
        "plugins": plugins,
        "repos": repos,
    }
