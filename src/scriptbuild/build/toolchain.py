"""Build script toolchain: compiling scripts to artifacts and running them.

Compilation Process:
    1. Check that every local classpath entry exists
    2. Byte-compile each source (the first one is the entry script)
    3. Write the code objects as .pyc members of a zip, next to a
       BUILD-INFO.json manifest (tool version, classpath)
    4. Replace the output file atomically

Running an artifact loads the entry code object from the zip and executes it
with the DSL recorder active and the artifact plus its classpath importable,
so the script can import helper modules and plugins.
"""

import importlib.util
import json
import logging
import marshal
import os
import sys
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Protocol, Sequence

from .dsl import ProjectDecl, ScriptRecorder, recording, script_namespace
from .task_result import TaskResult

if TYPE_CHECKING:
    from .build_context import BuildContext

logger = logging.getLogger(__name__)

ENTRY_MODULE = "build_script"
MANIFEST_NAME = "BUILD-INFO.json"


class BuildScriptExecutionError(Exception):
    """Raised when a compiled build script fails while running."""


class CompileToolchain(Protocol):
    """Compiles build script sources into a runnable artifact."""

    def compile(self, sources: Sequence[Path], classpath: Sequence[str], output: Path) -> TaskResult: ...


def runtime_location() -> str:
    """Location of the installed scriptbuild package (always on the classpath)."""
    return str(Path(__file__).resolve().parents[2])


def is_url(entry: str) -> bool:
    return "://" in entry


def _pyc_bytes(code: object, source: Path) -> bytes:
    stat = source.stat()
    header = (
        importlib.util.MAGIC_NUMBER
        + (0).to_bytes(4, "little")
        + (int(stat.st_mtime) & 0xFFFFFFFF).to_bytes(4, "little")
        + (stat.st_size & 0xFFFFFFFF).to_bytes(4, "little")
    )
    return header + marshal.dumps(code)


class PythonToolchain:
    """Compiles build scripts with the running interpreter.

    Args:
        tool_version: scriptbuild version recorded in the artifact manifest
        optimize: Optimization level passed to ``compile()`` (-1 = interpreter default)
    """

    def __init__(self, tool_version: str, optimize: int = -1):
        self.tool_version = tool_version
        self.optimize = optimize

    def compile(self, sources: Sequence[Path], classpath: Sequence[str], output: Path) -> TaskResult:
        if not sources:
            return TaskResult.failure("No sources to compile")

        missing = [entry for entry in classpath if not is_url(entry) and not Path(entry).exists()]
        if missing:
            return TaskResult.failure(f"Classpath entries not found: {', '.join(missing)}")

        members: dict[str, bytes] = {}
        for index, source in enumerate(sources):
            source = Path(source)
            try:
                text = source.read_text(encoding="utf-8")
                code = compile(text, str(source), "exec", dont_inherit=True, optimize=self.optimize)
            except SyntaxError as e:
                return TaskResult.failure(f"{e.filename}:{e.lineno}: {e.msg}")
            except (OSError, ValueError) as e:
                return TaskResult.failure(f"Failed to read {source}: {e}")
            module_name = ENTRY_MODULE if index == 0 else source.stem
            members[f"{module_name}.pyc"] = _pyc_bytes(code, source)

        manifest = {
            "tool_version": self.tool_version,
            "python": sys.version.split()[0],
            "entry": ENTRY_MODULE,
            "classpath": list(classpath),
        }

        output.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(suffix=".tmp", dir=output.parent)
        os.close(fd)
        temp_file = Path(temp_name)
        try:
            with zipfile.ZipFile(temp_file, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, data in members.items():
                    zf.writestr(name, data)
                zf.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2))
            temp_file.replace(output)
        except OSError as e:
            temp_file.unlink(missing_ok=True)
            return TaskResult.failure(f"Failed to write {output}: {e}")

        logger.debug(f"Compiled {len(members)} source(s) into {output}")
        return TaskResult.ok()


def read_manifest(artifact_path: Path) -> dict:
    with zipfile.ZipFile(artifact_path) as zf:
        return json.loads(zf.read(MANIFEST_NAME).decode("utf-8"))


def _loaded_from(module: object, roots: Sequence[str]) -> bool:
    location = getattr(module, "__file__", None)
    if not location:
        return False
    location = os.path.abspath(location)
    return any(location == root or location.startswith(root + os.sep) for root in roots)


@contextmanager
def _importable(entries: Sequence[str]) -> Iterator[None]:
    """Temporarily prepend local ``entries`` to the import path.

    Modules first imported from ``entries`` during the block are dropped from
    ``sys.modules`` on exit, so a later run picks up changed plugins instead
    of stale modules.
    """
    local = [e for e in entries if not is_url(e)]
    roots = [os.path.abspath(e) for e in local]
    saved = list(sys.path)
    preloaded = set(sys.modules)
    sys.path[:0] = local
    try:
        yield
    finally:
        sys.path[:] = saved
        for name, module in list(sys.modules.items()):
            if name not in preloaded and _loaded_from(module, roots):
                del sys.modules[name]


def run_artifact(artifact_path: Path, classpath: Sequence[str], context: "BuildContext") -> list[ProjectDecl]:
    """Execute a compiled build script and return the projects it declares.

    Args:
        artifact_path: Path to the compiled artifact
        classpath: Plugin locations made importable while the script runs
        context: Build context (active profiles)

    Returns:
        Declared projects, in declaration order

    Raises:
        BuildScriptExecutionError: If the artifact cannot be loaded or the script raises
    """
    try:
        entry = read_manifest(artifact_path).get("entry", ENTRY_MODULE)
        with zipfile.ZipFile(artifact_path) as zf:
            data = zf.read(f"{entry}.pyc")
    except (OSError, KeyError, ValueError, zipfile.BadZipFile) as e:
        raise BuildScriptExecutionError(f"Cannot load {artifact_path}: {e}") from e

    if data[:4] != importlib.util.MAGIC_NUMBER:
        raise BuildScriptExecutionError(f"{artifact_path} was compiled by a different Python version")
    code = marshal.loads(data[16:])

    recorder = ScriptRecorder(profiles=context.profiles)
    namespace = script_namespace(code.co_filename, context.profiles)
    with _importable([str(artifact_path), *classpath]), recording(recorder):
        try:
            exec(code, namespace)
        except Exception as e:
            raise BuildScriptExecutionError(f"Build script {code.co_filename} failed: {e}") from e

    logger.debug(f"{artifact_path} declared {len(recorder.projects)} project(s)")
    return recorder.projects
