"""Incremental compilation of build scripts.

ensure_compiled() runs one pass of a small state machine per build file:

    CheckVersion   -> wipe the cache directory if its version stamp is not
                      the running version (then continue, never skip)
    CheckStaleness -> artifact present, not older than the real build file,
                      and compiled from the same source + classpath
                      => UP_TO_DATE, no side effects
    Compile        -> delete the stale artifact, run the toolchain
                      => COMPILED or FAILED

The cache directory is not locked. Two runs compiling the same build file at
the same time can interleave a version wipe with the other run's artifact
write; callers that run concurrently must serialize on the cache directory
themselves.
"""

import hashlib
import importlib.util
import json
import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence

from scriptbuild.output import log, log_detail

from .build_file import BuildFileRef
from .task_result import TaskResult
from .toolchain import runtime_location
from .version_file import ensure_same_version, write_version

if TYPE_CHECKING:
    from .build_context import BuildContext

logger = logging.getLogger(__name__)

FINGERPRINT_FILE_NAME = "buildScript.fingerprint.json"


class CompileOutcome(Enum):
    """Terminal state of one ensure_compiled() pass."""

    UP_TO_DATE = "up to date"
    COMPILED = "compiled"
    FAILED = "failed"


def get_file_hash(file_path: Path) -> str:
    """SHA256 of a file's contents, read in chunks."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def compute_fingerprint(build_file: BuildFileRef, classpath: Sequence[str]) -> dict[str, Any]:
    """What an artifact depends on besides the tool version."""
    return {
        "source_sha256": get_file_hash(build_file.path),
        "classpath": list(classpath),
        "python_magic": importlib.util.MAGIC_NUMBER.hex(),
    }


def fingerprint_path(artifact_path: Path) -> Path:
    return artifact_path.parent / FINGERPRINT_FILE_NAME


def load_fingerprint(artifact_path: Path) -> Optional[dict[str, Any]]:
    path = fingerprint_path(artifact_path)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to load fingerprint from {path}: {e}")
        return None


def save_fingerprint(artifact_path: Path, fingerprint: dict[str, Any]) -> None:
    """Write the fingerprint atomically (temp file + rename)."""
    path = fingerprint_path(artifact_path)
    temp_file = path.with_suffix(".tmp")
    with open(temp_file, "w", encoding="utf-8") as f:
        json.dump(fingerprint, f, indent=2)
    temp_file.replace(path)


class IncrementalCompiler:
    """Compiles a build script only when its cached artifact is stale.

    Args:
        context: Build context (tool version, toolchain)
    """

    def __init__(self, context: "BuildContext"):
        self.context = context
        self.last_outcome: Optional[CompileOutcome] = None

    def is_up_to_date(self, build_file: BuildFileRef, artifact_path: Path, fingerprint: dict[str, Any]) -> bool:
        """Check whether ``artifact_path`` can be reused for ``build_file``.

        An artifact is reusable if:
        1. It exists
        2. It is not older than the real build file (mtime check)
        3. It was compiled from the same source and classpath (fingerprint check)
        """
        if not artifact_path.exists():
            logger.debug(f"Artifact missing: {artifact_path}")
            return False

        try:
            if artifact_path.stat().st_mtime < build_file.last_modified:
                logger.debug(f"Artifact older than {build_file.real_path}")
                return False
        except OSError as e:
            logger.warning(f"Failed to check file times: {e} - assuming recompilation needed")
            return False

        if load_fingerprint(artifact_path) != fingerprint:
            logger.debug(f"Source or classpath changed for {build_file.real_path}")
            return False
        return True

    def ensure_compiled(self, build_file: BuildFileRef, artifact_path: Path, extra_classpath: Sequence[str]) -> TaskResult:
        """Make sure ``artifact_path`` holds a current compilation of ``build_file``.

        Args:
            build_file: Build file to compile (possibly a rewritten copy)
            artifact_path: Target artifact inside the build file's cache directory
            extra_classpath: Plugin locations to compile against

        Returns:
            TaskResult; failures carry the toolchain's diagnostic
        """
        cache_dir = artifact_path.parent
        ensure_same_version(cache_dir, self.context.tool_version)

        classpath = [runtime_location(), *extra_classpath]
        try:
            fingerprint = compute_fingerprint(build_file, classpath)
        except OSError as e:
            self.last_outcome = CompileOutcome.FAILED
            return TaskResult.failure(f"Cannot read {build_file.real_path}: {e}")

        log(f"Running build file {build_file.name} artifact: {artifact_path}", verbose_only=True)
        if self.is_up_to_date(build_file, artifact_path, fingerprint):
            log_detail("Build file is up to date", verbose_only=True)
            self.last_outcome = CompileOutcome.UP_TO_DATE
            return TaskResult.ok()

        log_detail(f"Need to recompile {build_file.name}", verbose_only=True)
        artifact_path.unlink(missing_ok=True)
        fingerprint_path(artifact_path).unlink(missing_ok=True)
        cache_dir.mkdir(parents=True, exist_ok=True)

        result = self.context.toolchain.compile([build_file.path], classpath, artifact_path)
        if not result.success:
            self.last_outcome = CompileOutcome.FAILED
            # Report the user's file, not the temporary rewritten copy
            message = (result.error_message or "Compilation failed").replace(
                str(build_file.path), str(build_file.real_path)
            )
            return TaskResult.failure(message)

        save_fingerprint(artifact_path, fingerprint)
        write_version(cache_dir, self.context.tool_version)
        self.last_outcome = CompileOutcome.COMPILED
        return result
