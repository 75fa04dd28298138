"""
Build file orchestration.

Drives extraction, incremental compilation and execution across all build
files of an invocation, in order:

    1. Extract plugins/repos and the profile-applied source
    2. Write the rewritten source to a temporary .py file
    3. Compile it into the build file's cache directory if stale
    4. Run the artifact and collect the projects it declares

A failing build file does not stop the others. The first failure becomes
the overall result, and projects from build files that did succeed are
still returned. Plugins are applied only when every build file succeeded.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from scriptbuild.output import TimedLogger, log, log_error, log_phase, set_verbose
from scriptbuild.paths import find_build_script_location

from .build_context import BuildContext
from .build_file import BuildFileRef, ParsedBuildFile
from .compiler import CompileOutcome, IncrementalCompiler
from .dsl import ProjectDecl
from .extractor import BuildScriptError, BuildScriptExtractor
from .task_result import TaskResult
from .toolchain import run_artifact

logger = logging.getLogger(__name__)

ArtifactRunner = Callable[[Path, Sequence[str], BuildContext], list[ProjectDecl]]


class PluginApplier(Protocol):
    """Receives the collected projects once all build files succeeded."""

    def apply_plugins(self, context: BuildContext, projects: list[ProjectDecl]) -> None: ...


class LoggingPluginApplier:
    """Default plugin applier: no plugin system attached, just report."""

    def apply_plugins(self, context: BuildContext, projects: list[ProjectDecl]) -> None:
        del context  # Unused
        logger.info(f"No plugin system attached; {len(projects)} project(s) left as declared")


@dataclass
class FindProjectResult:
    """Projects found across all build files and the overall outcome.

    ``projects`` may be non-empty even when ``task_result`` is a failure:
    build files processed after a failing one still contribute.
    """

    projects: list[ProjectDecl]
    task_result: TaskResult
    reports: list["BuildFileReport"] = field(default_factory=list)


@dataclass
class BuildFileReport:
    """Per build file outcome, for the summary display."""

    name: str
    outcome: Optional[CompileOutcome]
    project_count: int
    elapsed: float
    error_message: Optional[str] = None


def _materialize(source: str) -> Path:
    fd, name = tempfile.mkstemp(suffix=".py", prefix="build-")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(source)
    return Path(name)


class BuildFileCompiler:
    """
    Finds the projects declared by a list of build files.

    Args:
        build_files: Build files, processed in the given order
        context: Per-invocation configuration
        extractor: Override for the extraction phase (defaults to BuildScriptExtractor)
        compiler: Override for incremental compilation (defaults to IncrementalCompiler)
        artifact_runner: Override for running compiled artifacts (defaults to run_artifact)
    """

    def __init__(
        self,
        build_files: Sequence[BuildFileRef],
        context: BuildContext,
        extractor: Optional[BuildScriptExtractor] = None,
        compiler: Optional[IncrementalCompiler] = None,
        artifact_runner: Optional[ArtifactRunner] = None,
    ):
        self.build_files = list(build_files)
        self.context = context
        self.extractor = extractor if extractor is not None else BuildScriptExtractor(context)
        self.compiler = compiler if compiler is not None else IncrementalCompiler(context)
        self.artifact_runner = artifact_runner if artifact_runner is not None else run_artifact
        self.parsed_build_files: list[ParsedBuildFile] = []

    def compile_build_files(self) -> FindProjectResult:
        """Find all projects and, if every build file succeeded, apply plugins.

        Returns:
            FindProjectResult with the aggregated projects and the first failure (if any)

        Raises:
            BuildScriptExecutionError: If a compiled build script raises while running
            MissingRootError: If a pattern root that must exist is missing
        """
        result = self.find_projects()
        if result.task_result.success:
            self.context.plugin_applier.apply_plugins(self.context, result.projects)
        else:
            log_error(result.task_result.error_message or "Build file compilation failed")

        if self.context.show_summary:
            from .summary_display import BuildSummaryDisplay

            BuildSummaryDisplay(self.context.console).render(result.reports, result.task_result)
        return result

    def find_projects(self) -> FindProjectResult:
        set_verbose(self.context.verbose)
        error_result: Optional[TaskResult] = None
        projects: list[ProjectDecl] = []
        reports: list[BuildFileReport] = []
        total = len(self.build_files)

        for index, build_file in enumerate(self.build_files, start=1):
            log_phase(index, total, str(build_file.real_path), verbose_only=True)
            start = time.time()
            task_result, found = self._process(build_file)
            projects.extend(found)

            if not task_result.success and error_result is None:
                error_result = task_result

            reports.append(
                BuildFileReport(
                    name=str(build_file.real_path),
                    outcome=self.compiler.last_outcome if task_result.success else CompileOutcome.FAILED,
                    project_count=len(found),
                    elapsed=time.time() - start,
                    error_message=task_result.error_message,
                )
            )

        return FindProjectResult(
            projects=projects,
            task_result=error_result if error_result is not None else TaskResult.ok(),
            reports=reports,
        )

    def _process(self, build_file: BuildFileRef) -> tuple[TaskResult, list[ProjectDecl]]:
        try:
            parsed = self.extractor.extract(build_file)
        except BuildScriptError as e:
            return TaskResult.failure(str(e)), []
        self.parsed_build_files.append(parsed)

        artifact_path = find_build_script_location(self.context.cache_root, build_file.real_path)
        modified_file = _materialize(parsed.build_script_code)
        try:
            with TimedLogger(f"Checking {build_file.name}", verbose_only=True):
                task_result = self.maybe_compile_build_file(
                    build_file.modified(modified_file), artifact_path, parsed.plugin_urls
                )
        finally:
            modified_file.unlink(missing_ok=True)

        if not task_result.success:
            return task_result, []

        found = self.artifact_runner(artifact_path, parsed.plugin_urls, self.context)
        log(f"{build_file.name}: {len(found)} project(s)", verbose_only=True)
        return task_result, found

    def maybe_compile_build_file(
        self, build_file: BuildFileRef, artifact_path: Path, plugin_urls: Sequence[str]
    ) -> TaskResult:
        return self.compiler.ensure_compiled(build_file, artifact_path, plugin_urls)


def compile_build_files(build_files: Sequence[BuildFileRef], context: BuildContext) -> FindProjectResult:
    """Convenience wrapper: ``BuildFileCompiler(build_files, context).compile_build_files()``."""
    return BuildFileCompiler(build_files, context).compile_build_files()
