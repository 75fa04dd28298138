"""scriptbuild - build-script compilation core.

Compiles Python build scripts into cached, runnable artifacts and resolves
include/exclude file selections for the projects those scripts declare.
"""

__version__ = "0.4.2"

from scriptbuild.build.build_context import BuildContext
from scriptbuild.build.build_file import BuildFileRef, ParsedBuildFile
from scriptbuild.build.dsl import ProjectDecl
from scriptbuild.build.orchestrator import BuildFileCompiler, FindProjectResult, compile_build_files
from scriptbuild.build.task_result import TaskResult
from scriptbuild.files.file_spec import LiteralSpec, PatternSpec, resolve
from scriptbuild.files.glob import Glob, PatternError, compile_globs

__all__ = [
    "__version__",
    "BuildContext",
    "BuildFileCompiler",
    "BuildFileRef",
    "FindProjectResult",
    "Glob",
    "LiteralSpec",
    "ParsedBuildFile",
    "PatternError",
    "PatternSpec",
    "ProjectDecl",
    "TaskResult",
    "compile_build_files",
    "compile_globs",
    "resolve",
]
