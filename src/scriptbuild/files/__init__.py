"""File selection: glob compilation and include/exclude resolution.

Public API:
    compile_globs / Glob: OR-combined wildcard matchers
    LiteralSpec / PatternSpec: the two file selection variants
    resolve: turn a spec into a list of files
"""

from .file_spec import (
    FileSpec,
    LiteralSpec,
    MissingRootError,
    PatternSpec,
    describe,
    is_included,
    resolve,
    to_file_spec,
)
from .glob import Glob, PatternError, compile_globs

__all__ = [
    "FileSpec",
    "Glob",
    "LiteralSpec",
    "MissingRootError",
    "PatternError",
    "PatternSpec",
    "compile_globs",
    "describe",
    "is_included",
    "resolve",
    "to_file_spec",
]
