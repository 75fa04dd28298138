"""File selection specs and their resolution to file lists.

A FileSpec is one of two variants:

- LiteralSpec: a single path, returned verbatim. No filesystem access and
  no exclude filtering; a literal is an explicit request for that file.
- PatternSpec: include patterns evaluated beneath a root directory, with a
  caller-supplied list of exclude globs that always wins over the includes.

The variants are plain dataclasses joined in a Union and dispatched in
resolve(), so the exclude-immunity of literals is visible at the one place
that resolves specs.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .glob import Glob, compile_globs

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = frozenset("*?[{")


class MissingRootError(RuntimeError):
    """Raised when a directory root for pattern resolution does not exist.

    The caller is expected to have validated the root upstream, so this is a
    precondition violation rather than a recoverable condition.
    """


@dataclass(frozen=True)
class LiteralSpec:
    """Exactly one file, independent of any exclude rules."""

    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True, init=False)
class PatternSpec:
    """Files beneath a root directory selected by include patterns."""

    patterns: tuple[str, ...]

    def __init__(self, patterns: Union[str, Iterable[str]]):
        if isinstance(patterns, str):
            patterns = (patterns,)
        object.__setattr__(self, "patterns", tuple(patterns))

    def __str__(self) -> str:
        return describe(self)


FileSpec = Union[LiteralSpec, PatternSpec]


def to_file_spec(value: Union[str, LiteralSpec, PatternSpec]) -> FileSpec:
    """Coerce a build-script value to a FileSpec.

    Strings containing glob wildcards become PatternSpecs, anything else a
    LiteralSpec. Specs are returned unchanged.
    """
    if isinstance(value, (LiteralSpec, PatternSpec)):
        return value
    if _WILDCARD_CHARS.intersection(value):
        return PatternSpec(value)
    return LiteralSpec(value)


def describe(spec: FileSpec) -> str:
    if isinstance(spec, LiteralSpec):
        return spec.path
    if not spec.patterns:
        return ""
    return "Included files: " + ", ".join(spec.patterns)


def resolve(
    spec: FileSpec,
    base_dir: Optional[str],
    root_path: str,
    excludes: Sequence[Glob] = (),
) -> list[str]:
    """Resolve a FileSpec to a list of paths.

    Args:
        spec: Literal or pattern spec
        base_dir: Directory that a relative root_path is joined onto (may be None)
        root_path: Root directory for pattern resolution, or a single file path
        excludes: Exclude globs; ignored for LiteralSpec

    Returns:
        For LiteralSpec, ``[spec.path]``. For PatternSpec, accepted file paths
        relative to the root, in filesystem traversal order.

    Raises:
        PatternError: If an include pattern is malformed
        MissingRootError: If root_path denotes a directory that does not exist
    """
    if isinstance(spec, LiteralSpec):
        return [spec.path]
    elif isinstance(spec, PatternSpec):
        return _resolve_patterns(spec, base_dir, root_path, excludes)
    raise TypeError(f"Unsupported file spec: {spec!r}")


def is_included(includes: Glob, excludes: Sequence[Glob], rel: str) -> bool:
    """Classify one path: any exclude rejects, otherwise any include accepts."""
    for exclude in excludes:
        if exclude.matches(rel):
            logger.debug(f"Excluding {rel}")
            return False
    if includes.matches(rel):
        logger.debug(f"Including {rel}")
        return True
    logger.debug(f"Excluding {rel} (not matching any include pattern)")
    return False


def _root_directory(base_dir: Optional[str], root_path: str) -> str:
    if os.path.isabs(root_path):
        joined = root_path
    elif base_dir is not None:
        joined = os.path.join(base_dir, root_path)
    else:
        joined = root_path
    return joined or os.curdir


def _denotes_directory(root_path: str, root: str) -> bool:
    return os.path.isdir(root) or root_path.endswith(("/", os.sep))


def _resolve_patterns(
    spec: PatternSpec,
    base_dir: Optional[str],
    root_path: str,
    excludes: Sequence[Glob],
) -> list[str]:
    includes = compile_globs(spec.patterns)
    org_root = _root_directory(base_dir, root_path)

    if not _denotes_directory(root_path, org_root):
        # A single file: classify the path exactly as the caller spelled it
        if is_included(includes, excludes, root_path):
            return [root_path]
        return []

    # An empty normalized root means the current directory
    root = os.path.normpath(org_root) or os.curdir
    if not os.path.isdir(root):
        raise MissingRootError(f'Directory "{root}" should exist')

    result: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            rel = os.path.relpath(os.path.join(dirpath, filename), root).replace(os.sep, "/")
            if is_included(includes, excludes, rel):
                logger.debug(f"  including file {rel} from root {root}")
                result.append(rel)
    return result
