"""Build script extraction.

Plugins and repositories must be known before the full build script can be
compiled, because plugins go on the script's classpath. Extraction therefore
runs in two phases:

    Phase A (preamble): keep only the top-level plugins()/repos() calls of
        the script (plus scriptbuild imports and constant assignments they
        may refer to), compile and run that reduced script, and resolve the
        declared plugin ids to concrete locations.
    Phase B (rewrite): apply the active profiles to the full source. A
        profile is a top-level ``name = False`` assignment; when ``name`` is
        active it is rewritten to ``name = True``.

The original build file is never modified; the orchestrator materializes the
rewritten source to a temporary file.
"""

import ast
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Protocol, Sequence

from scriptbuild.output import log_warning

from .build_file import BuildFileRef, ParsedBuildFile
from .dsl import DIRECTIVE_NAMES, ScriptRecorder, recording, script_namespace
from .toolchain import is_url

if TYPE_CHECKING:
    from .build_context import BuildContext

logger = logging.getLogger(__name__)


class BuildScriptError(Exception):
    """Raised when a build script cannot be read, parsed or its preamble run."""


class PluginResolver(Protocol):
    """Turns declared plugin ids into locations for the classpath."""

    def resolve(self, plugin_ids: Sequence[str], repos: Sequence[str], base_dir: Path) -> list[str]: ...


class LocalPluginResolver:
    """Resolves plugins that are URLs or paths relative to the build file.

    URLs are passed through unchanged; anything else is treated as a local
    directory or archive and made absolute against the build file's
    directory. Repositories are not consulted.
    """

    def resolve(self, plugin_ids: Sequence[str], repos: Sequence[str], base_dir: Path) -> list[str]:
        del repos  # Unused
        locations = []
        for plugin_id in plugin_ids:
            if is_url(plugin_id):
                locations.append(plugin_id)
            else:
                locations.append(str((base_dir / plugin_id).resolve()))
        return locations


def _parse(source: str, filename: str) -> ast.Module:
    try:
        return ast.parse(source, filename=filename)
    except SyntaxError as e:
        raise BuildScriptError(f"{filename}:{e.lineno}: {e.msg}") from e


def _is_directive(node: ast.stmt) -> bool:
    if not (isinstance(node, ast.Expr) and isinstance(node.value, ast.Call)):
        return False
    func = node.value.func
    if isinstance(func, ast.Name):
        return func.id in DIRECTIVE_NAMES
    if isinstance(func, ast.Attribute):
        return func.attr in DIRECTIVE_NAMES
    return False


def _is_scriptbuild_import(node: ast.stmt) -> bool:
    if isinstance(node, ast.ImportFrom):
        return node.level == 0 and (node.module or "").split(".")[0] == "scriptbuild"
    if isinstance(node, ast.Import):
        return all(alias.name.split(".")[0] == "scriptbuild" for alias in node.names)
    return False


def _is_literal(node: ast.expr) -> bool:
    if isinstance(node, ast.Constant):
        return True
    if isinstance(node, (ast.Tuple, ast.List)):
        return all(_is_literal(elt) for elt in node.elts)
    return False


def _is_constant_assignment(node: ast.stmt) -> bool:
    if isinstance(node, ast.Assign):
        return all(isinstance(t, ast.Name) for t in node.targets) and _is_literal(node.value)
    if isinstance(node, ast.AnnAssign):
        return isinstance(node.target, ast.Name) and node.value is not None and _is_literal(node.value)
    return False


def extract_preamble(source: str, filename: str) -> str:
    """Reduce a build script to the statements needed to discover plugins.

    Args:
        source: Full build script source
        filename: Name used in error messages

    Returns:
        Source of the reduced script ("" if the script declares nothing)

    Raises:
        BuildScriptError: If the source does not parse
    """
    tree = _parse(source, filename)
    kept = [
        node
        for node in tree.body
        if _is_directive(node) or _is_scriptbuild_import(node) or _is_constant_assignment(node)
    ]
    if not any(_is_directive(node) for node in kept):
        return ""
    return ast.unparse(ast.Module(body=kept, type_ignores=[])) + "\n"


def run_preamble(preamble: str, build_file: BuildFileRef, profiles: Sequence[str] = ()) -> ScriptRecorder:
    """Compile and run a preamble, returning what it declared.

    Raises:
        BuildScriptError: If the preamble fails to compile or raises
    """
    recorder = ScriptRecorder(profiles=profiles)
    if not preamble:
        return recorder

    filename = f"<preamble of {build_file.real_path}>"
    try:
        code = compile(preamble, filename, "exec", dont_inherit=True)
        with recording(recorder):
            exec(code, script_namespace(str(build_file.real_path), profiles))
    except Exception as e:
        raise BuildScriptError(f"Failed to run plugin declarations of {build_file.real_path}: {e}") from e

    logger.debug(f"Preamble of {build_file.name}: plugins={recorder.plugin_ids} repos={recorder.repos}")
    return recorder


def _profile_value(node: ast.stmt) -> tuple[str, ast.expr] | None:
    if isinstance(node, ast.Assign) and len(node.targets) == 1:
        target, value = node.targets[0], node.value
    elif isinstance(node, ast.AnnAssign) and node.value is not None:
        target, value = node.target, node.value
    else:
        return None
    if isinstance(target, ast.Name) and isinstance(value, ast.Constant) and value.value is False:
        return target.id, value
    return None


def apply_profiles(source: str, profiles: Iterable[str], filename: str = "<build script>") -> str:
    """Turn on the ``name = False`` profile flags named in ``profiles``.

    Only the ``False`` token is replaced, so line numbers and the rest of the
    source are untouched.

    Raises:
        BuildScriptError: If the source does not parse
    """
    wanted = set(profiles)
    if not wanted:
        return source

    tree = _parse(source, filename)
    found: set[str] = set()
    edits: list[tuple[int, int, int]] = []
    for node in tree.body:
        flag = _profile_value(node)
        if flag is None or flag[0] not in wanted:
            continue
        name, value = flag
        edits.append((value.lineno - 1, value.col_offset, value.end_col_offset))
        found.add(name)
        logger.debug(f"Activated profile {name} in {filename}")

    # Not str.splitlines(): form feed and \x1c-\x1e do not end a line for ast
    lines = source.split("\n")
    # Right to left, so earlier offsets on the same line stay valid
    for index, start, end in sorted(edits, reverse=True):
        # col offsets are in UTF-8 bytes
        encoded = lines[index].encode("utf-8")
        lines[index] = (encoded[:start] + b"True" + encoded[end:]).decode("utf-8")

    for missing in sorted(wanted - found):
        log_warning(f"Profile {missing} not found in {filename}")
    return "\n".join(lines)


class BuildScriptExtractor:
    """Produces the ParsedBuildFile for a build file (phase A then phase B)."""

    def __init__(self, context: "BuildContext"):
        self.context = context

    def extract(self, build_file: BuildFileRef) -> ParsedBuildFile:
        """Extract plugins, repositories and the rewritten source.

        Raises:
            BuildScriptError: If the build file cannot be read, parsed or its preamble run
        """
        if not build_file.exists():
            raise BuildScriptError(f"Build file {build_file.real_path} does not exist")
        try:
            source = build_file.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise BuildScriptError(f"Cannot read {build_file.real_path}: {e}") from e

        filename = str(build_file.real_path)
        preamble = extract_preamble(source, filename)
        recorder = run_preamble(preamble, build_file, self.context.profiles)
        plugin_urls = self.context.plugin_resolver.resolve(recorder.plugin_ids, recorder.repos, build_file.directory)

        return ParsedBuildFile(
            build_file=build_file,
            build_script_code=apply_profiles(source, self.context.profiles, filename),
            plugin_urls=plugin_urls,
            repos=list(recorder.repos),
            profiles=list(self.context.profiles),
        )
