"""Build Context - per-invocation configuration.

Design:
    A BuildContext is created once per invocation and passed explicitly to
    every component (extractor, compiler, artifact runner, plugin applier).
    Nothing is stored in module globals, so the core can be driven several
    times in one process and tested with fake collaborators.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from rich.console import Console

    from .extractor import PluginResolver
    from .orchestrator import PluginApplier
    from .toolchain import CompileToolchain


@dataclass(frozen=True)
class BuildContext:
    """Shared configuration for one run over a set of build files.

    Attributes:
        tool_version: Version written to and compared against cache version stamps
        cache_root: Root of the build-script artifact cache
        profiles: Active profile names, applied to every build file
        toolchain: Compiles build scripts into artifacts
        plugin_resolver: Resolves declared plugin ids to classpath locations
        plugin_applier: Receives the collected projects on overall success
        executor: Worker pool owned by the caller; passed through untouched
        settings: Free-form user settings for plugins
        verbose: Whether verbose output is enabled
        show_summary: Whether to print a summary table after processing
        console: Rich console for the summary table (None = default console)
    """

    tool_version: str
    cache_root: Path
    profiles: tuple[str, ...]
    toolchain: "CompileToolchain"
    plugin_resolver: "PluginResolver"
    plugin_applier: "PluginApplier"
    executor: Optional[Any] = None
    settings: Mapping[str, Any] = field(default_factory=dict)
    verbose: bool = False
    show_summary: bool = False
    console: Optional["Console"] = None

    @classmethod
    def create(
        cls,
        profiles: tuple[str, ...] = (),
        cache_root: Optional[Path] = None,
        toolchain: Optional["CompileToolchain"] = None,
        plugin_resolver: Optional["PluginResolver"] = None,
        plugin_applier: Optional["PluginApplier"] = None,
        executor: Optional[Any] = None,
        settings: Optional[Mapping[str, Any]] = None,
        verbose: bool = False,
        show_summary: bool = False,
        console: Optional["Console"] = None,
        tool_version: Optional[str] = None,
    ) -> "BuildContext":
        """Create a BuildContext, filling unset collaborators with the defaults."""
        from scriptbuild import __version__
        from scriptbuild.paths import get_cache_root

        from .extractor import LocalPluginResolver
        from .orchestrator import LoggingPluginApplier
        from .toolchain import PythonToolchain

        version = tool_version if tool_version is not None else __version__
        return cls(
            tool_version=version,
            cache_root=cache_root if cache_root is not None else get_cache_root(),
            profiles=tuple(profiles),
            toolchain=toolchain if toolchain is not None else PythonToolchain(version),
            plugin_resolver=plugin_resolver if plugin_resolver is not None else LocalPluginResolver(),
            plugin_applier=plugin_applier if plugin_applier is not None else LoggingPluginApplier(),
            executor=executor,
            settings=dict(settings or {}),
            verbose=verbose,
            show_summary=show_summary,
            console=console,
        )
