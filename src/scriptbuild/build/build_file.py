"""Build file references and the parsed form produced by extraction."""

from dataclasses import dataclass, field
from pathlib import Path

BUILD_FILE_NAME = "build.py"


@dataclass(frozen=True)
class BuildFileRef:
    """Identifies a build script.

    When the script content has been rewritten to a temporary location,
    ``path`` points at the rewritten copy while ``real_path`` keeps pointing
    at the file the user wrote. Diagnostics, cache keys and staleness checks
    use ``real_path``.

    Attributes:
        path: Location of the content to compile
        name: Display name (e.g. "build.py" or "Modified build.py")
        real_path: Original location of the build file
    """

    path: Path
    name: str
    real_path: Path = field(default=None)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        real = self.path if self.real_path is None else Path(self.real_path)
        object.__setattr__(self, "real_path", real)

    @classmethod
    def from_path(cls, path: Path) -> "BuildFileRef":
        path = Path(path)
        return cls(path=path, name=path.name, real_path=path)

    @property
    def directory(self) -> Path:
        """Directory the build file lives in (of the real path)."""
        return self.real_path.absolute().parent

    def exists(self) -> bool:
        return self.path.exists()

    @property
    def last_modified(self) -> float:
        """Modification time of the real build file.

        Falls back to ``path`` when the real file is gone; a rewritten temp
        copy is always fresh, so its own mtime says nothing about staleness.
        """
        target = self.real_path if self.real_path.exists() else self.path
        return target.stat().st_mtime

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def modified(self, rewritten_path: Path) -> "BuildFileRef":
        """Reference to a rewritten copy of this build file."""
        return BuildFileRef(path=rewritten_path, name=f"Modified {self.name}", real_path=self.real_path)


@dataclass
class ParsedBuildFile:
    """Result of extracting a build file.

    Attributes:
        build_file: The build file this was extracted from
        build_script_code: Full script source with active profiles applied
        plugin_urls: Resolved plugin locations, in declaration order
        repos: Repositories declared by the script, in declaration order
        profiles: Profiles that were applied to the source
    """

    build_file: BuildFileRef
    build_script_code: str
    plugin_urls: list[str] = field(default_factory=list)
    repos: list[str] = field(default_factory=list)
    profiles: list[str] = field(default_factory=list)
