"""Purge of cached build-script artifacts.

Lists and deletes the per-build-file cache directories under
``<cache_root>/scripts/``. Stale entries (compiled by another scriptbuild
version) are wiped on their next use anyway; purging them ahead of time just
reclaims the space.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from scriptbuild.build.version_file import read_version
from scriptbuild.output import log, log_error, log_warning
from scriptbuild.paths import SCRIPT_ARTIFACT, SCRIPTS_DIR_NAME


@dataclass
class ScriptCacheEntry:
    """One build file's cache directory."""

    key: str
    path: Path
    version: Optional[str]
    has_artifact: bool
    size_bytes: int

    def is_stale(self, tool_version: str) -> bool:
        return self.version != tool_version


def format_size(size_bytes: int) -> str:
    """Format bytes as B/KB/MB/GB (e.g. "95.1 MB")."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def _calculate_dir_size(directory: Path) -> int:
    total_size = 0
    for dirpath, _, filenames in os.walk(directory):
        for filename in filenames:
            try:
                total_size += (Path(dirpath) / filename).stat().st_size
            except OSError:
                # File might be deleted/inaccessible
                continue
    return total_size


class ScriptCacheDiscovery:
    """Discovers build-script cache entries.

    Args:
        cache_root: Root cache directory (e.g., ~/.scriptbuild/cache/)
    """

    def __init__(self, cache_root: Path):
        self.cache_root = cache_root

    def discover(self) -> list[ScriptCacheEntry]:
        """Cache entries sorted by key."""
        scripts_dir = self.cache_root / SCRIPTS_DIR_NAME
        if not scripts_dir.is_dir():
            return []

        entries = []
        for entry_dir in scripts_dir.iterdir():
            if not entry_dir.is_dir():
                continue
            entries.append(
                ScriptCacheEntry(
                    key=entry_dir.name,
                    path=entry_dir,
                    version=read_version(entry_dir),
                    has_artifact=(entry_dir / SCRIPT_ARTIFACT).exists(),
                    size_bytes=_calculate_dir_size(entry_dir),
                )
            )
        entries.sort(key=lambda e: e.key)
        return entries


def purge_script_cache(
    cache_root: Path,
    dry_run: bool = False,
    stale_only: bool = False,
    tool_version: Optional[str] = None,
) -> int:
    """Delete cached build-script entries.

    Args:
        cache_root: Root cache directory
        dry_run: If True, only report what would be deleted
        stale_only: If True, only delete entries not stamped with ``tool_version``
        tool_version: Version considered current (defaults to the running version)

    Returns:
        Number of entries deleted (or that would be deleted in a dry run)
    """
    if tool_version is None:
        from scriptbuild import __version__

        tool_version = __version__

    entries = ScriptCacheDiscovery(cache_root).discover()
    if stale_only:
        entries = [e for e in entries if e.is_stale(tool_version)]

    if not entries:
        log("No cached build scripts to purge")
        return 0

    count = 0
    for entry in entries:
        description = f"{entry.key} (version {entry.version or 'unknown'}, {format_size(entry.size_bytes)})"
        if dry_run:
            log(f"Would delete: {description}")
            count += 1
            continue
        if not entry.path.exists():
            log_warning(f"Already deleted: {entry.key}")
            continue
        try:
            shutil.rmtree(entry.path)
        except OSError as e:
            log_error(f"Failed to delete {entry.key}: {e}")
            continue
        log(f"Deleted: {description}")
        count += 1
    return count
