"""Version stamp for build-script cache directories.

Each cache directory carries a ``version.txt`` naming the scriptbuild version
that populated it. Artifacts compiled by another version may reference DSL
APIs that changed in between, so a directory whose stamp does not match the
running version is wiped completely before it is used again.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from scriptbuild.output import log

logger = logging.getLogger(__name__)

VERSION_FILE_NAME = "version.txt"


def read_version(directory: Path) -> Optional[str]:
    """Version recorded in ``directory``, or None if there is no readable stamp."""
    stamp = directory / VERSION_FILE_NAME
    try:
        return stamp.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning(f"Failed to read version stamp {stamp}: {e}")
        return None


def is_same_version(directory: Path, version: str) -> bool:
    return read_version(directory) == version


def write_version(directory: Path, version: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / VERSION_FILE_NAME).write_text(version, encoding="utf-8")


def wipe_directory(directory: Path) -> int:
    """Delete everything inside ``directory`` (the directory itself stays).

    Returns:
        Number of entries removed
    """
    removed = 0
    for entry in directory.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
        removed += 1
    return removed


def ensure_same_version(directory: Path, version: str) -> bool:
    """Wipe ``directory`` unless its stamp matches ``version``.

    Returns:
        True if a stale directory was wiped
    """
    if not directory.is_dir() or is_same_version(directory, version):
        return False
    if not any(directory.iterdir()):
        return False

    stamp = read_version(directory)
    log(f"Detected new installation, wiping {directory}", verbose_only=True)
    removed = wipe_directory(directory)
    logger.info(f"Wiped {removed} entries from {directory} (stamp {stamp!r} != {version!r})")
    return True
