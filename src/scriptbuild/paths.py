"""
Cache path configuration.

Centralized location of compiled build-script artifacts. Supports a
development mode and an explicit override so test runs and dev checkouts
never share a cache with an installed release.

Modes:
- Override (SCRIPTBUILD_CACHE_DIR=<dir>): <dir>
- Development (SCRIPTBUILD_DEV_MODE=1): ~/.scriptbuild/cache_dev/
- Production (default): ~/.scriptbuild/cache/

Layout under the cache root:
    scripts/<key>/buildScript.zip              compiled artifact
    scripts/<key>/version.txt                  version stamp
    scripts/<key>/buildScript.fingerprint.json source fingerprint

where <key> is derived from the real path of the build file, so each build
file owns exactly one cache directory.
"""

import hashlib
import os
from pathlib import Path

SCRIPT_ARTIFACT = "buildScript.zip"
SCRIPTS_DIR_NAME = "scripts"


def is_dev_mode() -> bool:
    """Check if development mode is enabled."""
    return os.environ.get("SCRIPTBUILD_DEV_MODE") == "1"


def get_cache_root() -> Path:
    """Get cache root directory respecting SCRIPTBUILD_CACHE_DIR and dev mode."""
    cache_env = os.environ.get("SCRIPTBUILD_CACHE_DIR")
    if cache_env:
        return Path(cache_env).resolve()
    elif is_dev_mode():
        return Path.home() / ".scriptbuild" / "cache_dev"
    else:
        return Path.home() / ".scriptbuild" / "cache"


def build_file_key(real_path: Path) -> str:
    """Stable cache key for a build file (first 16 hex chars of sha256)."""
    normalized = str(Path(real_path).absolute()).replace("\\", "/")
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]


def find_build_script_location(cache_root: Path, real_path: Path, artifact_name: str = SCRIPT_ARTIFACT) -> Path:
    """Deterministic artifact path for a build file.

    Args:
        cache_root: Root of the scriptbuild cache
        real_path: Real (original) location of the build file
        artifact_name: File name of the artifact inside its cache directory

    Returns:
        Path to the artifact; its parent directory is the build file's cache directory
    """
    return cache_root / SCRIPTS_DIR_NAME / build_file_key(real_path) / artifact_name
