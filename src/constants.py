"""Project-wide constants and default paths.

This module centralises small constants that are imported across the
application. Keep this file minimal and free of side effects.
"""

from __future__ import annotations

from pathlib import Path

# Sidecar file stored inside the cache directory recording the last seen
# dependency set.
METADATA_FILENAME = "buildDependencies.json"

# Default cache root relative to the project root.
DEFAULT_CACHE_PATH = Path("node_modules") / ".cache"

DEFAULT_TSCONFIG = Path("tsconfig.json")

PACKAGE_JSON = "package.json"
BROWSERSLIST_RC = ".browserslistrc"
TAILWIND_CONFIG_STEM = "tailwind.config"
# Order matters: the first existing candidate wins.
TAILWIND_EXTENSIONS = ("ts", "js", "cjs", "mjs")

DIGEST_LENGTH = 8

__all__ = [
    "METADATA_FILENAME",
    "DEFAULT_CACHE_PATH",
    "DEFAULT_TSCONFIG",
    "PACKAGE_JSON",
    "BROWSERSLIST_RC",
    "TAILWIND_CONFIG_STEM",
    "TAILWIND_EXTENSIONS",
    "DIGEST_LENGTH",
]
