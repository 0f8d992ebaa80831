# SPDX-License-Identifier: MIT
"""Exceptions raised while preparing the persistent build cache.

All failures abort cache setup for the current invocation. Nothing here is
retried automatically; a failed build is preferred over a silently stale
cache.
"""

from __future__ import annotations

from pathlib import Path


class BuildCacheError(RuntimeError):
    """Base class for cache preparation failures."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class PathAccessError(BuildCacheError):
    """A path could not be inspected for a reason other than not existing."""


class MetadataCorruptError(BuildCacheError):
    """The stored dependency metadata is not a valid dependency set."""


class DirectoryRemovalError(BuildCacheError):
    """The cache directory could not be removed."""


__all__ = [
    "BuildCacheError",
    "DirectoryRemovalError",
    "MetadataCorruptError",
    "PathAccessError",
]
