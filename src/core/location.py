# SPDX-License-Identifier: MIT
"""Cache directory resolution."""

from __future__ import annotations

from pathlib import Path

from models import BuildCacheOptions, CacheLocation, ProjectContext


def resolve_cache_directory(
    options: BuildCacheOptions | None, project: ProjectContext
) -> Path:
    """Return the cache directory for ``project``.

    A configured directory wins: absolute paths are used as is and relative
    ones are joined to the project root. Without one the cache lives under
    ``<cache root>/<bundler>``.
    """
    if options is not None and options.cache_directory is not None:
        directory = options.cache_directory
        if directory.is_absolute():
            return directory
        return project.root_path / directory
    return project.cache_root / project.bundler_type


def cache_location(
    options: BuildCacheOptions | None, project: ProjectContext
) -> CacheLocation:
    """Return the :class:`CacheLocation` resolved for ``project``."""
    return CacheLocation(directory=resolve_cache_directory(options, project).absolute())


__all__ = ["cache_location", "resolve_cache_directory"]
