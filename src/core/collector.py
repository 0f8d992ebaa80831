# SPDX-License-Identifier: MIT
"""Collect the external files that influence compilation output.

The bundler cannot see changes to its own configuration, the type-checker
config, the CSS framework config or browserslist targets, yet all of them
change what it emits. This module records which of those files exist so the
cache gate can invalidate when the set changes.
"""

from __future__ import annotations

from pathlib import Path

import logfire

from constants import (
    BROWSERSLIST_RC,
    DEFAULT_TSCONFIG,
    PACKAGE_JSON,
    TAILWIND_CONFIG_STEM,
    TAILWIND_EXTENSIONS,
)
from models import DependencyCategory, DependencySet, EnvironmentContext, ProjectContext
from utils.path_checker import PathExistenceChecker


def _absolute(root: Path, path: Path) -> Path:
    return path if path.is_absolute() else root / path


def tailwind_candidates(root: Path) -> list[Path]:
    """Return CSS framework config candidates in lookup order."""
    return [root / f"{TAILWIND_CONFIG_STEM}.{ext}" for ext in TAILWIND_EXTENSIONS]


async def resolve_tsconfig_path(
    root: Path,
    configured: Path | None,
    checker: PathExistenceChecker,
) -> Path | None:
    """Return the type-checker config path when the file exists.

    Args:
        root: Project root used to resolve relative paths.
        configured: Configured path; ``tsconfig.json`` when omitted.
        checker: Existence checker.
    """
    candidate = _absolute(root.absolute(), configured or DEFAULT_TSCONFIG)
    if await checker.exists(candidate):
        return candidate
    return None


async def collect_build_dependencies(
    project: ProjectContext,
    environment: EnvironmentContext,
    checker: PathExistenceChecker,
) -> DependencySet:
    """Return the dependency set for ``environment``.

    Categories whose file or setting is absent are omitted. Errors other than
    a missing file propagate as :class:`~core.errors.PathAccessError`.
    """
    root = project.root_path.absolute()
    with logfire.span("collector.collect", environment=environment.name):
        dependencies: DependencySet = {}

        package_json = root / PACKAGE_JSON
        if await checker.exists(package_json):
            dependencies[DependencyCategory.MANIFEST.value] = [str(package_json)]

        if environment.tsconfig_path is not None:
            dependencies[DependencyCategory.TYPE_CHECKER_CONFIG.value] = [
                str(_absolute(root, environment.tsconfig_path))
            ]

        if environment.config_file_path is not None:
            dependencies[DependencyCategory.BUILD_TOOL_CONFIG.value] = [
                str(_absolute(root, environment.config_file_path))
            ]

        browserslist = root / BROWSERSLIST_RC
        if await checker.exists(browserslist):
            dependencies[DependencyCategory.BROWSERSLIST_CONFIG.value] = [
                str(browserslist)
            ]

        tailwind = await checker.find_first_existing(tailwind_candidates(root))
        if tailwind is not None:
            dependencies[DependencyCategory.CSS_FRAMEWORK_CONFIG.value] = [
                str(tailwind)
            ]

        logfire.debug(
            "Collected build dependencies",
            environment=environment.name,
            categories=sorted(dependencies),
        )
        return dependencies


__all__ = [
    "collect_build_dependencies",
    "resolve_tsconfig_path",
    "tailwind_candidates",
]
