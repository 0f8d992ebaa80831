# SPDX-License-Identifier: MIT
"""Prepare persistent bundler caches for one or more build environments.

For each environment the engine collects the untracked build dependencies,
passes them through the cache gate and derives the cache version. The result
is a :class:`~models.CacheDescriptor` the host applies to its bundler config.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Mapping, Sequence

import logfire

from core.collector import collect_build_dependencies
from core.gate import CorruptPolicy, validate_cache
from core.location import cache_location
from core.version import cache_version
from models import (
    BuildCacheOptions,
    CacheDescriptor,
    EnvironmentContext,
    ProjectContext,
)
from utils import (
    JSONMetadataStore,
    LocalPathChecker,
    MetadataStore,
    PathExistenceChecker,
)

BuildCacheSetting = bool | BuildCacheOptions | None


def resolve_options(
    build_cache: BuildCacheSetting, project: ProjectContext
) -> BuildCacheOptions | None:
    """Return effective cache options, or ``None`` when caching is disabled.

    Webpack's persistent cache is enabled unless turned off. Rspack's is
    experimental and must be enabled explicitly.
    """
    enabled = build_cache
    if enabled is None:
        enabled = project.bundler_type == "webpack"
    if enabled is False:
        return None
    if isinstance(enabled, BuildCacheOptions):
        return enabled
    return BuildCacheOptions()


async def prepare_build_cache(
    project: ProjectContext,
    environment: EnvironmentContext,
    build_cache: BuildCacheSetting = None,
    *,
    checker: PathExistenceChecker | None = None,
    store: MetadataStore | None = None,
    on_corrupt: CorruptPolicy = "invalidate",
) -> CacheDescriptor | None:
    """Validate the cache for ``environment`` and describe it for the bundler.

    Returns:
        The cache descriptor, or ``None`` when the persistent cache is off.
    """
    options = resolve_options(build_cache, project)
    if options is None:
        logfire.debug("Persistent cache disabled", environment=environment.name)
        return None

    checker = checker or LocalPathChecker()
    store = store or JSONMetadataStore()
    location = cache_location(options, project)
    with logfire.span(
        "engine.prepare_build_cache",
        environment=environment.name,
        directory=str(location.directory),
    ):
        dependencies = await collect_build_dependencies(project, environment, checker)
        await validate_cache(location, dependencies, store=store, on_corrupt=on_corrupt)
        version = cache_version(
            environment.name, environment.mode, options.cache_digest
        )
        logfire.info(
            "Prepared build cache",
            environment=environment.name,
            version=version,
            directory=str(location.directory),
        )
        return CacheDescriptor(
            bundler_type=project.bundler_type,
            directory=location.directory,
            version=version,
            build_dependencies=dependencies,
        )


async def prepare_environments(
    project: ProjectContext,
    environments: Sequence[EnvironmentContext],
    build_cache: BuildCacheSetting = None,
    *,
    overrides: Mapping[str, BuildCacheSetting] | None = None,
    checker: PathExistenceChecker | None = None,
    store: MetadataStore | None = None,
    on_corrupt: CorruptPolicy = "invalidate",
) -> dict[str, CacheDescriptor | None]:
    """Prepare caches for ``environments`` keyed by environment name.

    ``overrides`` replaces ``build_cache`` for the named environments.
    Environments resolving to the same cache directory run one after another
    because the gate assumes a single writer per directory; distinct
    directories are handled concurrently.
    """
    overrides = overrides or {}
    groups: dict[Path | None, list[tuple[EnvironmentContext, BuildCacheSetting]]]
    groups = defaultdict(list)
    for environment in environments:
        setting = overrides.get(environment.name, build_cache)
        options = resolve_options(setting, project)
        key = cache_location(options, project).directory if options else None
        groups[key].append((environment, setting))

    async def _run_group(
        group: list[tuple[EnvironmentContext, BuildCacheSetting]],
    ) -> list[tuple[str, CacheDescriptor | None]]:
        results = []
        for environment, setting in group:
            descriptor = await prepare_build_cache(
                project,
                environment,
                setting,
                checker=checker,
                store=store,
                on_corrupt=on_corrupt,
            )
            results.append((environment.name, descriptor))
        return results

    with logfire.span("engine.prepare_environments", groups=len(groups)):
        grouped = await asyncio.gather(*(_run_group(g) for g in groups.values()))
    results = dict(pair for group in grouped for pair in group)
    return {env.name: results[env.name] for env in environments}


__all__ = ["prepare_build_cache", "prepare_environments", "resolve_options"]
