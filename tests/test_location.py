# SPDX-License-Identifier: MIT
"""Tests for cache directory resolution and location models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from core.location import cache_location, resolve_cache_directory
from models import BuildCacheOptions, CacheLocation, ProjectContext


def test_default_directory_is_per_bundler() -> None:
    project = ProjectContext(root_path=Path("/proj"), bundler_type="webpack")
    assert resolve_cache_directory(None, project) == Path(
        "/proj/node_modules/.cache/webpack"
    )


def test_custom_cache_root() -> None:
    project = ProjectContext(root_path=Path("/proj"), cache_path=Path("/tmp/c"))
    assert resolve_cache_directory(BuildCacheOptions(), project) == Path(
        "/tmp/c/rspack"
    )


def test_relative_cache_directory_joins_root() -> None:
    project = ProjectContext(root_path=Path("/proj"))
    options = BuildCacheOptions(cache_directory=Path(".build-cache"))
    assert resolve_cache_directory(options, project) == Path("/proj/.build-cache")


def test_absolute_cache_directory_is_kept() -> None:
    project = ProjectContext(root_path=Path("/proj"))
    options = BuildCacheOptions(cache_directory=Path("/var/cache/app"))
    location = cache_location(options, project)
    assert location.directory == Path("/var/cache/app")
    assert location.metadata_file == Path("/var/cache/app/buildDependencies.json")


def test_location_requires_absolute_directory() -> None:
    with pytest.raises(ValidationError):
        CacheLocation(directory=Path("relative/cache"))
