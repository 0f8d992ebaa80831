# SPDX-License-Identifier: MIT
"""Pydantic models describing build contexts, cache locations and descriptors.

These definitions act as the contract between the command-line interface, the
cache preparation engine and the host compiler that consumes the resulting
cache configuration. Each class documents the structure and semantics of the
data exchanged throughout the system.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import DEFAULT_CACHE_PATH, METADATA_FILENAME

BundlerType = Literal["rspack", "webpack"]

# Category name -> ordered list of absolute file paths.
DependencySet = dict[str, list[str]]


class StrictModel(BaseModel):
    """Base model with strict settings to prevent shape drift."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=False)


class DependencyCategory(str, Enum):
    """Classes of external input that silently change compilation output."""

    MANIFEST = "manifest"
    TYPE_CHECKER_CONFIG = "type-checker-config"
    BUILD_TOOL_CONFIG = "build-tool-config"
    BROWSERSLIST_CONFIG = "browserslist-config"
    CSS_FRAMEWORK_CONFIG = "css-framework-config"


class CacheLocation(StrictModel):
    """Absolute cache directory plus its co-located metadata file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    directory: Path = Field(..., description="Absolute cache directory.")

    @field_validator("directory")
    @classmethod
    def _require_absolute(cls, value: Path) -> Path:
        """Reject relative directories so locations never depend on the cwd."""

        if not value.is_absolute():
            raise ValueError(f"cache directory must be absolute: {value}")
        return value

    @property
    def metadata_file(self) -> Path:
        """Return the path of the last-seen dependency set."""
        return self.directory / METADATA_FILENAME


class ProjectContext(StrictModel):
    """Project level facts shared by every build environment."""

    root_path: Path = Field(..., description="Project root directory.")
    cache_path: Path | None = Field(
        None,
        description="Cache root; defaults to node_modules/.cache under the root.",
    )
    bundler_type: BundlerType = Field(
        "rspack", description="Active bundler driving the build."
    )

    @property
    def cache_root(self) -> Path:
        """Return the cache root, falling back to the default location."""
        if self.cache_path is None:
            return self.root_path / DEFAULT_CACHE_PATH
        if self.cache_path.is_absolute():
            return self.cache_path
        return self.root_path / self.cache_path


class EnvironmentContext(StrictModel):
    """A single build target evaluated during one invocation."""

    name: Annotated[
        str, Field(min_length=1, description="Environment name, e.g. 'web'.")
    ]
    mode: Annotated[
        str, Field(min_length=1, description="Build mode, e.g. 'production'.")
    ] = "production"
    tsconfig_path: Path | None = Field(
        None, description="Resolved type-checker config path, if any."
    )
    config_file_path: Path | None = Field(
        None, description="File the active build configuration was loaded from."
    )

    @field_validator("tsconfig_path", "config_file_path", mode="before")
    @classmethod
    def _empty_as_absent(cls, value: Any) -> Any:
        """Treat empty strings as an absent path."""

        if isinstance(value, str) and not value.strip():
            return None
        return value


class BuildCacheOptions(StrictModel):
    """User supplied persistent cache options."""

    cache_directory: Path | None = Field(
        None,
        description="Cache directory, absolute or relative to the project root.",
    )
    cache_digest: list[str | None] | None = Field(
        None,
        description="Extra tokens that invalidate the cache when they change.",
    )


class CacheDescriptor(StrictModel):
    """Cache settings handed to the host compiler's cache subsystem."""

    bundler_type: BundlerType
    directory: Path
    version: str
    build_dependencies: DependencySet = Field(default_factory=dict)

    def dependency_paths(self) -> list[str]:
        """Return every tracked path flattened in category insertion order."""
        return [
            path for paths in self.build_dependencies.values() for path in paths
        ]

    def to_bundler_config(self) -> dict[str, Any]:
        """Render the descriptor in the shape the bundler expects."""
        if self.bundler_type == "rspack":
            return {
                "type": "persistent",
                "version": self.version,
                "directory": str(self.directory),
                "buildDependencies": self.dependency_paths(),
            }
        return {
            "type": "filesystem",
            "name": self.version,
            "cacheDirectory": str(self.directory),
            "buildDependencies": {
                key: list(paths) for key, paths in self.build_dependencies.items()
            },
        }


class EnvironmentConfig(StrictModel):
    """Environment entry as written in the YAML configuration."""

    name: Annotated[str, Field(min_length=1, description="Environment name.")]
    tsconfig_path: Path | None = Field(
        None,
        description="Type-checker config relative to the root; tsconfig.json if unset.",
    )
    build_cache: bool | BuildCacheOptions | None = Field(
        None, description="Per-environment override of the cache setting."
    )


class AppConfig(StrictModel):
    """Top-level file configuration controlling cache preparation."""

    root: Path = Field(Path("."), description="Project root directory.")
    cache_path: Path | None = Field(None, description="Cache root override.")
    bundler: BundlerType = Field("rspack", description="Active bundler.")
    mode: Annotated[str, Field(min_length=1, description="Build mode.")] = (
        "production"
    )
    build_cache: bool | BuildCacheOptions | None = Field(
        None,
        description="Enable the persistent cache or supply cache options.",
    )
    environments: list[EnvironmentConfig] = Field(
        default_factory=lambda: [EnvironmentConfig(name="web")],
        description="Build environments sharing this configuration.",
    )
    corrupt_metadata: Literal["invalidate", "raise"] = Field(
        "invalidate",
        description="Reaction to an unreadable dependency metadata file.",
    )
    log_level: Annotated[
        str, Field(min_length=1, description="Logging verbosity level.")
    ] = "warn"


__all__ = [
    "AppConfig",
    "BuildCacheOptions",
    "BundlerType",
    "CacheDescriptor",
    "CacheLocation",
    "DependencyCategory",
    "DependencySet",
    "EnvironmentConfig",
    "EnvironmentContext",
    "ProjectContext",
    "StrictModel",
]
