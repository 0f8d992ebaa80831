# SPDX-License-Identifier: MIT
"""Centralised configuration management.

This module exposes :class:`Settings`, a ``pydantic-settings`` model that
combines values sourced from a YAML configuration file and environment
variables. Environment variables take precedence over file-based values and
the merged configuration is validated before use.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from io_utils.loader import DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_FILE, load_app_config
from models import (
    AppConfig,
    BuildCacheOptions,
    BundlerType,
    EnvironmentConfig,
    ProjectContext,
)

ENV_PREFIX = "BUILD_CACHE_"


class Settings(BaseSettings):
    """Settings combining file-based and environment configuration."""

    root: Path = Field(Path("."), description="Project root directory.")
    cache_path: Path | None = Field(None, description="Cache root override.")
    bundler: BundlerType = Field("rspack", description="Active bundler.")
    mode: str = Field("production", min_length=1, description="Build mode.")
    build_cache: bool | BuildCacheOptions | None = Field(
        None, description="Enable the persistent cache or supply cache options."
    )
    environments: list[EnvironmentConfig] = Field(
        default_factory=lambda: [EnvironmentConfig(name="web")],
        description="Build environments to prepare.",
    )
    corrupt_metadata: Literal["invalidate", "raise"] = Field(
        "invalidate", description="Reaction to unreadable dependency metadata."
    )
    log_level: str = Field("warn", description="Logging verbosity level.")
    logfire_token: str | None = Field(
        None, description="Logfire authentication token, if available.", repr=False
    )
    config_file_path: Path | None = Field(
        None, description="File the configuration was loaded from."
    )

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, extra="ignore")

    def project(self) -> ProjectContext:
        """Return the project context described by these settings."""
        return ProjectContext(
            root_path=self.root.absolute(),
            cache_path=self.cache_path,
            bundler_type=self.bundler,
        )


def _file_values(config: AppConfig) -> dict[str, object]:
    """Return file values not overridden by a ``BUILD_CACHE_*`` variable."""
    values = config.model_dump(exclude_unset=True)
    return {
        name: getattr(config, name)
        for name in values
        if f"{ENV_PREFIX}{name.upper()}" not in os.environ
    }


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load and validate settings.

    Values are read from ``config_path`` (or ``config/build-cache.yaml`` when it
    exists) and merged with ``BUILD_CACHE_*`` environment variables, which
    win. A ``.env`` file in the working directory is loaded when present. The
    absolute path of the configuration file is recorded because changes to it
    must invalidate the build cache.

    Args:
        config_path: Optional path to a YAML configuration file.

    Returns:
        Settings: Fully validated configuration.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        RuntimeError: If configuration values are missing or invalid.
    """
    if config_path:
        cfg_path = Path(config_path)
    else:
        cfg_path = DEFAULT_CONFIG_DIR / DEFAULT_CONFIG_FILE
    config_file: Path | None = None
    if config_path or cfg_path.is_file():
        config = load_app_config(cfg_path.parent, cfg_path.name)
        config_file = cfg_path.absolute()
    else:
        config = AppConfig()
    env_file_path = Path(".env")
    env_file = env_file_path if env_file_path.exists() else None
    try:
        # Validate and merge configuration from file, env file and environment.
        return Settings(
            **_file_values(config),
            config_file_path=config_file,
            _env_file=env_file,
        )
    except ValidationError as exc:
        # Summarise validation issues so the caller receives clear feedback.
        details = "; ".join(
            f"{'.'.join(map(str, error['loc']))}: {error['msg']}"
            for error in exc.errors()
        )
        raise RuntimeError(f"Invalid configuration: {details}") from exc


__all__ = ["ENV_PREFIX", "Settings", "load_settings"]
