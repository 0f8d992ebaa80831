# SPDX-License-Identifier: MIT
"""Utilities for loading the YAML build cache configuration.

The helpers centralise file-system access for configuration files and include
lightweight error handling so callers receive concise exceptions.
"""

from __future__ import annotations

from pathlib import Path
from typing import TypeVar

import logfire
import yaml
from pydantic import TypeAdapter, ValidationError

from models import AppConfig
from utils import ErrorHandler, LoggingErrorHandler

DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_CONFIG_FILE = Path("build-cache.yaml")

T = TypeVar("T")


def _read_file(path: Path, error_handler: ErrorHandler | None = None) -> str:
    """Return the contents of ``path``.

    Args:
        path: File location.
        error_handler: Processor for any errors encountered.

    Returns:
        The file contents.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuntimeError: If the file cannot be read.
    """
    handler = error_handler or LoggingErrorHandler()
    with logfire.span("fs.read_text", path=str(path)):
        try:
            with path.open("r", encoding="utf-8") as file:
                text = file.read()
                logfire.debug("Read text file", path=str(path), bytes=len(text))
                return text
        except FileNotFoundError as exc:
            handler.handle(f"Configuration file not found: {path}", exc)
            raise
        except OSError as exc:
            handler.handle(f"Error reading configuration file {path}", exc)
            raise RuntimeError(
                f"An error occurred while reading the configuration file: {exc}"
            ) from exc


def _read_yaml_file(
    path: Path,
    schema: type[T],
    error_handler: ErrorHandler | None = None,
) -> T:
    """Return YAML data loaded from ``path`` validated against ``schema``.

    An empty document validates as an empty mapping so every field falls back
    to its default.
    """
    handler = error_handler or LoggingErrorHandler()
    with logfire.span("fs.read_yaml", path=str(path)):
        try:
            adapter = TypeAdapter(schema)
            data = yaml.safe_load(_read_file(path, handler))
            return adapter.validate_python({} if data is None else data)
        except FileNotFoundError:
            raise
        except (RuntimeError, ValidationError, yaml.YAMLError, ValueError) as exc:
            handler.handle(f"Error reading YAML file {path}", exc)
            raise RuntimeError(
                f"An error occurred while reading the YAML file: {exc}"
            ) from exc


def load_app_config(
    base_dir: Path | str = DEFAULT_CONFIG_DIR,
    filename: Path | str = DEFAULT_CONFIG_FILE,
    error_handler: ErrorHandler | None = None,
) -> AppConfig:
    """Return the cache configuration stored at ``base_dir / filename``."""
    path = Path(base_dir) / Path(filename)
    return _read_yaml_file(path, AppConfig, error_handler)


__all__ = ["DEFAULT_CONFIG_DIR", "DEFAULT_CONFIG_FILE", "load_app_config"]
