"""Input helpers for configuration files.

Exports:
    load_app_config: Read and validate the YAML cache configuration.
"""

from .loader import DEFAULT_CONFIG_DIR, DEFAULT_CONFIG_FILE, load_app_config

__all__ = ["DEFAULT_CONFIG_DIR", "DEFAULT_CONFIG_FILE", "load_app_config"]
