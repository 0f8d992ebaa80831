# SPDX-License-Identifier: MIT
"""Runtime package exposing validated settings."""

from .settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
