# SPDX-License-Identifier: MIT
"""Test configuration for buildcache-gate.

Keeps Logfire local and silent and resets gate telemetry between tests.
"""

from __future__ import annotations

import os
from pathlib import Path

import logfire
import pytest

from observability import telemetry
from utils import MemoryPathChecker

logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture(autouse=True)
def _reset_telemetry():
    """Ensure gate outcomes do not leak between tests."""

    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Drop ``BUILD_CACHE_*`` variables from the developer's shell."""

    for name in list(os.environ):
        if name.startswith("BUILD_CACHE_"):
            monkeypatch.delenv(name)


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    """Return an empty project root on disk."""

    root = tmp_path / "proj"
    root.mkdir()
    return root


@pytest.fixture()
def memory_checker() -> MemoryPathChecker:
    """Provide an empty in-memory existence checker."""

    return MemoryPathChecker()
