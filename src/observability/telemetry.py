# SPDX-License-Identifier: MIT
"""Aggregate cache gate outcomes for end-of-run reporting."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

import logfire


@dataclass
class GateOutcome:
    """Outcome of one cache gate evaluation."""

    directory: Path
    state: str
    corrupt: bool = False


@dataclass
class _Telemetry:
    outcomes: list[GateOutcome] = field(default_factory=list)


_telemetry = _Telemetry()


def record_gate_outcome(directory: Path, state: str, *, corrupt: bool = False) -> None:
    """Record that the gate for ``directory`` finished in ``state``."""

    _telemetry.outcomes.append(GateOutcome(directory, state, corrupt))


def summary() -> dict[str, int]:
    """Return the number of gate evaluations per state."""

    return dict(Counter(outcome.state for outcome in _telemetry.outcomes))


def corrupt_directories() -> list[Path]:
    """Return cache directories whose metadata was found corrupt."""

    return [o.directory for o in _telemetry.outcomes if o.corrupt]


def print_summary(file: TextIO | None = None) -> None:
    """Print and log a summary of gate outcomes to ``file`` (stdout by default)."""

    counts = summary()
    if not counts:
        return
    line = ", ".join(f"{state}={count}" for state, count in sorted(counts.items()))
    print(f"Cache gate: {line}", file=file)
    logfire.info("Cache gate summary", **counts)
    for directory in corrupt_directories():
        print(f"Corrupt metadata discarded: {directory}", file=file)


def reset() -> None:
    """Clear recorded outcomes."""

    _telemetry.outcomes.clear()


__all__ = [
    "GateOutcome",
    "corrupt_directories",
    "print_summary",
    "record_gate_outcome",
    "reset",
    "summary",
]
