"""Telemetry and monitoring helpers for cache preparation.

Exports:
    init_logfire: Configure Pydantic Logfire instrumentation.
    record_gate_outcome: Record the final state of one cache gate run.
    summary: Count gate outcomes per state.
    print_summary: Output a summary of collected outcomes.
    reset: Clear stored outcomes.
"""

from .monitoring import init_logfire
from .telemetry import print_summary, record_gate_outcome, reset, summary

__all__ = [
    "init_logfire",
    "record_gate_outcome",
    "summary",
    "print_summary",
    "reset",
]
