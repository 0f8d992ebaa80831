"""Reporting hooks for configuration loading failures."""

from __future__ import annotations

from abc import ABC, abstractmethod

import logfire


class ErrorHandler(ABC):
    """Receives configuration errors before the loader re-raises them.

    The loader always raises afterwards, so a handler only decides where the
    diagnostic goes. It must not raise itself.
    """

    @abstractmethod
    def handle(self, message: str, exc: Exception | None = None) -> None:
        """Report ``message`` about a config file, with the underlying ``exc``."""


class LoggingErrorHandler(ErrorHandler):
    """Send config errors to Logfire tagged with the exception type."""

    def handle(self, message: str, exc: Exception | None = None) -> None:
        if exc is None:
            logfire.error(message)
            return
        logfire.error(
            "{message}: {error}",
            message=message,
            error=str(exc),
            error_type=type(exc).__name__,
        )
