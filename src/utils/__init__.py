"""Utility interfaces and implementations."""

from .cache_manager import JSONMetadataStore, MetadataStore
from .error_handler import ErrorHandler, LoggingErrorHandler
from .path_checker import LocalPathChecker, MemoryPathChecker, PathExistenceChecker

__all__ = [
    "MetadataStore",
    "JSONMetadataStore",
    "ErrorHandler",
    "LoggingErrorHandler",
    "PathExistenceChecker",
    "LocalPathChecker",
    "MemoryPathChecker",
]
