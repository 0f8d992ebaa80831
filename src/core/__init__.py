"""Core cache invalidation logic.

Exports:
    canonical_dependencies: Serialise a dependency set deterministically.
    cache_version: Derive the cache version string.
    BuildCacheError: Base class for cache preparation failures.

The collector and gate live in :mod:`core.collector` and :mod:`core.gate`.
"""

from .canonical import canonical_dependencies, parse_dependencies
from .errors import (
    BuildCacheError,
    DirectoryRemovalError,
    MetadataCorruptError,
    PathAccessError,
)
from .version import cache_version, digest_hash

__all__ = [
    "canonical_dependencies",
    "parse_dependencies",
    "cache_version",
    "digest_hash",
    "BuildCacheError",
    "DirectoryRemovalError",
    "MetadataCorruptError",
    "PathAccessError",
]
