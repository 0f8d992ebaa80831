# SPDX-License-Identifier: MIT
"""Cache invalidation gate.

The bundler's persistent cache tracks the *contents* of its build
dependencies but not changes to *which* files are dependencies. When a config
file appears, disappears or moves, entries computed under the old set cannot
be told apart from valid ones, so the whole cache directory is discarded and
the new set is recorded.

The metadata file is written last. An invocation interrupted after removal
leaves no metadata behind and the next run re-seeds from scratch.
"""

from __future__ import annotations

import asyncio
import shutil
from enum import Enum
from pathlib import Path
from typing import Literal

import logfire

from core.canonical import canonical_dependencies
from core.errors import (
    DirectoryRemovalError,
    MetadataCorruptError,
    PathAccessError,
)
from models import CacheLocation, DependencySet
from observability import telemetry
from utils.cache_manager import JSONMetadataStore, MetadataStore

CorruptPolicy = Literal["invalidate", "raise"]


class GateState(str, Enum):
    """Relationship between stored metadata and the current dependency set."""

    NO_PRIOR_METADATA = "no_prior_metadata"
    METADATA_MATCHES = "metadata_matches"
    METADATA_DIFFERS = "metadata_differs"


def _ignore_missing(function, path, exc: BaseException) -> None:
    """``shutil.rmtree`` hook treating already-missing entries as removed."""
    if isinstance(exc, FileNotFoundError):
        return
    raise exc


def _remove_tree(directory: Path) -> None:
    try:
        if directory.is_symlink():
            # Drop the link itself; the target may be a shared volume.
            directory.unlink(missing_ok=True)
            return
        shutil.rmtree(directory, onexc=_ignore_missing)
    except OSError as exc:
        raise DirectoryRemovalError(
            f"Cannot remove cache directory {directory}: {exc}", directory
        ) from exc


def _create_directory(directory: Path) -> None:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PathAccessError(
            f"Cannot create cache directory {directory}: {exc}", directory
        ) from exc


async def remove_cache_directory(directory: Path) -> None:
    """Recursively delete ``directory``; a missing directory is not an error.

    Raises:
        DirectoryRemovalError: If any entry could not be removed.
    """
    with logfire.span("gate.remove_tree", directory=str(directory)):
        await asyncio.to_thread(_remove_tree, directory)


async def inspect_cache(
    location: CacheLocation,
    dependencies: DependencySet,
    store: MetadataStore,
    on_corrupt: CorruptPolicy = "invalidate",
) -> tuple[GateState, bool]:
    """Return the gate state for ``location`` and whether metadata was corrupt.

    Raises:
        PathAccessError: If the metadata file cannot be read.
        MetadataCorruptError: If the metadata is corrupt and ``on_corrupt`` is
            ``"raise"``.
    """
    try:
        previous = await store.read(location.metadata_file)
    except MetadataCorruptError as exc:
        if on_corrupt == "raise":
            logfire.error(
                "Corrupt dependency metadata",
                path=str(location.metadata_file),
                error=str(exc),
            )
            raise
        logfire.warning(
            "Corrupt dependency metadata; invalidating cache",
            path=str(location.metadata_file),
            error=str(exc),
        )
        return GateState.METADATA_DIFFERS, True

    if previous is None:
        return GateState.NO_PRIOR_METADATA, False
    if canonical_dependencies(previous) == canonical_dependencies(dependencies):
        return GateState.METADATA_MATCHES, False
    return GateState.METADATA_DIFFERS, False


async def validate_cache(
    location: CacheLocation,
    dependencies: DependencySet,
    *,
    store: MetadataStore | None = None,
    on_corrupt: CorruptPolicy = "invalidate",
) -> GateState:
    """Make the cache at ``location`` consistent with ``dependencies``.

    A matching record leaves the directory and metadata untouched. A differing
    or corrupt record removes the cache directory first. In every case but a
    match the directory is recreated and the new set written.

    Args:
        location: Cache directory and metadata file.
        dependencies: Freshly collected dependency set.
        store: Metadata persistence; JSON files on disk by default.
        on_corrupt: ``"invalidate"`` treats unreadable metadata as differing,
            ``"raise"`` propagates :class:`MetadataCorruptError`.

    Returns:
        The state the gate observed.

    Raises:
        PathAccessError: If metadata cannot be read or written, or the
            directory cannot be created.
        DirectoryRemovalError: If a stale directory cannot be removed.
    """
    store = store or JSONMetadataStore()
    with logfire.span("gate.validate", directory=str(location.directory)):
        state, corrupt = await inspect_cache(location, dependencies, store, on_corrupt)
        logfire.debug(
            "Cache gate state", directory=str(location.directory), state=state.value
        )
        if state is GateState.METADATA_MATCHES:
            telemetry.record_gate_outcome(location.directory, state.value)
            return state

        if state is GateState.METADATA_DIFFERS:
            logfire.info(
                "Build dependencies changed; removing cache",
                directory=str(location.directory),
            )
            await remove_cache_directory(location.directory)

        await asyncio.to_thread(_create_directory, location.directory)
        await store.write(location.metadata_file, dependencies)
        telemetry.record_gate_outcome(location.directory, state.value, corrupt=corrupt)
        return state


__all__ = ["GateState", "inspect_cache", "remove_cache_directory", "validate_cache"]
