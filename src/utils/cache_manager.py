"""Persistence of the last-seen dependency set."""

from __future__ import annotations

import asyncio
import os
from abc import ABC, abstractmethod
from pathlib import Path

import logfire

from core.canonical import canonical_dependencies, parse_dependencies
from core.errors import PathAccessError
from models import DependencySet


class MetadataStore(ABC):
    """Interface for reading and writing dependency metadata.

    Writes must be atomic: a crash mid-write may leave the old file or the new
    file, never a truncated document that parses as a different set.
    """

    @abstractmethod
    async def read(self, path: Path) -> DependencySet | None:
        """Return the stored set, or ``None`` when ``path`` does not exist."""

    @abstractmethod
    async def write(self, path: Path, dependencies: DependencySet) -> None:
        """Persist ``dependencies`` to ``path`` in canonical form."""


class JSONMetadataStore(MetadataStore):
    """Metadata store writing canonical JSON documents to disk."""

    async def read(self, path: Path) -> DependencySet | None:  # noqa: D401
        with logfire.span("metadata.read", path=str(path)):
            try:
                raw = await asyncio.to_thread(path.read_bytes)
            except (FileNotFoundError, NotADirectoryError):
                logfire.debug("No dependency metadata", path=str(path))
                return None
            except OSError as exc:
                logfire.error("Cannot read dependency metadata", path=str(path))
                raise PathAccessError(
                    f"Cannot read dependency metadata {path}: {exc}", path
                ) from exc
            return parse_dependencies(raw, str(path))

    async def write(  # noqa: D401
        self, path: Path, dependencies: DependencySet
    ) -> None:
        payload = canonical_dependencies(dependencies).encode("utf-8")
        with logfire.span("metadata.write", path=str(path)):
            try:
                await asyncio.to_thread(self._write_atomic, path, payload)
            except OSError as exc:
                logfire.error("Cannot write dependency metadata", path=str(path))
                raise PathAccessError(
                    f"Cannot write dependency metadata {path}: {exc}", path
                ) from exc
            logfire.debug(
                "Wrote dependency metadata",
                path=str(path),
                categories=len(dependencies),
                bytes=len(payload),
            )

    @staticmethod
    def _write_atomic(path: Path, payload: bytes) -> None:
        tmp_path = path.with_name(f"{path.name}.tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o644)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


__all__ = ["JSONMetadataStore", "MetadataStore"]
