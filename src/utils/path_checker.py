# SPDX-License-Identifier: MIT
"""File existence checks used when collecting build dependencies."""

from __future__ import annotations

import asyncio
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Mapping

import logfire

from core.errors import PathAccessError


class PathExistenceChecker(ABC):
    """Interface answering whether a regular file exists.

    Implementations must report a missing file as ``False`` and raise
    :class:`PathAccessError` for any other failure so that a category is never
    dropped because of a permission or I/O problem.
    """

    @abstractmethod
    async def exists(self, path: Path) -> bool:
        """Return ``True`` when ``path`` is an existing regular file."""

    async def find_first_existing(self, paths: Iterable[Path]) -> Path | None:
        """Return the first entry of ``paths`` that exists, if any."""
        for path in paths:
            if await self.exists(path):
                return path
        return None


class LocalPathChecker(PathExistenceChecker):
    """Checker backed by the local filesystem."""

    async def exists(self, path: Path) -> bool:  # noqa: D401
        return await asyncio.to_thread(self._is_file, path)

    @staticmethod
    def _is_file(path: Path) -> bool:
        try:
            mode = path.stat().st_mode
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as exc:
            logfire.error("Cannot inspect path", path=str(path), error=str(exc))
            raise PathAccessError(f"Cannot inspect {path}: {exc}", path) from exc
        return stat.S_ISREG(mode)


class MemoryPathChecker(PathExistenceChecker):
    """In-memory checker for tests and dry runs.

    ``errors`` maps paths to exceptions raised when they are inspected.
    """

    def __init__(
        self,
        files: Iterable[Path | str] = (),
        errors: Mapping[Path | str, OSError] | None = None,
    ) -> None:
        self.files = {Path(p) for p in files}
        self.errors = {Path(p): exc for p, exc in (errors or {}).items()}
        self.checked: list[Path] = []

    def add(self, path: Path | str) -> None:
        """Register ``path`` as an existing file."""
        self.files.add(Path(path))

    def remove(self, path: Path | str) -> None:
        """Forget ``path``."""
        self.files.discard(Path(path))

    async def exists(self, path: Path) -> bool:  # noqa: D401
        path = Path(path)
        self.checked.append(path)
        error = self.errors.get(path)
        if error is not None:
            raise PathAccessError(f"Cannot inspect {path}: {error}", path) from error
        return path in self.files


__all__ = ["LocalPathChecker", "MemoryPathChecker", "PathExistenceChecker"]
