# SPDX-License-Identifier: MIT
"""Deterministic serialisation of dependency sets and digest tokens."""

from __future__ import annotations

import json
from typing import Iterable, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from core.errors import MetadataCorruptError
from models import DependencySet

_DEPENDENCY_SET = TypeAdapter(DependencySet)


def canonical_dependencies(dependencies: Mapping[str, Sequence[str]]) -> str:
    """Return ``dependencies`` as JSON with sorted category keys.

    Paths keep their order inside each category; only the category keys are
    normalised so that equal sets always serialise identically.
    """

    data = {key: [str(path) for path in paths] for key, paths in dependencies.items()}
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def parse_dependencies(text: str | bytes, source: str | None = None) -> DependencySet:
    """Return the dependency set stored in ``text``.

    Raises:
        MetadataCorruptError: If ``text`` is not JSON or not a mapping of
            category names to lists of paths.
    """

    try:
        return _DEPENDENCY_SET.validate_json(text, strict=True)
    except ValidationError as exc:
        raise MetadataCorruptError(
            f"Stored dependency metadata is not a valid dependency set: {exc}",
            source,
        ) from exc


def serialise_digest_tokens(tokens: Iterable[str | None]) -> str:
    """Return a compact JSON array of ``tokens``.

    Order is preserved and ``None`` is encoded as ``null`` so it stays
    distinct from an empty string.
    """

    values = list(tokens)
    for value in values:
        if value is not None and not isinstance(value, str):
            raise TypeError(f"digest tokens must be strings or None, got {value!r}")
    return json.dumps(values, separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "canonical_dependencies",
    "parse_dependencies",
    "serialise_digest_tokens",
]
