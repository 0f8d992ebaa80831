# SPDX-License-Identifier: MIT
"""Cache version derivation.

The version scopes a persistent cache to one environment, build mode and
optional list of operator supplied digest tokens. Tokens are hashed in order,
so ``["a", None, "b"]`` and ``["b", None, "a"]`` yield different versions.
"""

from __future__ import annotations

import hashlib
from typing import Sequence

from constants import DIGEST_LENGTH
from core.canonical import serialise_digest_tokens


def digest_hash(tokens: Sequence[str | None]) -> str:
    """Return the first eight hex characters of the MD5 of ``tokens``."""
    encoded = serialise_digest_tokens(tokens).encode("utf-8")
    return hashlib.md5(encoded, usedforsecurity=False).hexdigest()[:DIGEST_LENGTH]


def cache_version(
    environment: str, mode: str, digest: Sequence[str | None] | None = None
) -> str:
    """Return the cache version for ``environment`` and ``mode``.

    Args:
        environment: Environment name.
        mode: Build mode such as ``development`` or ``production``.
        digest: Optional ordered tokens; absent or empty means no suffix.

    Returns:
        ``{environment}-{mode}`` optionally suffixed with ``-{digest}``.
    """
    base = f"{environment}-{mode}"
    if not digest:
        return base
    return f"{base}-{digest_hash(digest)}"


__all__ = ["cache_version", "digest_hash"]
