# SPDX-License-Identifier: MIT
"""Tests for the cache invalidation gate."""

from __future__ import annotations

import asyncio
import errno
import json
import shutil
import tempfile
from pathlib import Path

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

import core.gate as gate
from core.canonical import canonical_dependencies
from core.errors import DirectoryRemovalError, MetadataCorruptError, PathAccessError
from core.gate import GateState, validate_cache
from models import CacheLocation
from observability import telemetry
from utils import JSONMetadataStore

FIRST = {
    "manifest": ["/proj/package.json"],
    "build-tool-config": ["/proj/rsbuild.config.ts"],
}
SECOND = {
    "manifest": ["/proj/package.json"],
    "type-checker-config": ["/proj/tsconfig.json"],
    "build-tool-config": ["/proj/rsbuild.config.ts"],
}


class _Aborted(Exception):
    """Stands in for the host pipeline being aborted."""


@pytest.fixture()
def location(tmp_path: Path) -> CacheLocation:
    return CacheLocation(directory=tmp_path / "cache" / "rspack")


@pytest.fixture()
def removals(monkeypatch) -> list[Path]:
    """Record every directory removal performed by the gate."""

    calls: list[Path] = []
    real_rmtree = shutil.rmtree

    def tracked(path, *args, **kwargs):
        calls.append(Path(path))
        return real_rmtree(path, *args, **kwargs)

    monkeypatch.setattr(gate.shutil, "rmtree", tracked)
    return calls


def _stored(location: CacheLocation) -> dict:
    return json.loads(location.metadata_file.read_text(encoding="utf-8"))


@pytest.mark.asyncio()
async def test_first_run_seeds_metadata(location, removals) -> None:
    state = await validate_cache(location, FIRST)

    assert state is GateState.NO_PRIOR_METADATA
    assert location.directory.is_dir()
    assert _stored(location) == FIRST
    assert removals == []


@pytest.mark.asyncio()
async def test_unchanged_set_is_a_no_op(location, removals) -> None:
    await validate_cache(location, FIRST)
    artifact = location.directory / "artifact.pack"
    artifact.write_text("data", encoding="utf-8")
    before = location.metadata_file.stat().st_mtime_ns

    state = await validate_cache(location, dict(reversed(list(FIRST.items()))))

    assert state is GateState.METADATA_MATCHES
    assert removals == []
    assert artifact.exists()
    assert location.metadata_file.stat().st_mtime_ns == before


@pytest.mark.asyncio()
async def test_changed_set_removes_and_reseeds(location, removals) -> None:
    await validate_cache(location, FIRST)
    artifact = location.directory / "nested" / "artifact.pack"
    artifact.parent.mkdir()
    artifact.write_text("stale", encoding="utf-8")

    state = await validate_cache(location, SECOND)

    assert state is GateState.METADATA_DIFFERS
    assert removals == [location.directory]
    assert not artifact.exists()
    assert location.directory.is_dir()
    assert _stored(location) == SECOND


@pytest.mark.asyncio()
async def test_corrupt_metadata_forces_invalidation(
    location, removals, monkeypatch
) -> None:
    location.directory.mkdir(parents=True)
    (location.directory / "artifact.pack").write_text("stale", encoding="utf-8")
    location.metadata_file.write_text("{truncated", encoding="utf-8")
    warnings: list[str] = []
    monkeypatch.setattr(
        gate.logfire, "warning", lambda msg, **kwargs: warnings.append(msg)
    )

    state = await validate_cache(location, FIRST)

    assert state is GateState.METADATA_DIFFERS
    assert removals == [location.directory]
    assert _stored(location) == FIRST
    assert warnings
    assert telemetry.corrupt_directories() == [location.directory]


@pytest.mark.asyncio()
async def test_corrupt_metadata_can_raise(location, removals) -> None:
    location.directory.mkdir(parents=True)
    location.metadata_file.write_text('{"manifest": "oops"}', encoding="utf-8")

    with pytest.raises(MetadataCorruptError):
        await validate_cache(location, FIRST, on_corrupt="raise")

    assert removals == []
    assert location.metadata_file.read_text(encoding="utf-8") == (
        '{"manifest": "oops"}'
    )


@pytest.mark.asyncio()
async def test_unreadable_metadata_propagates(
    location, removals, monkeypatch
) -> None:
    location.directory.mkdir(parents=True)
    location.metadata_file.write_text("{}", encoding="utf-8")
    real_read = Path.read_bytes

    def denied(self):
        if self == location.metadata_file:
            raise PermissionError("denied")
        return real_read(self)

    monkeypatch.setattr(Path, "read_bytes", denied)

    with pytest.raises(PathAccessError):
        await validate_cache(location, FIRST)
    assert removals == []


@pytest.mark.asyncio()
async def test_removal_failure_stops_before_rewrite(location, monkeypatch) -> None:
    await validate_cache(location, FIRST)

    def failing(path, *args, **kwargs):
        raise PermissionError("busy")

    monkeypatch.setattr(gate.shutil, "rmtree", failing)

    with pytest.raises(DirectoryRemovalError):
        await validate_cache(location, SECOND)
    assert _stored(location) == FIRST


@pytest.mark.asyncio()
async def test_interrupted_invalidation_reseeds(location, monkeypatch) -> None:
    await validate_cache(location, FIRST)
    writes: list[Path] = []
    real_write = JSONMetadataStore.write

    async def crash(self, path, dependencies):
        writes.append(path)
        raise _Aborted

    monkeypatch.setattr(JSONMetadataStore, "write", crash)
    with pytest.raises(_Aborted):
        await validate_cache(location, SECOND)
    monkeypatch.setattr(JSONMetadataStore, "write", real_write)

    assert writes == [location.metadata_file]
    assert not location.metadata_file.exists()
    assert await validate_cache(location, SECOND) is GateState.NO_PRIOR_METADATA
    assert _stored(location) == SECOND


def test_missing_entries_are_ignored_during_removal(tmp_path: Path) -> None:
    gate._ignore_missing(None, tmp_path / "gone", FileNotFoundError("gone"))
    with pytest.raises(PermissionError):
        gate._ignore_missing(None, tmp_path / "x", PermissionError("denied"))


@pytest.mark.asyncio()
async def test_remove_missing_directory_is_success(tmp_path: Path) -> None:
    await gate.remove_cache_directory(tmp_path / "never-created")


@pytest.mark.asyncio()
async def test_outcomes_are_recorded(location) -> None:
    await validate_cache(location, FIRST)
    await validate_cache(location, FIRST)
    await validate_cache(location, SECOND)
    assert telemetry.summary() == {
        "no_prior_metadata": 1,
        "metadata_matches": 1,
        "metadata_differs": 1,
    }


@pytest.mark.asyncio()
async def test_full_disk_on_metadata_write_is_access_error(
    location, monkeypatch
) -> None:
    def full(path, payload):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(JSONMetadataStore, "_write_atomic", staticmethod(full))

    with pytest.raises(PathAccessError) as info:
        await validate_cache(location, FIRST)
    assert info.value.path == location.metadata_file
    assert isinstance(info.value.__cause__, OSError)
    assert telemetry.summary() == {}


@pytest.mark.asyncio()
async def test_uncreatable_directory_is_access_error(tmp_path: Path) -> None:
    blocker = tmp_path / "cache"
    blocker.write_text("not a directory", encoding="utf-8")
    location = CacheLocation(directory=blocker / "rspack")

    with pytest.raises(PathAccessError) as info:
        await validate_cache(location, FIRST)
    assert info.value.path == location.directory


@pytest.mark.asyncio()
async def test_symlinked_cache_directory_is_invalidated(tmp_path: Path) -> None:
    shared = tmp_path / "shared-volume"
    shared.mkdir()
    link = tmp_path / "cache"
    link.symlink_to(shared, target_is_directory=True)
    location = CacheLocation(directory=link)

    assert await validate_cache(location, FIRST) is GateState.NO_PRIOR_METADATA
    (shared / "artifact.pack").write_text("stale", encoding="utf-8")

    state = await validate_cache(location, SECOND)

    assert state is GateState.METADATA_DIFFERS
    assert not link.is_symlink()
    assert link.is_dir()
    assert not (link / "artifact.pack").exists()
    assert _stored(location) == SECOND
    assert shared.is_dir()


def test_symlink_to_missing_target_is_removed(tmp_path: Path) -> None:
    link = tmp_path / "cache"
    link.symlink_to(tmp_path / "gone", target_is_directory=True)
    gate._remove_tree(link)
    assert not link.is_symlink()


paths = st.text(
    alphabet=st.characters(blacklist_categories=("Cs",)), min_size=1, max_size=12
)
dependency_sets = st.dictionaries(
    st.sampled_from(
        [
            "manifest",
            "type-checker-config",
            "build-tool-config",
            "browserslist-config",
            "css-framework-config",
        ]
    ),
    st.lists(paths, min_size=1, max_size=3),
)


@settings(max_examples=25, deadline=None)
@given(dependency_sets, dependency_sets)
def test_any_changed_set_invalidates(first, second) -> None:
    assume(canonical_dependencies(first) != canonical_dependencies(second))

    async def scenario(location: CacheLocation) -> GateState:
        await validate_cache(location, first)
        (location.directory / "artifact.pack").write_text("stale", encoding="utf-8")
        state = await validate_cache(location, second)
        assert not (location.directory / "artifact.pack").exists()
        assert _stored(location) == second
        return state

    with tempfile.TemporaryDirectory() as tmp:
        location = CacheLocation(directory=Path(tmp) / "cache")
        assert asyncio.run(scenario(location)) is GateState.METADATA_DIFFERS
