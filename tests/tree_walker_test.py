from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from classification_store import ClassificationPolicy
from classification_store import ClassificationStore
from tree_walker import TreeWalker


def _write(path: Path, size: int = 1) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)


def _make_project(root: Path, target_bytes: int = 10) -> Path:
    _write(root / "Cargo.toml")
    _write(root / "target" / "debug" / "app", target_bytes)
    return root / "target"


async def _walk(root: Path, walker: TreeWalker | None = None) -> ClassificationStore:
    walker = walker or TreeWalker()
    async with ClassificationStore(ClassificationPolicy()) as store:
        await walker.walk(str(root), store)
    return store


def _found(store: ClassificationStore) -> set[Path]:
    return {record.path for record in store.ignored + store.selected}


def test_walk_finds_target_next_to_manifest(tmp_path: Path) -> None:
    target = _make_project(tmp_path / "proj", target_bytes=2048)

    store = asyncio.run(_walk(tmp_path))

    records = store.ignored + store.selected
    assert len(records) == 1
    assert records[0].path == target
    assert records[0].size_bytes == 2048
    assert records[0].last_modified == target.stat().st_mtime


def test_walk_finds_projects_in_sibling_subtrees(tmp_path: Path) -> None:
    first = _make_project(tmp_path / "a" / "one")
    second = _make_project(tmp_path / "b" / "c" / "two")

    store = asyncio.run(_walk(tmp_path))

    assert _found(store) == {first, second}


def test_walk_recurses_into_target_without_manifest(tmp_path: Path) -> None:
    _write(tmp_path / "target" / "notes.txt")
    nested = _make_project(tmp_path / "target" / "inner")

    store = asyncio.run(_walk(tmp_path))

    assert _found(store) == {nested}


def test_walk_does_not_recurse_into_artifact_root(tmp_path: Path) -> None:
    outer = _make_project(tmp_path / "proj")
    _make_project(outer / "vendored")

    store = asyncio.run(_walk(tmp_path))

    assert _found(store) == {outer}


def test_walk_prunes_git_directories(tmp_path: Path) -> None:
    _make_project(tmp_path / "node_modules" / ".git" / "pkg")

    walker = TreeWalker()
    store = asyncio.run(_walk(tmp_path, walker))

    assert _found(store) == set()
    assert walker.records_emitted == 0


def test_walk_explicit_target_root_is_an_artifact_root(tmp_path: Path) -> None:
    target = _make_project(tmp_path / "proj")

    store = asyncio.run(_walk(target))

    assert _found(store) == {target}


def test_walk_current_directory_inside_target_is_not_classified(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = _make_project(tmp_path / "proj")
    nested = _make_project(target / "vendored")
    monkeypatch.chdir(target)

    store = asyncio.run(_walk(Path(".")))

    assert {path.resolve() for path in _found(store)} == {nested.resolve()}


def test_walk_parent_directory_root_is_walked_into(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = _make_project(tmp_path / "proj")
    monkeypatch.chdir(target / "debug")

    store = asyncio.run(_walk(Path("..")))

    assert _found(store) == set()


def test_walk_makes_paths_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = _make_project(tmp_path / "proj")
    monkeypatch.chdir(tmp_path)

    store = asyncio.run(_walk(Path(".")))

    assert {path.resolve() for path in _found(store)} == {target.resolve()}
    assert all(path.is_absolute() for path in _found(store))


def test_walk_is_idempotent_on_unchanged_tree(tmp_path: Path) -> None:
    for index in range(6):
        _make_project(tmp_path / f"p{index}")

    first = asyncio.run(_walk(tmp_path))
    second = asyncio.run(_walk(tmp_path))

    assert set(first.selected) == set(second.selected)
    assert set(first.ignored) == set(second.ignored)


def test_walk_treats_unreadable_directory_as_empty(tmp_path: Path) -> None:
    target = _make_project(tmp_path / "proj")
    walker = TreeWalker()
    original = walker.limiter.subdirectories

    async def _deny(path: str) -> list[str]:
        if path.endswith("locked"):
            raise PermissionError(13, "Permission denied", path)
        return await original(path)

    (tmp_path / "locked").mkdir()
    with patch.object(walker.limiter, "subdirectories", _deny):
        store = asyncio.run(_walk(tmp_path, walker))

    assert _found(store) == {target}


def test_walk_propagates_metadata_errors(tmp_path: Path) -> None:
    _make_project(tmp_path / "deep" / "down" / "proj")
    walker = TreeWalker()

    async def _fail(path: str):
        raise OSError(5, "Input/output error", path)

    with patch.object(walker.limiter, "stat", _fail):
        with pytest.raises(OSError, match="Input/output error"):
            asyncio.run(_walk(tmp_path, walker))


def test_walk_reports_progress(tmp_path: Path) -> None:
    for index in range(450):
        (tmp_path / f"d{index}").mkdir()
    seen: list[int] = []

    walker = TreeWalker(progress_callback=seen.append)
    asyncio.run(_walk(tmp_path, walker))

    assert walker.dirs_scanned == 451
    assert seen == [200, 400]
