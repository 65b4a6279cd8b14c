"""Shared fixtures for ciscout tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

import pytest

from ciscout.detection import TreeSnapshot, build_snapshot

TreeFactory = Callable[[Dict[str, str]], Path]


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Create files below tmp_path from a ``{relative path: content}`` map.

    Keys ending in ``/`` create empty directories.
    """

    def _make(files: Dict[str, str]) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            if rel_path.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def snapshot_of(make_tree: TreeFactory) -> Callable[..., TreeSnapshot]:
    """Build a tree and return its snapshot."""

    def _snapshot(files: Dict[str, str], max_depth: int = 6) -> TreeSnapshot:
        return build_snapshot(make_tree(files), max_depth)

    return _snapshot
