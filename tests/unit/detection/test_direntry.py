"""Tests for the directory snapshot."""

from __future__ import annotations

from pathlib import Path

import pytest

from ciscout.core.errors import ScanError
from ciscout.detection.direntry import ROOT_REL_PATH, build_snapshot
from ciscout.detection.ignore import IgnorePatterns


class TestBuildSnapshot:
    """Tests for build_snapshot."""

    def test_root_entry(self, make_tree) -> None:
        root_dir = make_tree({"README.md": ""})
        snapshot = build_snapshot(root_dir, max_depth=6)

        assert snapshot.root.rel_path == ROOT_REL_PATH
        assert snapshot.root.is_dir
        assert snapshot.root_dir == str(root_dir)
        assert snapshot.parent(snapshot.root) is None

    def test_rel_paths_and_name_order(self, snapshot_of) -> None:
        snapshot = snapshot_of({"b.txt": "", "a/c.txt": "", "a/b.txt": ""})

        names = [entry.name for entry in snapshot.root.children]
        assert names == ["a", "b.txt"]
        a_dir = snapshot.root.children[0]
        assert [entry.rel_path for entry in a_dir.children] == ["./a/b.txt", "./a/c.txt"]

    def test_max_depth_one_lists_only_root_children(self, snapshot_of) -> None:
        snapshot = snapshot_of({"a/b/c.txt": "", "top.txt": ""}, max_depth=1)

        a_dir = snapshot.root.find_immediate_child("a", is_dir=True)
        assert a_dir is not None
        assert a_dir.children == ()
        assert snapshot.root.find_first_by_name("c.txt") is None

    def test_depth_needed_for_nested_file(self, snapshot_of) -> None:
        assert snapshot_of({"a/b/c.txt": ""}, max_depth=2).root.find_first_by_name("c.txt") is None
        assert snapshot_of({"a/b/c.txt": ""}, max_depth=3).root.find_first_by_name("c.txt") is not None

    def test_max_depth_zero_gives_empty_root(self, snapshot_of) -> None:
        snapshot = snapshot_of({"a.txt": ""}, max_depth=0)

        assert snapshot.root.children == ()

    def test_ignored_dir_names_are_pruned(self, snapshot_of) -> None:
        snapshot = snapshot_of({
            "node_modules/pkg/package.json": "{}",
            "build/gradlew": "",
            ".git/config": "",
            "app/package.json": "{}",
        })

        found = snapshot.root.find_all_by_name("package.json")
        assert [entry.rel_path for entry in found] == ["./app/package.json"]
        assert snapshot.root.find_first_by_name("gradlew") is None

    def test_ignore_patterns_prune_entries(self, make_tree) -> None:
        root_dir = make_tree({"samples/demo/pubspec.yaml": "", "pubspec.yaml": ""})
        snapshot = build_snapshot(root_dir, 6, IgnorePatterns(["samples/"]))

        found = snapshot.root.find_all_by_name("pubspec.yaml")
        assert [entry.rel_path for entry in found] == ["./pubspec.yaml"]

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ScanError):
            build_snapshot(tmp_path / "missing", max_depth=6)

    def test_missing_root_raises_with_zero_depth(self, tmp_path: Path) -> None:
        with pytest.raises(ScanError):
            build_snapshot(tmp_path / "missing", max_depth=0)


class TestDirEntryQueries:
    """Tests for DirEntry lookups."""

    def test_find_first_by_name_prefers_shallowest(self, snapshot_of) -> None:
        snapshot = snapshot_of({"a/b/gradlew": "", "z/gradlew": ""})

        found = snapshot.root.find_first_by_name("gradlew")

        assert found is not None
        assert found.rel_path == "./z/gradlew"

    def test_find_first_by_name_respects_kind(self, snapshot_of) -> None:
        snapshot = snapshot_of({"ios/": "", "docs/ios": ""})

        found_dir = snapshot.root.find_first_by_name("ios", is_dir=True)
        found_file = snapshot.root.find_first_by_name("ios")

        assert found_dir is not None and found_dir.rel_path == "./ios"
        assert found_file is not None and found_file.rel_path == "./docs/ios"

    def test_find_all_by_name_is_breadth_first(self, snapshot_of) -> None:
        snapshot = snapshot_of({"a/b/x": "", "c/x": "", "x": ""})

        found = snapshot.root.find_all_by_name("x")

        assert [entry.rel_path for entry in found] == ["./x", "./c/x", "./a/b/x"]

    def test_find_first_by_extension_matches_directories(self, snapshot_of) -> None:
        snapshot = snapshot_of({"ios/App.xcodeproj/project.pbxproj": ""})

        found = snapshot.root.find_first_by_extension(".xcodeproj")

        assert found is not None
        assert found.is_dir
        assert found.rel_path == "./ios/App.xcodeproj"

    def test_find_by_path_components(self, snapshot_of) -> None:
        snapshot = snapshot_of({"feature/login/build.gradle": ""})

        found = snapshot.root.find_by_path_components("feature", "login", "build.gradle")
        missing = snapshot.root.find_by_path_components("feature", "signup", "build.gradle")

        assert found is not None
        assert found.rel_path == "./feature/login/build.gradle"
        assert missing is None
        assert snapshot.root.find_by_path_components() is None

    def test_find_by_path_components_through_a_file(self, snapshot_of) -> None:
        snapshot = snapshot_of({"build.gradle": ""})

        assert snapshot.root.find_by_path_components("build.gradle", "app") is None
        assert snapshot.root.find_by_path_components("build.gradle") is not None

    def test_parent_lookup(self, snapshot_of) -> None:
        snapshot = snapshot_of({"app/build.gradle": ""})
        script = snapshot.root.find_first_by_name("build.gradle")
        assert script is not None

        parent = snapshot.parent(script)

        assert parent is not None
        assert parent.rel_path == "./app"
        assert snapshot.parent(parent) == snapshot.root

    def test_entry_for(self, snapshot_of) -> None:
        snapshot = snapshot_of({"app/build.gradle": ""})
        script = snapshot.root.find_first_by_name("build.gradle")
        assert script is not None

        assert snapshot.entry_for(script.abs_path) == script
        assert snapshot.entry_for("/nowhere") is None
