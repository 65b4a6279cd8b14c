"""Tests for Maven project discovery."""

from __future__ import annotations

from ciscout.detection.maven import scan_maven_project


class TestScanMavenProject:
    """Tests for scan_maven_project."""

    def test_pom_and_wrapper(self, snapshot_of) -> None:
        snapshot = snapshot_of({"pom.xml": "<project/>", "mvnw": ""})

        project = scan_maven_project(snapshot.root)

        assert project is not None
        assert project.pom_file_entry.name == "pom.xml"
        assert project.wrapper_file_entry.name == "mvnw"

    def test_wrapper_is_required(self, snapshot_of) -> None:
        snapshot = snapshot_of({"pom.xml": "<project/>"})

        assert scan_maven_project(snapshot.root) is None

    def test_pom_is_required(self, snapshot_of) -> None:
        snapshot = snapshot_of({"mvnw": ""})

        assert scan_maven_project(snapshot.root) is None
