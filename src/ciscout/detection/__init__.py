"""Filesystem detection primitives.

This module provides:
- An immutable, ignore-filtered directory snapshot shared by all detectors
- Build system discovery for Gradle and Maven projects
- App icon lookup

Usage:
    from ciscout.detection import build_snapshot, scan_gradle_project

    snapshot = build_snapshot(Path("."), max_depth=6)
    project = scan_gradle_project(snapshot.root)
"""

from ciscout.detection.direntry import DirEntry, TreeSnapshot, build_snapshot, IGNORED_DIR_NAMES
from ciscout.detection.gradle import GradleProject, SubProject, scan_gradle_project
from ciscout.detection.maven import MavenProject, scan_maven_project

__all__ = [
    "DirEntry",
    "TreeSnapshot",
    "build_snapshot",
    "IGNORED_DIR_NAMES",
    "GradleProject",
    "SubProject",
    "scan_gradle_project",
    "MavenProject",
    "scan_maven_project",
]
