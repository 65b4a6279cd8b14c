"""Maven project discovery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ciscout.detection.direntry import DirEntry

POM_FILE_NAME = "pom.xml"
MAVEN_WRAPPER_NAME = "mvnw"


@dataclass(frozen=True)
class MavenProject:
    """A Maven build with a checked-in wrapper script."""

    root_dir_entry: DirEntry
    pom_file_entry: DirEntry
    wrapper_file_entry: DirEntry


def scan_maven_project(project_root: DirEntry) -> Optional[MavenProject]:
    """Return the Maven project rooted at ``project_root``.

    The directory must hold both ``pom.xml`` and the ``mvnw`` wrapper.
    """
    pom = project_root.find_immediate_child(POM_FILE_NAME)
    if pom is None:
        return None

    wrapper = project_root.find_immediate_child(MAVEN_WRAPPER_NAME)
    if wrapper is None:
        return None

    return MavenProject(root_dir_entry=project_root, pom_file_entry=pom, wrapper_file_entry=wrapper)
