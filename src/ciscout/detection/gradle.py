"""Gradle project discovery.

Relevant Gradle project files:

- Wrapper script (``gradlew``): its presence marks the project root.
- Settings file (``settings.gradle[.kts]``): declares the included
  sub-projects of a multi-project build; optional for single-project builds.
- Version catalog (``gradle/libs.versions.toml``): central dependency and
  plugin declarations.
- Build scripts (``build.gradle[.kts]``): one per project.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from ciscout.core.logging import get_logger
from ciscout.detection.direntry import DirEntry, TreeSnapshot

LOGGER = get_logger(__name__)

GRADLE_WRAPPER_NAME = "gradlew"
GRADLE_CONFIG_DIR_NAME = "gradle"
VERSION_CATALOG_NAME = "libs.versions.toml"
SETTINGS_FILE_NAMES = ("settings.gradle", "settings.gradle.kts")
BUILD_SCRIPT_NAMES = ("build.gradle", "build.gradle.kts")


@dataclass(frozen=True)
class SubProject:
    """A project included from the settings file."""

    name: str
    """Gradle project path as declared, e.g. ``:app`` or ``:feature:login``."""

    build_script_file_entry: DirEntry
    """The project's build.gradle or build.gradle.kts."""


@dataclass
class GradleProject:
    """Facts about a Gradle build rooted at the directory holding ``gradlew``."""

    root_dir_entry: DirEntry
    gradlew_file_entry: DirEntry
    config_dir_entry: Optional[DirEntry] = None
    version_catalog_file_entry: Optional[DirEntry] = None
    settings_file_entry: Optional[DirEntry] = None
    included_projects: List[SubProject] = field(default_factory=list)
    all_build_script_file_entries: List[DirEntry] = field(default_factory=list)

    def detect_any_dependency(self, dependencies: Iterable[str]) -> bool:
        """Check whether any of ``dependencies`` is declared anywhere in the build.

        Sources are checked cheapest first: the version catalog, then the
        included projects' build scripts, then every build script under the
        root. The first substring match wins.

        Raises:
            OSError: If a file cannot be read.
        """
        dependencies = list(dependencies)

        if self.version_catalog_file_entry is not None:
            if _file_contains_any(self.version_catalog_file_entry, dependencies):
                return True

        for project in self.included_projects:
            if _file_contains_any(project.build_script_file_entry, dependencies):
                return True

        for build_script in self.all_build_script_file_entries:
            if _file_contains_any(build_script, dependencies):
                return True

        return False

    def find_sub_projects_with_any_dependency(self, dependencies: Iterable[str]) -> List[SubProject]:
        """Return the included projects whose build script declares any dependency."""
        dependencies = list(dependencies)
        return [
            project
            for project in self.included_projects
            if _file_contains_any(project.build_script_file_entry, dependencies)
        ]

    def get_plugin_alias_from_version_catalog(self, plugin_id: str) -> str:
        """Return the version catalog alias declared for ``plugin_id``.

        Both ``alias = { id = "x", version.ref = "v" }`` and the
        ``alias = "x:1.0"`` shorthand are recognised.

        Returns:
            The alias, or an empty string if the catalog is missing or does
            not declare the plugin.

        Raises:
            ValueError: If the catalog is not valid TOML.
        """
        if self.version_catalog_file_entry is None:
            return ""

        path = Path(self.version_catalog_file_entry.abs_path)
        try:
            catalog = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid version catalog {path}: {e}") from e

        for alias, declaration in catalog.get("plugins", {}).items():
            if isinstance(declaration, dict):
                declared_id = declaration.get("id", "")
            else:
                declared_id = str(declaration).split(":", 1)[0]
            if declared_id == plugin_id:
                return alias
        return ""


def plugin_accessor(alias: str) -> str:
    """Convert a catalog plugin alias to its type-safe accessor.

    Gradle splits aliases on dashes, underscores and dots, so
    ``android-application`` and ``android_application`` both become
    ``libs.plugins.android.application``.
    """
    return "libs.plugins." + alias.replace("-", ".").replace("_", ".")


def scan_gradle_project(search_dir: DirEntry) -> Optional[GradleProject]:
    """Locate a Gradle project at or below ``search_dir``.

    Args:
        search_dir: Entry to start from; usually the directory holding a
            ``gradlew`` found in the snapshot.

    Returns:
        GradleProject, or None if no wrapper script was found.

    Raises:
        OSError: If the settings file cannot be read.
    """
    found = _find_wrapper(search_dir)
    if found is None:
        return None

    root, gradlew = found
    project = GradleProject(root_dir_entry=root, gradlew_file_entry=gradlew)

    project.config_dir_entry = root.find_immediate_child(GRADLE_CONFIG_DIR_NAME, is_dir=True)
    if project.config_dir_entry is not None:
        project.version_catalog_file_entry = project.config_dir_entry.find_immediate_child(VERSION_CATALOG_NAME)

    for settings_name in SETTINGS_FILE_NAMES:
        project.settings_file_entry = root.find_immediate_child(settings_name)
        if project.settings_file_entry is not None:
            break

    build_scripts: List[DirEntry] = []
    for script_name in BUILD_SCRIPT_NAMES:
        build_scripts.extend(root.find_all_by_name(script_name))
    build_scripts.sort(key=lambda e: (len(e.abs_path), e.abs_path))
    project.all_build_script_file_entries = build_scripts

    if project.settings_file_entry is not None:
        content = Path(project.settings_file_entry.abs_path).read_text(encoding="utf-8", errors="replace")
        project.included_projects = _resolve_includes(root, parse_project_includes(content))

    return project


def find_gradle_projects(snapshot: TreeSnapshot) -> List[GradleProject]:
    """Scan a project for every ``gradlew`` in the snapshot, shallowest first."""
    wrappers = snapshot.root.find_all_by_name(GRADLE_WRAPPER_NAME)
    LOGGER.info(f"{len(wrappers)} Gradle wrapper script(s) found")

    projects: List[GradleProject] = []
    for wrapper in wrappers:
        project_dir = snapshot.parent(wrapper)
        if project_dir is None:
            continue
        LOGGER.info(f"Scanning project with Gradle wrapper script: {wrapper.rel_path}")
        project = scan_gradle_project(project_dir)
        if project is None:
            LOGGER.warning(f"No Gradle project found in {project_dir.rel_path}")
            continue
        _log_project(project)
        projects.append(project)
    return projects


def _log_project(project: GradleProject) -> None:
    LOGGER.debug(f"Project root dir: {project.root_dir_entry.rel_path}")
    if project.version_catalog_file_entry is not None:
        LOGGER.debug(f"Version catalog file: {project.version_catalog_file_entry.rel_path}")
    if project.settings_file_entry is not None:
        LOGGER.debug(f"Gradle settings file: {project.settings_file_entry.rel_path}")
    for included in project.included_projects:
        LOGGER.debug(f"- {included.name}: {included.build_script_file_entry.rel_path}")


def _find_wrapper(entry: DirEntry) -> Optional[Tuple[DirEntry, DirEntry]]:
    gradlew = entry.find_immediate_child(GRADLE_WRAPPER_NAME)
    if gradlew is not None:
        return entry, gradlew

    for child in entry.children:
        if child.is_dir:
            found = _find_wrapper(child)
            if found is not None:
                return found
    return None


def parse_project_includes(settings_content: str) -> List[str]:
    """Extract included project paths from a settings file.

    Parsing is line based and tolerant: ``include(":a", ":b")`` and
    ``include ':a', ':b'`` forms are recognised, quotes are stripped and a
    leading ``:`` is added where missing.

    Returns:
        Project paths sorted by length, then alphabetically.
    """
    includes: List[str] = []
    for line in settings_content.splitlines():
        line = line.strip()
        if not (line.startswith("include(") or line.startswith("include ")):
            continue

        declared = line[len("include"):].strip("()")
        for module in declared.split(","):
            module = module.strip().strip("\"'")
            if not module.startswith(":"):
                module = ":" + module
            includes.append(module)

    includes.sort(key=lambda m: (len(m), m))
    return includes


def _resolve_includes(root: DirEntry, includes: List[str]) -> List[SubProject]:
    projects: List[SubProject] = []
    for include in includes:
        components = [c.strip() for c in include.lstrip(":").split(":") if c.strip()]
        build_script = None
        for script_name in BUILD_SCRIPT_NAMES:
            build_script = root.find_by_path_components(*components, script_name)
            if build_script is not None:
                break

        if build_script is None:
            LOGGER.warning(f"Unable to find build script for {include}")
            continue
        projects.append(SubProject(name=include, build_script_file_entry=build_script))
    return projects


def _file_contains_any(entry: DirEntry, needles: List[str]) -> bool:
    content = Path(entry.abs_path).read_text(encoding="utf-8", errors="replace")
    return any(needle in content for needle in needles)
