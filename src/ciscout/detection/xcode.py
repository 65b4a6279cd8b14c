"""Xcode project discovery.

Relevant files:

- ``*.xcodeproj`` and ``*.xcworkspace`` bundles (directories).
- Shared schemes: ``<bundle>/xcshareddata/xcschemes/*.xcscheme``.
- ``Podfile`` next to a project: CocoaPods generates a workspace named
  after the project, which is what gets built.
- ``Cartfile`` (and ``Cartfile.resolved``) next to a project.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import defusedxml.ElementTree as ET  # type: ignore[import-untyped]
from defusedxml import DefusedXmlException  # type: ignore[import-untyped]

from ciscout.core.logging import get_logger
from ciscout.detection.direntry import DirEntry, TreeSnapshot

LOGGER = get_logger(__name__)

PROJECT_EXTENSION = ".xcodeproj"
WORKSPACE_EXTENSION = ".xcworkspace"
SCHEME_EXTENSION = ".xcscheme"
PODFILE_NAME = "Podfile"
CARTFILE_NAME = "Cartfile"
CARTFILE_RESOLVED_NAME = "Cartfile.resolved"

# Directories whose Xcode bundles belong to dependencies, not the app
DEPENDENCY_DIR_NAMES = frozenset({"Pods", "Carthage"})


@dataclass(frozen=True)
class Scheme:
    """A buildable scheme of a project or workspace."""

    name: str
    has_tests: bool = False
    missing: bool = False
    """True when no shared scheme exists and the name is a guess."""
    app_target: str = ""
    """Blueprint name of the .app the scheme builds, empty if it builds none."""


@dataclass
class XcodeProject:
    """A standalone project or a workspace to build."""

    rel_path: str
    is_workspace: bool = False
    is_pod_workspace: bool = False
    carthage_command: str = ""
    schemes: List[Scheme] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    dir_entry: Optional[DirEntry] = None
    """Directory holding the bundle; app targets live next to it."""


def read_scheme(scheme_path: Path) -> Scheme:
    """Read a .xcscheme file.

    The scheme has tests when its TestAction lists any testable. Its app
    target is the first build action entry that produces an ``.app``.

    Raises:
        ValueError: If the scheme is not valid XML or declares entities.
    """
    try:
        root = ET.parse(str(scheme_path)).getroot()
    except (ET.ParseError, DefusedXmlException) as e:
        raise ValueError(f"Invalid scheme {scheme_path}: {e}") from e

    app_target = ""
    for reference in root.iterfind("./BuildAction/BuildActionEntries/BuildActionEntry/BuildableReference"):
        if reference.get("BuildableName", "").endswith(".app"):
            app_target = reference.get("BlueprintName", "")
            break

    return Scheme(
        name=scheme_path.name[: -len(SCHEME_EXTENSION)],
        has_tests=root.find("./TestAction/Testables/TestableReference") is not None,
        app_target=app_target,
    )


def shared_schemes(bundle: DirEntry) -> List[Scheme]:
    """Read the shared schemes of an .xcodeproj or .xcworkspace bundle."""
    schemes_dir = bundle.find_by_path_components("xcshareddata", "xcschemes", is_dir=True)
    if schemes_dir is None:
        return []

    schemes: List[Scheme] = []
    for entry in schemes_dir.children:
        if entry.is_dir or not entry.name.endswith(SCHEME_EXTENSION):
            continue
        try:
            schemes.append(read_scheme(Path(entry.abs_path)))
        except ValueError as e:
            LOGGER.warning(f"Failed to parse scheme {entry.rel_path}: {e}")
            schemes.append(Scheme(name=entry.name[: -len(SCHEME_EXTENSION)]))
    return schemes


def detect_carthage_command(project_dir: DirEntry) -> Tuple[str, str]:
    """Return ``(command, warning)`` for the Cartfile next to a project.

    ``bootstrap`` when the resolved file is committed, ``update`` otherwise.
    """
    cartfile = project_dir.find_immediate_child(CARTFILE_NAME)
    if cartfile is None:
        return "", ""
    if project_dir.find_immediate_child(CARTFILE_RESOLVED_NAME) is not None:
        return "bootstrap", ""
    warning = (
        f"Cartfile found at ({cartfile.rel_path}), but no Cartfile.resolved exists in the same directory. "
        "It is strongly recommended to commit this file to your repository."
    )
    return "update", warning


def _is_relevant(entry: DirEntry) -> bool:
    components = entry.rel_path.split("/")[:-1]
    if any(component in DEPENDENCY_DIR_NAMES for component in components):
        return False
    # project.xcworkspace inside an .xcodeproj bundle
    return not any(component.endswith(PROJECT_EXTENSION) for component in components)


def _missing_schemes_warning(bundle_rel_path: str, snapshot: TreeSnapshot) -> str:
    message = f"No shared schemes found for project: {bundle_rel_path}.\n"
    gitignore = snapshot.root.find_immediate_child(".gitignore")
    if gitignore is not None:
        content = Path(gitignore.abs_path).read_text(encoding="utf-8", errors="replace")
        if "xcshareddata" in content:
            message += (
                f"Your gitignore file ({gitignore.rel_path}) contains 'xcshareddata', "
                "maybe shared schemes are gitignored?\n"
            )
    message += (
        "Automatically generated schemes may differ from the ones in your project. "
        "Make sure to share your schemes for the expected behaviour."
    )
    return message


def _unique_schemes(schemes: List[Scheme]) -> List[Scheme]:
    unique: Dict[str, Scheme] = {}
    for scheme in schemes:
        unique.setdefault(scheme.name, scheme)
    return list(unique.values())


def _bundle_stem(entry: DirEntry) -> str:
    return os.path.splitext(entry.name)[0]


def _sibling_path(dir_entry: DirEntry, name: str) -> str:
    if dir_entry.rel_path.endswith("/"):
        return dir_entry.rel_path + name
    return f"{dir_entry.rel_path}/{name}"


def find_xcode_projects(snapshot: TreeSnapshot) -> List[XcodeProject]:
    """Collect the projects and workspaces worth building, shallowest first.

    A workspace covers the projects in its own directory. A project with a
    Podfile next to it is built through the CocoaPods workspace named after
    it, whether or not that workspace is checked in.
    """
    bundles = [
        entry
        for entry in snapshot.root.iter_breadth_first()
        if entry.is_dir
        and os.path.splitext(entry.name)[1] in (PROJECT_EXTENSION, WORKSPACE_EXTENSION)
        and _is_relevant(entry)
    ]

    projects_by_dir: Dict[str, List[DirEntry]] = {}
    workspaces_by_dir: Dict[str, List[DirEntry]] = {}
    dirs: Dict[str, DirEntry] = {}
    for bundle in bundles:
        parent = snapshot.parent(bundle)
        if parent is None:
            continue
        dirs[parent.abs_path] = parent
        if bundle.name.endswith(PROJECT_EXTENSION):
            projects_by_dir.setdefault(parent.abs_path, []).append(bundle)
        else:
            workspaces_by_dir.setdefault(parent.abs_path, []).append(bundle)

    results: List[XcodeProject] = []
    seen_paths: Set[str] = set()

    for dir_path, parent in dirs.items():
        dir_projects = projects_by_dir.get(dir_path, [])
        dir_workspaces = workspaces_by_dir.get(dir_path, [])
        has_podfile = parent.find_immediate_child(PODFILE_NAME) is not None
        carthage_command, carthage_warning = detect_carthage_command(parent)

        project_schemes: List[Scheme] = []
        for project in dir_projects:
            project_schemes.extend(shared_schemes(project))

        candidates: List[XcodeProject] = []
        if dir_workspaces:
            for workspace in dir_workspaces:
                candidates.append(
                    XcodeProject(
                        rel_path=workspace.rel_path,
                        is_workspace=True,
                        is_pod_workspace=has_podfile,
                        schemes=_unique_schemes(shared_schemes(workspace) + project_schemes),
                    )
                )
        elif has_podfile and dir_projects:
            for project in dir_projects:
                candidates.append(
                    XcodeProject(
                        rel_path=_sibling_path(parent, _bundle_stem(project) + WORKSPACE_EXTENSION),
                        is_workspace=True,
                        is_pod_workspace=True,
                        schemes=shared_schemes(project),
                    )
                )
        else:
            for project in dir_projects:
                candidates.append(XcodeProject(rel_path=project.rel_path, schemes=shared_schemes(project)))

        for candidate in candidates:
            if candidate.rel_path in seen_paths:
                continue
            seen_paths.add(candidate.rel_path)

            candidate.carthage_command = carthage_command
            candidate.dir_entry = parent
            if carthage_warning:
                candidate.warnings.append(carthage_warning)

            if not candidate.schemes:
                LOGGER.warning(f"No shared schemes found for {candidate.rel_path}")
                candidate.warnings.append(_missing_schemes_warning(candidate.rel_path, snapshot))
                stem = os.path.splitext(os.path.basename(candidate.rel_path))[0]
                candidate.schemes = [Scheme(name=stem, missing=True, app_target=stem)]

            results.append(candidate)

    return results

