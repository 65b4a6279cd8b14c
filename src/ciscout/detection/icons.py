"""App icon lookup.

Android launcher icons are found through every
``<module>/src/<source set>/AndroidManifest.xml`` under a project: the
manifest's ``android:icon`` reference (``@mipmap/ic_launcher``) is resolved
against the ``res`` directory next to it, preferring the highest density.

iOS app icons come from the ``AppIcon.appiconset`` of the asset catalogs in
the app target's directory, next to the Xcode project. The largest image
listed in the set's ``Contents.json`` is used.

Both lookups walk the scan snapshot, so ignored and too deep files are
never read.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import defusedxml.ElementTree as ET  # type: ignore[import-untyped]
from defusedxml import DefusedXmlException  # type: ignore[import-untyped]

from ciscout.core.logging import get_logger
from ciscout.core.models import Icon
from ciscout.detection.direntry import DirEntry

LOGGER = get_logger(__name__)

ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"
ANDROID_MANIFEST_NAME = "AndroidManifest.xml"
DENSITY_SUFFIXES = ("xxxhdpi", "xxhdpi", "xhdpi", "hdpi", "mdpi", "ldpi")

APP_ICON_SET_NAME = "AppIcon.appiconset"
ASSET_CATALOG_EXTENSION = ".xcassets"
ICON_SET_CONTENTS_NAME = "Contents.json"


def icons_from_paths(paths: List[Path], search_dir: Path) -> List[Icon]:
    """Convert icon files to Icon records named after their relative path."""
    return [Icon.from_path(str(path), str(search_dir)) for path in paths]


def parse_android_icon_reference(manifest_path: Path) -> Optional[Tuple[str, str]]:
    """Read the application icon reference from an Android manifest.

    Returns:
        ``(resource type, name)`` such as ``("mipmap", "ic_launcher")``, or
        None if the manifest declares no icon.

    Raises:
        ValueError: If the manifest is malformed, declares entities, or the
            reference is not of the ``@type/name`` form.
    """
    try:
        tree = ET.parse(str(manifest_path))
    except (ET.ParseError, DefusedXmlException) as e:
        raise ValueError(f"Invalid manifest {manifest_path}: {e}") from e

    root = tree.getroot()
    if root.tag != "manifest":
        LOGGER.debug(f"No manifest element in {manifest_path}")
        return None

    application = root.find("application")
    if application is None:
        LOGGER.debug(f"No application element in {manifest_path}")
        return None

    reference = application.get(f"{{{ANDROID_NAMESPACE}}}icon")
    if not reference:
        return None

    parts = reference.lstrip("@").split("/")
    if len(parts) != 2:
        raise ValueError(f"Unsupported icon reference {reference!r} in {manifest_path}")
    return parts[0], parts[1]


def _lookup_icon_file(source_set_dir: DirEntry, manifest: DirEntry) -> Optional[DirEntry]:
    reference = parse_android_icon_reference(Path(manifest.abs_path))
    if reference is None:
        return None

    prefix, base_name = reference
    for suffix in DENSITY_SUFFIXES:
        candidate = source_set_dir.find_by_path_components("res", f"{prefix}-{suffix}", f"{base_name}.png")
        if candidate is not None:
            return candidate
    return None


def _android_manifests(project_dir: DirEntry) -> List[Tuple[DirEntry, DirEntry]]:
    manifests: List[Tuple[DirEntry, DirEntry]] = []
    for module_dir in project_dir.children:
        if not module_dir.is_dir:
            continue
        src_dir = module_dir.find_immediate_child("src", is_dir=True)
        if src_dir is None:
            continue
        for source_set_dir in src_dir.children:
            if not source_set_dir.is_dir:
                continue
            manifest = source_set_dir.find_immediate_child(ANDROID_MANIFEST_NAME)
            if manifest is not None:
                manifests.append((source_set_dir, manifest))
    return sorted(manifests, key=lambda pair: pair[1].rel_path)


def lookup_android_icons(project_dir: DirEntry, search_dir: Path) -> List[Icon]:
    """Find launcher icons for all modules of an Android project.

    Args:
        project_dir: Gradle project root in the scan snapshot.
        search_dir: Scan root, used to name the icons.

    Returns:
        One Icon per manifest that references an existing PNG.

    Raises:
        ValueError: If a manifest cannot be parsed.
    """
    icon_paths: List[Path] = []
    for source_set_dir, manifest in _android_manifests(project_dir):
        icon = _lookup_icon_file(source_set_dir, manifest)
        if icon is not None:
            icon_paths.append(Path(icon.abs_path))
    return icons_from_paths(icon_paths, search_dir)


def _image_pixels(image: Dict[str, Any]) -> float:
    size = str(image.get("size") or "0x0").split("x")[0]
    scale = str(image.get("scale") or "1x").rstrip("x")
    try:
        return float(size) * float(scale)
    except ValueError:
        return 0.0


def largest_app_icon_name(contents_path: Path) -> Optional[str]:
    """Return the file name of the largest image in an app icon set.

    Raises:
        ValueError: If ``Contents.json`` is not a JSON object.
    """
    try:
        data = json.loads(contents_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid {contents_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {contents_path}: expected a JSON object")

    images = [
        image
        for image in data.get("images") or []
        if isinstance(image, dict) and image.get("filename")
    ]
    if not images:
        return None
    return str(max(images, key=_image_pixels)["filename"])


def lookup_ios_icons(project_dir: DirEntry, target_name: str, search_dir: Path) -> List[Icon]:
    """Find the app icon of an Xcode app target.

    Args:
        project_dir: Directory holding the Xcode project in the scan snapshot.
        target_name: App target name; its sources live in a directory of
            the same name next to the project.
        search_dir: Scan root, used to name the icons.

    Raises:
        ValueError: If an icon set's ``Contents.json`` cannot be parsed.
    """
    if not target_name:
        return []
    target_dir = project_dir.find_immediate_child(target_name, is_dir=True)
    if target_dir is None:
        LOGGER.debug(f"No directory for target {target_name} in {project_dir.rel_path}")
        return []

    icon_paths: List[Path] = []
    for icon_set in target_dir.find_all_by_name(APP_ICON_SET_NAME, is_dir=True):
        if not icon_set.rel_path.split("/")[-2].endswith(ASSET_CATALOG_EXTENSION):
            continue
        contents = icon_set.find_immediate_child(ICON_SET_CONTENTS_NAME)
        if contents is None:
            continue
        file_name = largest_app_icon_name(Path(contents.abs_path))
        if file_name is None:
            continue
        image = icon_set.find_immediate_child(file_name)
        if image is None:
            LOGGER.debug(f"Icon {file_name} listed in {contents.rel_path} does not exist")
            continue
        icon_paths.append(Path(image.abs_path))
    return icons_from_paths(icon_paths, search_dir)
