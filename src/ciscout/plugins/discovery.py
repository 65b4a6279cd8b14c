"""Detector discovery via Python entry points.

Detectors register themselves in their pyproject.toml:

    [project.entry-points."ciscout.detectors"]
    android = "ciscout.detectors.android:AndroidDetector"
"""

from __future__ import annotations

from importlib.metadata import entry_points
from typing import Dict, List, Optional, Type, TypeVar

from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName
from ciscout.detectors.base import PlatformDetector

LOGGER = get_logger(__name__)

DETECTOR_ENTRY_POINT_GROUP = "ciscout.detectors"

# Exclusion precedence of the detectable platforms
DETECTOR_ORDER: List[str] = [
    DetectorName.FLUTTER.value,
    DetectorName.KOTLIN_MULTIPLATFORM.value,
    DetectorName.IOS.value,
    DetectorName.ANDROID.value,
    DetectorName.JAVA.value,
    DetectorName.NODE_JS.value,
]

T = TypeVar("T")


def discover_plugins(group: str, base_class: Optional[Type[T]] = None) -> Dict[str, Type[T]]:
    """Discover all installed plugins for a given entry point group.

    Args:
        group: Entry point group name (e.g., 'ciscout.detectors').
        base_class: Optional base class to validate plugins against.

    Returns:
        Dictionary mapping plugin names to plugin classes.
    """
    plugins: Dict[str, Type[T]] = {}

    for ep in entry_points(group=group):
        try:
            plugin_class = ep.load()
        except (ImportError, AttributeError) as e:
            LOGGER.warning(f"Failed to load plugin '{ep.name}': {e}")
            continue
        if base_class is not None and not (
            isinstance(plugin_class, type) and issubclass(plugin_class, base_class)
        ):
            LOGGER.warning(
                f"Plugin '{ep.name}' does not inherit from {base_class.__name__}, skipping"
            )
            continue
        plugins[ep.name] = plugin_class
        LOGGER.debug(f"Discovered plugin: {ep.name} (group: {group})")

    return plugins


def discover_detectors() -> Dict[str, Type[PlatformDetector]]:
    """Discover all installed detector classes, keyed by entry point name."""
    return discover_plugins(DETECTOR_ENTRY_POINT_GROUP, PlatformDetector)


def list_available_detectors() -> List[str]:
    """List detector names in precedence order."""
    return [name for name in DETECTOR_ORDER if name in discover_detectors()]


def default_detectors(
    enabled: Optional[List[str]] = None,
    disabled: Optional[List[str]] = None,
) -> List[PlatformDetector]:
    """Instantiate the installed detectors in precedence order.

    Only names in DETECTOR_ORDER are accepted; any other registered entry
    point is skipped with a warning.

    Args:
        enabled: If given, only these detectors are instantiated.
        disabled: Detectors to leave out.

    Returns:
        Fresh detector instances, ready for one scan.
    """
    classes = discover_detectors()
    for name in classes:
        if name not in DETECTOR_ORDER:
            LOGGER.warning(f"Ignoring detector '{name}': not a known platform name")

    disabled_names = set(disabled or [])
    detectors: List[PlatformDetector] = []
    for name in DETECTOR_ORDER:
        detector_class = classes.get(name)
        if detector_class is None:
            LOGGER.debug(f"Detector '{name}' is not installed")
            continue
        if enabled is not None and name not in enabled:
            continue
        if name in disabled_names:
            LOGGER.debug(f"Detector '{name}' disabled by configuration")
            continue
        detectors.append(detector_class())
    return detectors
