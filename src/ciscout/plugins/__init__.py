"""Plugin infrastructure for ciscout.

Platform detectors are discovered via the ``ciscout.detectors`` entry
point group.
"""

from ciscout.plugins.discovery import (
    DETECTOR_ENTRY_POINT_GROUP,
    DETECTOR_ORDER,
    default_detectors,
    discover_detectors,
    discover_plugins,
    list_available_detectors,
)

__all__ = [
    "DETECTOR_ENTRY_POINT_GROUP",
    "DETECTOR_ORDER",
    "default_detectors",
    "discover_detectors",
    "discover_plugins",
    "list_available_detectors",
]
