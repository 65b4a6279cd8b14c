from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from ciscout.core.models import Icon, SSHKeyActivation
from ciscout.detection.direntry import TreeSnapshot
from ciscout.options import Decision

ConfigMap = Dict[str, str]
"""Rendered configuration documents keyed by config (leaf) name."""


class PlatformDetector(ABC):
    """Base class for all platform detectors.

    A detector decides whether one build ecosystem is present in a
    snapshot and, if so, describes its build variants as an option tree
    whose leaves name documents returned by ``configs``. Facts found by
    ``detect_platform`` are kept on the instance for the later calls, so
    use a fresh instance per scan.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique detector identifier (e.g., 'android', 'flutter')."""

    @abstractmethod
    def detect_platform(self, snapshot: TreeSnapshot) -> bool:
        """Check whether the platform is present.

        Only the work needed to decide presence belongs here; option and
        config building happens later.

        Args:
            snapshot: Shared, read-only directory snapshot of the scan root.

        Returns:
            True if the platform was found.
        """

    def excluded_detector_names(self) -> List[str]:
        """Detectors suppressed when this one matches."""
        return []

    @abstractmethod
    def options(self) -> Tuple[Decision, List[str], List[Icon]]:
        """Build the option tree for the detected projects.

        Returns:
            Tuple of (option tree, warnings, icons).
        """

    @abstractmethod
    def default_options(self) -> Decision:
        """Option tree usable without detection, answered by user input."""

    @abstractmethod
    def configs(self, ssh_key_activation: SSHKeyActivation) -> ConfigMap:
        """Render one document per leaf name of ``options()``."""

    @abstractmethod
    def default_configs(self) -> ConfigMap:
        """Render one document per leaf name of ``default_options()``."""
