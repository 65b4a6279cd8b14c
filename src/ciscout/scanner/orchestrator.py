"""Detection orchestration.

The orchestrator builds one snapshot of the scan root, runs the detectors
in the given order and aggregates their option trees, configs, warnings
and icons into a ScanResult. Detection failures are isolated per detector;
failures after a successful detection abort the scan.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from ciscout.core.errors import DetectorRegistrationError, SynthesisError
from ciscout.core.logging import get_logger
from ciscout.core.models import GENERAL_RESULT_KEY, DetectorName, ScanResult, SSHKeyActivation
from ciscout.detection.direntry import build_snapshot
from ciscout.detection.ignore import IgnorePatterns
from ciscout.detectors.base import PlatformDetector

LOGGER = get_logger(__name__)

DEFAULT_MAX_DEPTH = 6
NO_PLATFORM_DETECTED = "No known platform detected"

KNOWN_DETECTOR_NAMES = frozenset(name.value for name in DetectorName if name != DetectorName.OTHER)


def validate_detectors(detectors: Sequence[PlatformDetector]) -> None:
    """Check that a detector set can be run together.

    Raises:
        DetectorRegistrationError: If a name is duplicated or unknown, or an
            exclusion names an unknown detector.
    """
    names: List[str] = []
    for detector in detectors:
        name = detector.name
        if name not in KNOWN_DETECTOR_NAMES:
            raise DetectorRegistrationError(f"Unknown detector name: {name!r}")
        if name in names:
            raise DetectorRegistrationError(f"Duplicate detector name: {name!r}")
        names.append(name)

    for detector in detectors:
        for excluded in detector.excluded_detector_names():
            if excluded not in KNOWN_DETECTOR_NAMES:
                raise DetectorRegistrationError(
                    f"Detector {detector.name!r} excludes unknown detector {excluded!r}"
                )
            if excluded not in names:
                LOGGER.debug(f"Detector {detector.name!r} excludes {excluded!r}, which is not part of this scan")


class DetectionOrchestrator:
    """Runs an ordered set of detectors against one directory.

    Order is exclusion precedence: once a detector matches, the detectors
    it excludes are skipped for the rest of the scan.
    """

    def __init__(
        self,
        detectors: List[PlatformDetector],
        max_depth: int = DEFAULT_MAX_DEPTH,
        ignore: Optional[IgnorePatterns] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            detectors: Fresh detector instances in precedence order.
            max_depth: Directory levels included in the snapshot.
            ignore: Extra gitignore-style patterns to prune.

        Raises:
            DetectorRegistrationError: If the detector set is inconsistent.
        """
        validate_detectors(detectors)
        self._detectors = list(detectors)
        self._max_depth = max_depth
        self._ignore = ignore

    @property
    def detector_names(self) -> List[str]:
        return [detector.name for detector in self._detectors]

    def run(
        self,
        search_dir: str,
        ssh_key_activation: SSHKeyActivation = SSHKeyActivation.CONDITIONAL,
    ) -> ScanResult:
        """Scan ``search_dir`` and return the aggregated result.

        Raises:
            ScanError: If the scan root cannot be read.
            SynthesisError: If a matched detector fails to build its options
                or configs.
        """
        snapshot = build_snapshot(search_dir, self._max_depth, self._ignore)
        LOGGER.info(f"Scanning {snapshot.root_dir} ({len(snapshot)} entries)")

        result = ScanResult()
        excluded: Set[str] = set()
        detected: List[PlatformDetector] = []

        for detector in self._detectors:
            name = detector.name
            if name in excluded:
                LOGGER.info(f"Skipping {name}: excluded by a previous detection")
                continue

            LOGGER.info(f"Running detector: {name}")
            try:
                found = detector.detect_platform(snapshot)
            except Exception as e:
                LOGGER.warning(f"Detector {name} failed: {e}")
                result.add_error(name, str(e))
                continue

            if not found:
                LOGGER.info(f"Platform not detected: {name}")
                continue

            LOGGER.info(f"Platform detected: {name}")
            detected.append(detector)
            excluded.update(detector.excluded_detector_names())

        for detector in detected:
            self._collect(detector, result, ssh_key_activation)

        if not detected:
            result.add_error(GENERAL_RESULT_KEY, NO_PLATFORM_DETECTED)

        return result

    def _collect(
        self,
        detector: PlatformDetector,
        result: ScanResult,
        ssh_key_activation: SSHKeyActivation,
    ) -> None:
        name = detector.name
        try:
            options, warnings, icons = detector.options()
            configs = detector.configs(ssh_key_activation)
        except Exception as e:
            raise SynthesisError(name, str(e)) from e

        result.options[name] = options
        result.configs[name] = configs
        result.add_warnings(name, warnings)
        result.icons.extend(icons)
        for warning in warnings:
            LOGGER.warning(f"{name}: {warning}")
