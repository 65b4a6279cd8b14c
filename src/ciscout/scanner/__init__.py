"""Detection orchestration and result resolution.

Usage:
    from ciscout.plugins import default_detectors
    from ciscout.scanner import DetectionOrchestrator

    result = DetectionOrchestrator(default_detectors()).run("/path/to/repo")
"""

from ciscout.scanner.manual_config import OTHER_CONFIG_NAME, manual_config
from ciscout.scanner.orchestrator import (
    DEFAULT_MAX_DEPTH,
    NO_PLATFORM_DETECTED,
    DetectionOrchestrator,
    validate_detectors,
)
from ciscout.scanner.resolve import ResolvedConfig, resolve_config

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "NO_PLATFORM_DETECTED",
    "OTHER_CONFIG_NAME",
    "DetectionOrchestrator",
    "ResolvedConfig",
    "manual_config",
    "resolve_config",
    "validate_detectors",
]
