"""Scan command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path

from ciscout.cli.commands import Command
from ciscout.cli.exit_codes import EXIT_NO_PLATFORM, EXIT_SUCCESS
from ciscout.cli.output import render_result, write_result
from ciscout.config.models import CIScoutConfig
from ciscout.core.logging import get_logger
from ciscout.core.models import ScanResult
from ciscout.detection.ignore import load_ignore_patterns
from ciscout.plugins import default_detectors
from ciscout.scanner import DetectionOrchestrator

LOGGER = get_logger(__name__)


def run_scan(project_root: Path, config: CIScoutConfig) -> ScanResult:
    """Run the configured detectors against ``project_root``.

    Raises:
        ScanError: If the directory cannot be read.
        SynthesisError: If a matched detector fails to build its result.
        DetectorRegistrationError: If the detector set is inconsistent.
    """
    detectors = default_detectors(
        enabled=config.detectors.enabled,
        disabled=config.detectors.disabled,
    )
    LOGGER.debug(f"Detectors: {', '.join(d.name for d in detectors)}")

    orchestrator = DetectionOrchestrator(
        detectors,
        max_depth=config.max_depth,
        ignore=load_ignore_patterns(project_root, config.ignore),
    )
    return orchestrator.run(str(project_root), config.ssh_key_activation)


class ScanCommand(Command):
    """Detects platforms and prints the scan result."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "scan"

    def execute(self, args: Namespace, config: CIScoutConfig | None = None) -> int:
        """Execute the scan command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration.

        Returns:
            EXIT_SUCCESS when a platform was detected, EXIT_NO_PLATFORM otherwise.
        """
        if config is None:
            config = CIScoutConfig()

        result = run_scan(Path(args.path).resolve(), config)

        output_dir = getattr(args, "output_dir", None)
        if output_dir is not None:
            path = write_result(result, config.output.format, output_dir)
            print(f"Result written to {path}")
        else:
            sys.stdout.write(render_result(result, config.output.format))

        if not result.detected_platforms:
            LOGGER.warning("No known platform detected")
            return EXIT_NO_PLATFORM
        return EXIT_SUCCESS
