"""List detectors command implementation."""

from __future__ import annotations

from argparse import Namespace

from ciscout.cli.commands import Command
from ciscout.cli.exit_codes import EXIT_SUCCESS
from ciscout.config.models import CIScoutConfig
from ciscout.plugins import discover_detectors, list_available_detectors


class ListDetectorsCommand(Command):
    """Lists installed platform detectors."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "list-detectors"

    def execute(self, args: Namespace, config: CIScoutConfig | None = None) -> int:
        """Print detectors in precedence order with their exclusions.

        Returns:
            Exit code (always 0 for list-detectors).
        """
        classes = discover_detectors()
        names = list_available_detectors()

        print("Available detectors (in precedence order):")
        print()

        if not names:
            print("  No detectors discovered.")
            return EXIT_SUCCESS

        for name in names:
            detector = classes[name]()
            excluded = detector.excluded_detector_names()
            print(f"  {name}")
            print(f"    Class: {type(detector).__module__}.{type(detector).__name__}")
            if excluded:
                print(f"    Excludes: {', '.join(excluded)}")
            print()

        return EXIT_SUCCESS
