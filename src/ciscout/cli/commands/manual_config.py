"""Manual config command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace

from ciscout.cli.commands import Command
from ciscout.cli.exit_codes import EXIT_SUCCESS
from ciscout.cli.output import render_result, write_result
from ciscout.config.models import CIScoutConfig
from ciscout.plugins import default_detectors
from ciscout.scanner import manual_config


class ManualConfigCommand(Command):
    """Prints the default options and configs of every platform."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "manual-config"

    def execute(self, args: Namespace, config: CIScoutConfig | None = None) -> int:
        output_format = getattr(args, "format", None) or "yaml"
        result = manual_config(default_detectors())

        output_dir = getattr(args, "output_dir", None)
        if output_dir is not None:
            path = write_result(result, output_format, output_dir)
            print(f"Result written to {path}")
        else:
            sys.stdout.write(render_result(result, output_format))
        return EXIT_SUCCESS
