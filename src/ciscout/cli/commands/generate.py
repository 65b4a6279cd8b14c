"""Generate command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace
from pathlib import Path

from ciscout.cli.commands import Command
from ciscout.cli.commands.scan import run_scan
from ciscout.cli.exit_codes import EXIT_SUCCESS
from ciscout.config.models import CIScoutConfig
from ciscout.core.logging import get_logger
from ciscout.plugins import default_detectors
from ciscout.scanner import manual_config, resolve_config

LOGGER = get_logger(__name__)


class GenerateCommand(Command):
    """Resolves one platform's option tree into a final config."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "generate"

    def execute(self, args: Namespace, config: CIScoutConfig | None = None) -> int:
        """Execute the generate command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration.

        Returns:
            Exit code.

        Raises:
            OptionResolutionError: If the choices do not lead to a config.
        """
        if config is None:
            config = CIScoutConfig()

        if args.manual:
            result = manual_config(
                default_detectors(
                    enabled=config.detectors.enabled,
                    disabled=config.detectors.disabled,
                )
            )
        else:
            result = run_scan(Path(args.path).resolve(), config)

        resolved = resolve_config(result, args.platform, args.choices)
        LOGGER.info(f"Selected config: {resolved.config_name}")
        for key, value in resolved.envs:
            LOGGER.debug(f"  {key}={value}")

        if args.output is not None:
            args.output.write_text(resolved.document, encoding="utf-8")
            print(f"Config {resolved.config_name} written to {args.output}")
        else:
            sys.stdout.write(resolved.document)
        return EXIT_SUCCESS
