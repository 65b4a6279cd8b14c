"""CLI runner orchestration.

This module handles command dispatch and execution for the ciscout CLI,
and maps failures to exit codes.
"""

from __future__ import annotations

from argparse import Namespace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Iterable, Optional

from ciscout.cli.arguments import build_parser
from ciscout.cli.commands import (
    Command,
    GenerateCommand,
    ListDetectorsCommand,
    ManualConfigCommand,
    ScanCommand,
    ValidateCommand,
)
from ciscout.cli.config_bridge import ConfigBridge
from ciscout.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SCAN_ERROR, EXIT_SUCCESS
from ciscout.config import CIScoutConfig, load_config
from ciscout.config.loader import ConfigError
from ciscout.core.errors import (
    DetectorRegistrationError,
    OptionResolutionError,
    ScanError,
    SynthesisError,
)
from ciscout.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def get_version() -> str:
    """Get ciscout version.

    Returns:
        Version string from package metadata or fallback.
    """
    try:
        return version("ciscout")
    except PackageNotFoundError:
        # Fallback for source checkouts without installed metadata.
        from ciscout import __version__
        return __version__


class CLIRunner:
    """Orchestrates CLI execution with subcommand dispatch."""

    def __init__(self) -> None:
        self.parser = build_parser()
        self._version = get_version()
        self._commands = {
            command.name: command
            for command in (
                ScanCommand(),
                ManualConfigCommand(),
                GenerateCommand(),
                ListDetectorsCommand(),
                ValidateCommand(),
            )
        }

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Run the CLI.

        Args:
            argv: Command-line arguments (defaults to sys.argv).

        Returns:
            Exit code.
        """
        argv_list = list(argv) if argv is not None else None

        try:
            args = self.parser.parse_args(argv_list)
        except SystemExit as e:
            # argparse exits 0 for --help and 2 for usage errors
            return EXIT_SUCCESS if e.code in (0, None) else EXIT_INVALID_USAGE

        configure_logging(
            debug=args.debug,
            verbose=args.verbose,
            quiet=args.quiet,
        )

        if args.version:
            print(self._version)
            return EXIT_SUCCESS

        command = self._commands.get(getattr(args, "command", None) or "")
        if command is None:
            self.parser.print_help()
            return EXIT_SUCCESS

        if command.name in ("scan", "generate"):
            return self._handle_detection(command, args)
        return self._execute(command, args)

    def _handle_detection(self, command: Command, args: Namespace) -> int:
        """Load configuration for a command that scans a directory."""
        project_root = Path(args.path).resolve()
        if not project_root.is_dir():
            LOGGER.error(f"Not a directory: {args.path}")
            return EXIT_INVALID_USAGE

        try:
            config = load_config(
                project_root=project_root,
                cli_config_path=args.config,
                cli_overrides=ConfigBridge.args_to_overrides(args),
            )
        except ConfigError as e:
            LOGGER.error(str(e))
            return EXIT_INVALID_USAGE

        return self._execute(command, args, config)

    def _execute(self, command: Command, args: Namespace, config: Optional[CIScoutConfig] = None) -> int:
        try:
            return command.execute(args, config)
        except DetectorRegistrationError as e:
            LOGGER.error(f"Invalid detector set: {e}")
            return EXIT_INVALID_USAGE
        except (ScanError, SynthesisError, OptionResolutionError) as e:
            if args.debug:
                LOGGER.exception(f"{command.name} failed")
            LOGGER.error(f"{command.name} failed: {e}")
            return EXIT_SCAN_ERROR
        except OSError as e:
            LOGGER.error(f"Failed to write output: {e}")
            return EXIT_SCAN_ERROR
