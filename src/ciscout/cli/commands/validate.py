"""Validate command implementation.

Validates .ciscout.yml configuration files and reports issues.
"""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ciscout.config.models import CIScoutConfig

from ciscout.cli.commands import Command
from ciscout.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS
from ciscout.config.loader import PROJECT_CONFIG_NAMES, find_project_config
from ciscout.config.validation import (
    ConfigValidationIssue,
    ValidationSeverity,
    validate_config_file,
)


class ValidateCommand(Command):
    """Validates ciscout configuration files."""

    @property
    def name(self) -> str:
        """Command identifier."""
        return "validate"

    def execute(self, args: Namespace, config: "CIScoutConfig | None" = None) -> int:
        """Execute the validate command.

        Args:
            args: Parsed command-line arguments.
            config: Unused.

        Returns:
            Exit code: 0 = valid, 3 = invalid or not found.
        """
        config_path = getattr(args, "config", None)
        if config_path:
            config_path = Path(config_path)
        else:
            config_path = find_project_config(Path.cwd())

        if config_path is None:
            print("No configuration file found.")
            print(f"Looked for: {', '.join(PROJECT_CONFIG_NAMES)}")
            return EXIT_INVALID_USAGE

        if not config_path.exists():
            print(f"Configuration file not found: {config_path}")
            return EXIT_INVALID_USAGE

        print(f"Validating {config_path}...")

        is_valid, issues = validate_config_file(config_path)

        if not issues:
            print("Configuration is valid.")
            return EXIT_SUCCESS

        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in issues if i.severity == ValidationSeverity.WARNING]

        if errors:
            print(f"\nErrors ({len(errors)}):")
            for issue in errors:
                self._print_issue(issue)

        if warnings:
            print(f"\nWarnings ({len(warnings)}):")
            for issue in warnings:
                self._print_issue(issue)

        if not is_valid:
            print(f"\nConfiguration is invalid ({len(errors)} error(s)).")
            return EXIT_INVALID_USAGE
        print(f"\nConfiguration is valid with {len(warnings)} warning(s).")
        return EXIT_SUCCESS

    def _print_issue(self, issue: ConfigValidationIssue) -> None:
        location = f" [{issue.key}]" if issue.key else ""
        print(f"  - {issue.message}{location}")
        if issue.suggestion:
            print(f"    Did you mean '{issue.suggestion}'?")
