"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ciscout.config.models import CIScoutConfig


class Command(ABC):
    """Base class for CLI commands.

    All CLI commands should inherit from this class and implement
    the execute method.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace, config: "CIScoutConfig | None" = None) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded configuration, for commands that scan a directory.

        Returns:
            Exit code (0 for success, non-zero for error).
        """


# Import command implementations for convenience
# ruff: noqa: E402
from ciscout.cli.commands.scan import ScanCommand
from ciscout.cli.commands.manual_config import ManualConfigCommand
from ciscout.cli.commands.generate import GenerateCommand
from ciscout.cli.commands.list_detectors import ListDetectorsCommand
from ciscout.cli.commands.validate import ValidateCommand

__all__ = [
    "Command",
    "ScanCommand",
    "ManualConfigCommand",
    "GenerateCommand",
    "ListDetectorsCommand",
    "ValidateCommand",
]
