"""Bridge between CLI arguments and configuration overrides."""

from __future__ import annotations

import argparse
from typing import Any, Dict


class ConfigBridge:
    """Translates CLI arguments to configuration overrides."""

    @staticmethod
    def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
        """Convert CLI arguments to a config override dict.

        Only options given on the command line are included, so file values
        survive for everything else. Uses getattr with defaults for
        subcommand compatibility.

        Args:
            args: Parsed CLI arguments.

        Returns:
            Dictionary of config overrides.
        """
        overrides: Dict[str, Any] = {}

        max_depth = getattr(args, "max_depth", None)
        if max_depth is not None:
            overrides["max_depth"] = max_depth

        ssh_key_activation = getattr(args, "ssh_key_activation", None)
        if ssh_key_activation:
            overrides["ssh_key_activation"] = ssh_key_activation

        detectors: Dict[str, Any] = {}
        enabled = getattr(args, "detectors", None)
        if enabled:
            detectors["enabled"] = list(enabled)
        disabled = getattr(args, "excluded_detectors", None)
        if disabled:
            detectors["disabled"] = list(disabled)
        if detectors:
            overrides["detectors"] = detectors

        output_format = getattr(args, "format", None)
        if output_format:
            overrides["output"] = {"format": output_format}

        return overrides
