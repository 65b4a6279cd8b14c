"""Argument parser construction for ciscout CLI.

This module builds the argument parser with subcommands:
- ciscout scan           - Detect platforms and print the scan result
- ciscout manual-config  - Print default options and configs of every platform
- ciscout generate       - Resolve one platform's options into a final config
- ciscout list-detectors - List installed detectors
- ciscout validate       - Validate a .ciscout.yml file
"""

from __future__ import annotations

import argparse
from pathlib import Path

from ciscout.config.models import MAX_MAX_DEPTH, MIN_MAX_DEPTH, OUTPUT_FORMATS
from ciscout.core.models import SSHKeyActivation


def _max_depth(value: str) -> int:
    try:
        depth = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid depth: {value!r}")
    if not MIN_MAX_DEPTH <= depth <= MAX_MAX_DEPTH:
        raise argparse.ArgumentTypeError(
            f"depth must be between {MIN_MAX_DEPTH} and {MAX_MAX_DEPTH}, got {depth}"
        )
    return depth


def _add_global_options(parser: argparse.ArgumentParser) -> None:
    """Add global options available to all commands."""
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show ciscout version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging output to errors only.",
    )


def _add_detection_options(parser: argparse.ArgumentParser) -> None:
    """Options shared by the commands that scan a directory."""
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to scan (default: current directory).",
    )

    config_group = parser.add_argument_group("configuration")
    config_group.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a config file (default: .ciscout.yml in the scanned directory).",
    )
    config_group.add_argument(
        "--max-depth",
        type=_max_depth,
        default=None,
        help=f"Directory levels to inspect, {MIN_MAX_DEPTH}-{MAX_MAX_DEPTH} (default: 6).",
    )
    config_group.add_argument(
        "--ssh-key-activation",
        choices=[value.value for value in SSHKeyActivation],
        default=None,
        help="How generated workflows activate an SSH key (default: conditional).",
    )
    config_group.add_argument(
        "--detector",
        action="append",
        dest="detectors",
        metavar="NAME",
        help="Only run this detector (can be specified multiple times).",
    )
    config_group.add_argument(
        "--exclude-detector",
        action="append",
        dest="excluded_detectors",
        metavar="NAME",
        help="Do not run this detector (can be specified multiple times).",
    )


def _add_output_options(parser: argparse.ArgumentParser) -> None:
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--format",
        choices=list(OUTPUT_FORMATS),
        default=None,
        help="Output format (default: yaml, or as specified in config file).",
    )
    output_group.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write result.yml/result.json (and app icons) into this directory instead of stdout.",
    )


def _build_scan_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'scan' subcommand parser."""
    scan_parser = subparsers.add_parser(
        "scan",
        help="Detect build platforms and print their options and configs.",
        description=(
            "Inspect a directory, detect the build platforms it contains and "
            "print the option tree and generated configs of each."
        ),
    )
    _add_detection_options(scan_parser)
    _add_output_options(scan_parser)


def _build_manual_config_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'manual-config' subcommand parser."""
    manual_parser = subparsers.add_parser(
        "manual-config",
        help="Print default options and configs for every platform.",
        description=(
            "Print the default option tree and configs of every installed "
            "detector, plus a generic 'other' config. No directory is scanned."
        ),
    )
    _add_output_options(manual_parser)


def _build_generate_parser(subparsers: argparse._SubParsersAction) -> None:
    """Build the 'generate' subcommand parser."""
    generate_parser = subparsers.add_parser(
        "generate",
        help="Resolve a platform's options and print the final config.",
        description=(
            "Walk the option tree of one platform with the given choices and "
            "print the selected config with the chosen values as app envs."
        ),
    )
    _add_detection_options(generate_parser)
    generate_parser.add_argument(
        "--platform",
        required=True,
        help="Platform whose options are resolved (e.g. android, other).",
    )
    generate_parser.add_argument(
        "--choice",
        action="append",
        dest="choices",
        default=[],
        metavar="VALUE",
        help="Answer for the next decision, in tree order (can be specified multiple times).",
    )
    generate_parser.add_argument(
        "--manual",
        action="store_true",
        help="Resolve against the default options instead of scanning.",
    )
    generate_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the config to this file instead of stdout.",
    )


def _build_list_detectors_parser(subparsers: argparse._SubParsersAction) -> None:
    subparsers.add_parser(
        "list-detectors",
        help="List installed platform detectors in precedence order.",
    )


def _build_validate_parser(subparsers: argparse._SubParsersAction) -> None:
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a ciscout configuration file.",
    )
    validate_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the config file (default: .ciscout.yml in the current directory).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser for ciscout CLI.

    Returns:
        Configured ArgumentParser instance with subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="ciscout",
        description="ciscout - detect build platforms and synthesize CI configurations.",
        epilog=(
            "Examples:\n"
            "  ciscout scan                                  # Scan the current directory\n"
            "  ciscout scan ./app --format json              # Print the result as JSON\n"
            "  ciscout scan --output-dir out                 # Write out/result.yml\n"
            "  ciscout generate --platform android --choice ./ --choice app\n"
            "  ciscout manual-config                         # Defaults for every platform\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    _add_global_options(parser)

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands:",
        metavar="COMMAND",
    )

    _build_scan_parser(subparsers)
    _build_manual_config_parser(subparsers)
    _build_generate_parser(subparsers)
    _build_list_detectors_parser(subparsers)
    _build_validate_parser(subparsers)

    return parser
