"""Tests for argument parsing and CLI-to-config mapping."""

from __future__ import annotations

from pathlib import Path

import pytest

from ciscout.cli.arguments import build_parser
from ciscout.cli.config_bridge import ConfigBridge


class TestBuildParser:
    """Tests for build_parser."""

    def test_scan_defaults(self) -> None:
        args = build_parser().parse_args(["scan"])

        assert args.command == "scan"
        assert args.path == "."
        assert args.max_depth is None
        assert args.detectors is None
        assert args.format is None

    def test_scan_options(self) -> None:
        args = build_parser().parse_args([
            "--debug",
            "scan", "repo",
            "--max-depth", "3",
            "--ssh-key-activation", "none",
            "--detector", "ios", "--detector", "android",
            "--exclude-detector", "java",
            "--format", "json",
            "--output-dir", "out",
        ])

        assert args.debug
        assert args.path == "repo"
        assert args.max_depth == 3
        assert args.ssh_key_activation == "none"
        assert args.detectors == ["ios", "android"]
        assert args.excluded_detectors == ["java"]
        assert args.format == "json"
        assert args.output_dir == Path("out")

    @pytest.mark.parametrize("value", ["0", "13", "deep"])
    def test_invalid_max_depth(self, value: str) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["scan", "--max-depth", value])

    def test_generate_requires_platform(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["generate"])

    def test_generate_choices(self) -> None:
        args = build_parser().parse_args(["generate", "--platform", "ios", "--choice", "a", "--choice", ""])

        assert args.platform == "ios"
        assert args.choices == ["a", ""]
        assert not args.manual


class TestConfigBridge:
    """Tests for ConfigBridge.args_to_overrides."""

    def test_no_flags_no_overrides(self) -> None:
        args = build_parser().parse_args(["scan"])

        assert ConfigBridge.args_to_overrides(args) == {}

    def test_all_flags(self) -> None:
        args = build_parser().parse_args([
            "scan",
            "--max-depth", "2",
            "--ssh-key-activation", "mandatory",
            "--detector", "flutter",
            "--exclude-detector", "ios",
            "--format", "json",
        ])

        assert ConfigBridge.args_to_overrides(args) == {
            "max_depth": 2,
            "ssh_key_activation": "mandatory",
            "detectors": {"enabled": ["flutter"], "disabled": ["ios"]},
            "output": {"format": "json"},
        }

    def test_generate_has_no_format(self) -> None:
        args = build_parser().parse_args(["generate", "--platform", "java"])

        assert ConfigBridge.args_to_overrides(args) == {}
