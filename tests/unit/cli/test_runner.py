"""Tests for CLI runner."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import yaml

from ciscout.cli import main
from ciscout.cli.exit_codes import (
    EXIT_INVALID_USAGE,
    EXIT_NO_PLATFORM,
    EXIT_SCAN_ERROR,
    EXIT_SUCCESS,
)
from ciscout.cli.runner import CLIRunner, get_version
from ciscout.core.errors import DetectorRegistrationError, SynthesisError

ANDROID_APP = {
    "gradlew": "",
    "settings.gradle": "include ':app'",
    "app/build.gradle": "plugins { id 'com.android.application' }",
}


class TestGetVersion:
    """Tests for get_version function."""

    def test_get_version_from_metadata(self) -> None:
        """Test version retrieval from package metadata."""
        with patch("ciscout.cli.runner.version", return_value="1.2.3"):
            assert get_version() == "1.2.3"

    def test_get_version_fallback(self) -> None:
        """Test version fallback when metadata not available."""
        from importlib.metadata import PackageNotFoundError

        from ciscout import __version__

        with patch(
            "ciscout.cli.runner.version",
            side_effect=PackageNotFoundError("not found"),
        ):
            assert get_version() == __version__


class TestCLIRunner:
    """Tests for CLIRunner class."""

    def test_run_help(self, capsys) -> None:
        """Test run with --help flag."""
        result = CLIRunner().run(["--help"])

        assert result == EXIT_SUCCESS
        assert "usage:" in capsys.readouterr().out.lower()

    def test_no_command_prints_help(self, capsys) -> None:
        result = CLIRunner().run([])

        assert result == EXIT_SUCCESS
        assert "commands" in capsys.readouterr().out

    def test_run_version(self, capsys) -> None:
        """Test run with --version flag."""
        with patch("ciscout.cli.runner.version", return_value="9.9.9"):
            result = CLIRunner().run(["--version"])

        assert result == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "9.9.9"

    def test_unknown_option_is_invalid_usage(self) -> None:
        assert CLIRunner().run(["scan", "--no-such-flag"]) == EXIT_INVALID_USAGE

    def test_max_depth_out_of_range(self) -> None:
        assert CLIRunner().run(["scan", "--max-depth", "20"]) == EXIT_INVALID_USAGE

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert CLIRunner().run(["scan", str(tmp_path / "missing")]) == EXIT_INVALID_USAGE

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: 99\n")

        assert CLIRunner().run(["scan", str(tmp_path)]) == EXIT_INVALID_USAGE

    def test_scan_prints_result(self, make_tree, capsys) -> None:
        root = make_tree(ANDROID_APP)

        result = CLIRunner().run(["scan", str(root)])

        assert result == EXIT_SUCCESS
        data = yaml.safe_load(capsys.readouterr().out)
        assert list(data["options"]) == ["android"]
        assert "android-config" in data["configs"]["android"]

    def test_scan_without_platform(self, tmp_path: Path, capsys) -> None:
        result = CLIRunner().run(["scan", str(tmp_path)])

        assert result == EXIT_NO_PLATFORM
        data = yaml.safe_load(capsys.readouterr().out)
        assert data == {"errors": {"general": ["No known platform detected"]}}

    def test_excluded_detector(self, make_tree, capsys) -> None:
        root = make_tree(ANDROID_APP)

        result = CLIRunner().run(["scan", str(root), "--exclude-detector", "android"])

        assert result == EXIT_SUCCESS
        data = yaml.safe_load(capsys.readouterr().out)
        assert list(data["options"]) == ["java"]

    def test_synthesis_error_maps_to_scan_error(self, tmp_path: Path) -> None:
        with patch(
            "ciscout.cli.commands.scan.run_scan",
            side_effect=SynthesisError("android", "boom"),
        ):
            assert CLIRunner().run(["scan", str(tmp_path)]) == EXIT_SCAN_ERROR

    def test_registration_error_maps_to_invalid_usage(self, tmp_path: Path) -> None:
        with patch(
            "ciscout.cli.commands.scan.run_scan",
            side_effect=DetectorRegistrationError("duplicate"),
        ):
            assert CLIRunner().run(["scan", str(tmp_path)]) == EXIT_INVALID_USAGE

    def test_generate_from_scan(self, make_tree, capsys) -> None:
        root = make_tree(ANDROID_APP)

        result = CLIRunner().run([
            "generate", str(root),
            "--platform", "android",
            "--choice", "./", "--choice", "app", "--choice", "debug",
        ])

        assert result == EXIT_SUCCESS
        document = yaml.safe_load(capsys.readouterr().out)
        assert {"MODULE": "app"} in document["app"]["envs"]
        assert {"VARIANT": "debug"} in document["app"]["envs"]

    def test_generate_with_bad_choice(self, make_tree) -> None:
        root = make_tree(ANDROID_APP)

        result = CLIRunner().run(["generate", str(root), "--platform", "android", "--choice", "./ios"])

        assert result == EXIT_SCAN_ERROR

    def test_generate_manual_other_to_file(self, tmp_path: Path, capsys) -> None:
        output = tmp_path / "bitrise.yml"

        result = CLIRunner().run([
            "generate", str(tmp_path), "--manual", "--platform", "other", "--output", str(output),
        ])

        assert result == EXIT_SUCCESS
        assert yaml.safe_load(output.read_text())["project_type"] == "other"
        assert "other-config" in capsys.readouterr().out

    def test_main_returns_exit_code(self, capsys) -> None:
        assert main(["list-detectors"]) == EXIT_SUCCESS
        assert "android" in capsys.readouterr().out
