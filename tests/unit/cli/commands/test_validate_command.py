"""Tests for validate command."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from ciscout.cli.commands.validate import ValidateCommand
from ciscout.cli.exit_codes import EXIT_INVALID_USAGE, EXIT_SUCCESS


class TestValidateCommand:
    """Tests for ValidateCommand."""

    def test_command_name(self) -> None:
        """Test command name property."""
        assert ValidateCommand().name == "validate"

    def test_valid_config_returns_success(self, tmp_path: Path, monkeypatch, capsys) -> None:
        """Test valid config returns exit code 0."""
        (tmp_path / ".ciscout.yml").write_text("max_depth: 4\nignore:\n  - samples/\n")

        monkeypatch.chdir(tmp_path)
        result = ValidateCommand().execute(Namespace(config=None))

        assert result == EXIT_SUCCESS
        assert "Configuration is valid." in capsys.readouterr().out

    def test_invalid_config_returns_invalid_usage(self, tmp_path: Path, monkeypatch, capsys) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: deep\n")

        monkeypatch.chdir(tmp_path)
        result = ValidateCommand().execute(Namespace(config=None))

        assert result == EXIT_INVALID_USAGE
        out = capsys.readouterr().out
        assert "Errors (1):" in out
        assert "[max_depth]" in out

    def test_warnings_keep_config_valid(self, tmp_path: Path, capsys) -> None:
        config_file = tmp_path / "custom.yml"
        config_file.write_text("max_dept: 4\n")

        result = ValidateCommand().execute(Namespace(config=config_file))

        assert result == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Did you mean 'max_depth'?" in out
        assert "valid with 1 warning(s)" in out

    def test_missing_config_returns_invalid_usage(self, tmp_path: Path, monkeypatch, capsys) -> None:
        """Test missing config returns exit code 3."""
        monkeypatch.chdir(tmp_path)
        result = ValidateCommand().execute(Namespace(config=None))

        assert result == EXIT_INVALID_USAGE
        assert "No configuration file found" in capsys.readouterr().out

    def test_explicit_missing_file(self, tmp_path: Path, capsys) -> None:
        result = ValidateCommand().execute(Namespace(config=tmp_path / "missing.yml"))

        assert result == EXIT_INVALID_USAGE
        assert "not found" in capsys.readouterr().out
