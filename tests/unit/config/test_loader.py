"""Tests for ciscout.config.loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from ciscout.config import (
    CIScoutConfig,
    ConfigError,
    load_config,
)
from ciscout.config.loader import (
    expand_env_vars,
    find_project_config,
    get_default_config,
    load_yaml_file,
    merge_configs,
)
from ciscout.core.models import SSHKeyActivation


class TestExpandEnvVars:
    """Tests for environment variable expansion."""

    def test_expands_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SAMPLES_DIR", "samples")

        assert expand_env_vars({"ignore": ["${SAMPLES_DIR}/"]}) == {"ignore": ["samples/"]}

    def test_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CISCOUT_TEST_UNSET", raising=False)

        assert expand_env_vars("${CISCOUT_TEST_UNSET:-json}") == "json"

    def test_unset_without_default_is_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CISCOUT_TEST_UNSET", raising=False)

        assert expand_env_vars("x${CISCOUT_TEST_UNSET}y") == "xy"

    def test_non_strings_are_kept(self) -> None:
        assert expand_env_vars({"max_depth": 4}) == {"max_depth": 4}


class TestMergeConfigs:
    """Tests for merge_configs."""

    def test_nested_dicts_are_merged(self) -> None:
        base = {"detectors": {"disabled": ["java"]}, "max_depth": 4}
        overlay = {"detectors": {"enabled": ["ios"]}}

        assert merge_configs(base, overlay) == {
            "detectors": {"disabled": ["java"], "enabled": ["ios"]},
            "max_depth": 4,
        }

    def test_lists_are_replaced(self) -> None:
        assert merge_configs({"ignore": ["a/"]}, {"ignore": ["b/"]}) == {"ignore": ["b/"]}


class TestLoadYamlFile:
    """Tests for load_yaml_file."""

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / ".ciscout.yml"
        path.write_text("")

        assert load_yaml_file(path) == {}

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / ".ciscout.yml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_yaml_file(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)

        assert config == get_default_config()
        assert config.sources == []
        assert config.detectors.enabled is None

    def test_project_config(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text(
            "max_depth: 3\n"
            "ignore:\n  - samples/\n"
            "ssh_key_activation: none\n"
            "detectors:\n  disabled: [java]\n"
            "output:\n  format: json\n"
        )

        config = load_config(tmp_path)

        assert config.max_depth == 3
        assert config.ignore == ["samples/"]
        assert config.ssh_key_activation == SSHKeyActivation.NONE
        assert config.detectors.disabled == ["java"]
        assert config.output.format == "json"
        assert config.sources == [f"project:{tmp_path / '.ciscout.yml'}"]

    def test_alternative_file_name(self, tmp_path: Path) -> None:
        (tmp_path / "ciscout.yml").write_text("max_depth: 2\n")

        assert find_project_config(tmp_path) == tmp_path / "ciscout.yml"
        assert load_config(tmp_path).max_depth == 2

    def test_cli_overrides_take_precedence(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: 3\ndetectors:\n  disabled: [java]\n")

        config = load_config(tmp_path, cli_overrides={"max_depth": 8, "detectors": {"enabled": ["ios"]}})

        assert config.max_depth == 8
        assert config.detectors.enabled == ["ios"]
        assert config.detectors.disabled == ["java"]
        assert config.sources[-1] == "cli"

    def test_custom_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom.yml"
        custom.write_text("max_depth: 5\n")
        (tmp_path / ".ciscout.yml").write_text("max_depth: 3\n")

        config = load_config(tmp_path, cli_config_path=custom)

        assert config.max_depth == 5
        assert config.sources == [f"custom:{custom}"]

    def test_missing_custom_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, cli_config_path=tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: [\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(tmp_path)

    def test_validation_errors_raise(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: 40\n")

        with pytest.raises(ConfigError, match="max_depth"):
            load_config(tmp_path)

    def test_unknown_keys_only_warn(self, tmp_path: Path) -> None:
        (tmp_path / ".ciscout.yml").write_text("max_depth: 4\nfail_on: high\n")

        assert load_config(tmp_path).max_depth == 4

    def test_invalid_override_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="unknown detector"):
            load_config(tmp_path, cli_overrides={"detectors": {"enabled": ["cobol"]}})


def test_default_config() -> None:
    config = CIScoutConfig()

    assert config.max_depth == 6
    assert config.ssh_key_activation == SSHKeyActivation.CONDITIONAL
    assert config.output.format == "yaml"
