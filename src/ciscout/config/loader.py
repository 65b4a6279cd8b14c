"""Configuration file loading and merging.

Handles loading configuration from YAML files with:
- Project-level config (.ciscout.yml) in the scan root
- An explicit config file (--config)
- Environment variable expansion (${VAR})
- CLI overrides taking precedence over file values
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ciscout.config.models import (
    DEFAULT_MAX_DEPTH,
    CIScoutConfig,
    DetectorsConfig,
    OutputConfig,
)
from ciscout.config.validation import ValidationSeverity, validate_config
from ciscout.core.errors import CIScoutError
from ciscout.core.logging import get_logger
from ciscout.core.models import SSHKeyActivation

LOGGER = get_logger(__name__)

# Config file names
PROJECT_CONFIG_NAMES = [".ciscout.yml", ".ciscout.yaml", "ciscout.yml"]

# Environment variable pattern: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(CIScoutError):
    """Configuration loading or parsing error."""


def load_config(
    project_root: Path,
    cli_config_path: Optional[Path] = None,
    cli_overrides: Optional[Dict[str, Any]] = None,
) -> CIScoutConfig:
    """Load configuration with proper precedence.

    Precedence (highest to lowest):
    1. CLI flags (cli_overrides)
    2. Custom config file (cli_config_path) OR project config (.ciscout.yml)
    3. Built-in defaults

    Args:
        project_root: Scan root directory for finding .ciscout.yml.
        cli_config_path: Optional path to custom config file (--config flag).
        cli_overrides: Dict of CLI flag overrides.

    Returns:
        Merged CIScoutConfig instance.

    Raises:
        ConfigError: If the config file doesn't exist, has parse errors or
            fails validation.
    """
    sources: List[str] = []
    merged: Dict[str, Any] = {}

    if cli_config_path:
        if not cli_config_path.exists():
            raise ConfigError(f"Config file not found: {cli_config_path}")
        config_path: Optional[Path] = cli_config_path
        label = "custom"
    else:
        config_path = find_project_config(project_root)
        label = "project"

    if config_path is not None:
        try:
            file_dict = load_yaml_file(config_path)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        _raise_on_errors(file_dict, str(config_path))
        merged = merge_configs(merged, file_dict)
        sources.append(f"{label}:{config_path}")
        LOGGER.debug(f"Loaded {label} config from {config_path}")

    if cli_overrides:
        _raise_on_errors(cli_overrides, "command line")
        merged = merge_configs(merged, cli_overrides)
        sources.append("cli")
        LOGGER.debug("Applied CLI overrides")

    config = dict_to_config(merged)
    config._config_sources = sources

    LOGGER.debug(f"Config loaded from sources: {sources}")
    return config


def _raise_on_errors(data: Dict[str, Any], source: str) -> None:
    errors = [
        issue for issue in validate_config(data, source)
        if issue.severity == ValidationSeverity.ERROR
    ]
    if errors:
        raise ConfigError("; ".join(str(issue) for issue in errors))


def find_project_config(project_root: Path) -> Optional[Path]:
    """Find config file in the scan root.

    Args:
        project_root: Directory to search in.

    Returns:
        Path to config file if found, None otherwise.
    """
    for name in PROJECT_CONFIG_NAMES:
        config_path = project_root / name
        if config_path.exists():
            return config_path
    return None


def load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML config file.

    Performs environment variable expansion on string values.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed dictionary.

    Raises:
        yaml.YAMLError: If YAML parsing fails.
        ConfigError: If the document is not a mapping.
        FileNotFoundError: If file doesn't exist.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    data = yaml.safe_load(content)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must be a YAML mapping, got {type(data).__name__}")

    return expand_env_vars(data)


def expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        data: Config data (dict, list, or scalar).

    Returns:
        Data with environment variables expanded.
    """
    if isinstance(data, dict):
        return {k: expand_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        return ENV_VAR_PATTERN.sub(_env_var_replacer, data)
    else:
        return data


def _env_var_replacer(match: re.Match[str]) -> str:
    """Replace environment variable reference with its value."""
    var_name = match.group(1)
    default_value = match.group(2)

    value = os.environ.get(var_name)
    if value is not None:
        return value
    if default_value is not None:
        return default_value

    LOGGER.warning(f"Environment variable ${var_name} is not set and has no default")
    return ""


def merge_configs(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two config dicts, with overlay taking precedence.

    Rules:
    - Scalar values: overlay replaces base
    - Lists: overlay replaces base (no merging)
    - Dicts: recursive merge

    Args:
        base: Base configuration dictionary.
        overlay: Overlay configuration to merge on top.

    Returns:
        Merged configuration dictionary.
    """
    result = base.copy()

    for key, overlay_value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(overlay_value, dict):
            result[key] = merge_configs(result[key], overlay_value)
        else:
            result[key] = overlay_value

    return result


def dict_to_config(data: Dict[str, Any]) -> CIScoutConfig:
    """Convert a validated dict to a typed CIScoutConfig."""
    detectors_data = data.get("detectors") or {}
    enabled = detectors_data.get("enabled")
    detectors = DetectorsConfig(
        enabled=list(enabled) if enabled is not None else None,
        disabled=list(detectors_data.get("disabled") or []),
    )

    output_data = data.get("output") or {}
    output = OutputConfig(format=output_data.get("format", "yaml"))

    return CIScoutConfig(
        max_depth=data.get("max_depth", DEFAULT_MAX_DEPTH),
        ignore=list(data.get("ignore") or []),
        detectors=detectors,
        ssh_key_activation=SSHKeyActivation(data.get("ssh_key_activation", SSHKeyActivation.CONDITIONAL.value)),
        output=output,
    )


def get_default_config() -> CIScoutConfig:
    """Get the built-in default configuration."""
    return CIScoutConfig()
