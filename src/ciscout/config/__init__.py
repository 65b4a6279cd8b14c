"""Project configuration (.ciscout.yml) loading and validation."""

from ciscout.config.loader import ConfigError, find_project_config, load_config
from ciscout.config.models import CIScoutConfig, DetectorsConfig, OutputConfig
from ciscout.config.validation import (
    ConfigValidationIssue,
    ValidationSeverity,
    validate_config,
    validate_config_file,
)

__all__ = [
    "CIScoutConfig",
    "ConfigError",
    "ConfigValidationIssue",
    "DetectorsConfig",
    "OutputConfig",
    "ValidationSeverity",
    "find_project_config",
    "load_config",
    "validate_config",
    "validate_config_file",
]
