"""Configuration validation for ciscout.

Unknown keys are warnings (with a "did you mean" suggestion); values of
the wrong type or outside their allowed set are errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml

from ciscout.config.models import MAX_MAX_DEPTH, MIN_MAX_DEPTH, OUTPUT_FORMATS
from ciscout.core.logging import get_logger
from ciscout.core.models import DetectorName, SSHKeyActivation

LOGGER = get_logger(__name__)


class ValidationSeverity(Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Config cannot be used
    WARNING = "warning"  # Likely mistake but config usable


@dataclass
class ConfigValidationIssue:
    """A validation issue for configuration with severity."""

    message: str
    source: str
    severity: ValidationSeverity
    key: Optional[str] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        msg = f"{self.message} in {self.source}"
        if self.suggestion:
            msg += f" (did you mean '{self.suggestion}'?)"
        return msg


VALID_TOP_LEVEL_KEYS: Set[str] = {
    "version",
    "max_depth",
    "ignore",
    "detectors",
    "ssh_key_activation",
    "output",
}

VALID_DETECTORS_KEYS: Set[str] = {
    "enabled",
    "disabled",
}

VALID_OUTPUT_KEYS: Set[str] = {
    "format",
}

VALID_DETECTOR_NAMES: Set[str] = {
    name.value for name in DetectorName if name != DetectorName.OTHER
}

VALID_SSH_KEY_ACTIVATIONS: Set[str] = {value.value for value in SSHKeyActivation}


def validate_config(data: Dict[str, Any], source: str) -> List[ConfigValidationIssue]:
    """Validate a configuration dictionary.

    Does not raise; every problem is returned as an issue and logged.

    Args:
        data: Config dictionary to validate.
        source: Source file path for messages.

    Returns:
        List of validation issues.
    """
    issues: List[ConfigValidationIssue] = []

    if not isinstance(data, dict):
        issues.append(_error(f"Config must be a mapping, got {type(data).__name__}", source))
        return issues

    for key in data.keys():
        if key not in VALID_TOP_LEVEL_KEYS:
            issues.append(ConfigValidationIssue(
                message=f"Unknown top-level key '{key}'",
                source=source,
                severity=ValidationSeverity.WARNING,
                key=key,
                suggestion=_suggest_key(str(key), VALID_TOP_LEVEL_KEYS),
            ))

    if "max_depth" in data:
        max_depth = data["max_depth"]
        # bool is an int subclass
        if not isinstance(max_depth, int) or isinstance(max_depth, bool):
            issues.append(_error(
                f"'max_depth' must be an integer, got {type(max_depth).__name__}", source, "max_depth"
            ))
        elif not MIN_MAX_DEPTH <= max_depth <= MAX_MAX_DEPTH:
            issues.append(_error(
                f"Invalid value for 'max_depth': {max_depth} (allowed: {MIN_MAX_DEPTH}-{MAX_MAX_DEPTH})",
                source,
                "max_depth",
            ))

    if "ignore" in data:
        ignore = data["ignore"]
        if not isinstance(ignore, list) or not all(isinstance(p, str) for p in ignore):
            issues.append(_error("'ignore' must be a list of patterns", source, "ignore"))

    if "ssh_key_activation" in data:
        value = data["ssh_key_activation"]
        if value not in VALID_SSH_KEY_ACTIVATIONS:
            issues.append(_error(
                f"Invalid value for 'ssh_key_activation': {value}",
                source,
                "ssh_key_activation",
                _suggest_key(str(value), VALID_SSH_KEY_ACTIVATIONS),
            ))

    if "detectors" in data:
        issues.extend(_validate_detectors(data["detectors"], source))

    if "output" in data:
        issues.extend(_validate_output(data["output"], source))

    for issue in issues:
        _log_issue(issue)
    return issues


def _validate_detectors(detectors: Any, source: str) -> List[ConfigValidationIssue]:
    issues: List[ConfigValidationIssue] = []
    if not isinstance(detectors, dict):
        issues.append(_error("'detectors' must be a mapping", source, "detectors"))
        return issues

    for key, names in detectors.items():
        if key not in VALID_DETECTORS_KEYS:
            issues.append(ConfigValidationIssue(
                message=f"Unknown key 'detectors.{key}'",
                source=source,
                severity=ValidationSeverity.WARNING,
                key=f"detectors.{key}",
                suggestion=_suggest_key(str(key), VALID_DETECTORS_KEYS),
            ))
            continue

        if not isinstance(names, list):
            issues.append(_error(f"'detectors.{key}' must be a list of detector names", source, f"detectors.{key}"))
            continue

        for name in names:
            if name not in VALID_DETECTOR_NAMES:
                issues.append(_error(
                    f"Invalid value in 'detectors.{key}': unknown detector '{name}'",
                    source,
                    f"detectors.{key}",
                    _suggest_key(str(name), VALID_DETECTOR_NAMES),
                ))
    return issues


def _validate_output(output: Any, source: str) -> List[ConfigValidationIssue]:
    issues: List[ConfigValidationIssue] = []
    if not isinstance(output, dict):
        issues.append(_error("'output' must be a mapping", source, "output"))
        return issues

    for key in output.keys():
        if key not in VALID_OUTPUT_KEYS:
            issues.append(ConfigValidationIssue(
                message=f"Unknown key 'output.{key}'",
                source=source,
                severity=ValidationSeverity.WARNING,
                key=f"output.{key}",
                suggestion=_suggest_key(str(key), VALID_OUTPUT_KEYS),
            ))

    fmt = output.get("format")
    if fmt is not None and fmt not in OUTPUT_FORMATS:
        issues.append(_error(
            f"Invalid value for 'output.format': {fmt}",
            source,
            "output.format",
            _suggest_key(str(fmt), set(OUTPUT_FORMATS)),
        ))
    return issues


def _error(
    message: str,
    source: str,
    key: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> ConfigValidationIssue:
    return ConfigValidationIssue(
        message=message,
        source=source,
        severity=ValidationSeverity.ERROR,
        key=key,
        suggestion=suggestion,
    )


def _suggest_key(invalid_key: str, valid_keys: Set[str]) -> Optional[str]:
    """Suggest a valid key for a typo.

    Args:
        invalid_key: The invalid key that was used.
        valid_keys: Set of valid keys.

    Returns:
        Closest matching valid key, or None if no good match.
    """
    matches = get_close_matches(invalid_key, sorted(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_issue(issue: ConfigValidationIssue) -> None:
    if issue.severity == ValidationSeverity.ERROR:
        LOGGER.error(str(issue))
    else:
        LOGGER.warning(str(issue))


def validate_config_file(config_path: Path) -> Tuple[bool, List[ConfigValidationIssue]]:
    """Validate a configuration file from disk.

    Checks file existence, YAML syntax, and configuration semantics.

    Args:
        config_path: Path to the configuration file.

    Returns:
        Tuple of (is_valid, issues) where is_valid is False if any errors exist.
    """
    source = str(config_path)

    if not config_path.exists():
        return False, [_error(f"Configuration file not found: {config_path}", source)]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [_error(f"Invalid YAML syntax: {e}", source)]

    if data is None:
        return True, [ConfigValidationIssue(
            message="Configuration file is empty",
            source=source,
            severity=ValidationSeverity.WARNING,
        )]

    issues = validate_config(data, source)
    has_errors = any(issue.severity == ValidationSeverity.ERROR for issue in issues)
    return not has_errors, issues
