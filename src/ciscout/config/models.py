"""Typed project configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ciscout.core.models import SSHKeyActivation

DEFAULT_MAX_DEPTH = 6
MIN_MAX_DEPTH = 1
MAX_MAX_DEPTH = 12

OUTPUT_FORMATS = ("yaml", "json")


@dataclass
class DetectorsConfig:
    """Which detectors take part in a scan."""

    enabled: Optional[List[str]] = None
    """Only these detectors run; None means all installed detectors."""

    disabled: List[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    """How scan results are written."""

    format: str = "yaml"


@dataclass
class CIScoutConfig:
    """Complete ciscout configuration."""

    max_depth: int = DEFAULT_MAX_DEPTH
    ignore: List[str] = field(default_factory=list)
    detectors: DetectorsConfig = field(default_factory=DetectorsConfig)
    ssh_key_activation: SSHKeyActivation = SSHKeyActivation.CONDITIONAL
    output: OutputConfig = field(default_factory=OutputConfig)

    # Where the values came from, for debugging
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def sources(self) -> List[str]:
        return list(self._config_sources)
