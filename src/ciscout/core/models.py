from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List

if TYPE_CHECKING:
    from ciscout.options import OptionNode


class DetectorName(str, Enum):
    """Names of the built-in platform detectors.

    The value is the key used everywhere results are indexed.
    """

    FLUTTER = "flutter"
    KOTLIN_MULTIPLATFORM = "kotlin-multiplatform"
    IOS = "ios"
    ANDROID = "android"
    JAVA = "java"
    NODE_JS = "node-js"
    OTHER = "other"


class SSHKeyActivation(str, Enum):
    """How the generated prepare steps activate an SSH key."""

    NONE = "none"
    CONDITIONAL = "conditional"
    MANDATORY = "mandatory"


GENERAL_RESULT_KEY = "general"
"""Result key for errors that do not belong to a single detector."""


def result_key(name: Any) -> str:
    """Normalise a detector name (enum member or plain string) to its key."""
    if isinstance(name, Enum):
        return str(name.value)
    return str(name)


@dataclass(frozen=True)
class Icon:
    """A potential app icon found by a detector.

    The filename is unique per icon: the sha256 digest of the path
    relative to the scan root with the original extension appended.
    """

    filename: str
    path: str

    @classmethod
    def from_path(cls, path: str, search_dir: str) -> "Icon":
        """Build an icon record for a file below ``search_dir``."""
        rel_path = os.path.relpath(path, search_dir).replace(os.sep, "/")
        digest = hashlib.sha256(rel_path.encode("utf-8")).hexdigest()
        _, ext = os.path.splitext(path)
        return cls(filename=f"{digest}{ext}", path=path)


@dataclass
class ScanResult:
    """Aggregated detection result keyed by detector name.

    Every config name reachable in ``options[name]`` is a key of
    ``configs[name]``.
    """

    options: Dict[str, "OptionNode"] = field(default_factory=dict)
    """Option tree per detected platform."""

    configs: Dict[str, Dict[str, str]] = field(default_factory=dict)
    """Rendered configuration documents per platform, keyed by config name."""

    warnings: Dict[str, List[str]] = field(default_factory=dict)
    """Non-fatal findings per detector."""

    errors: Dict[str, List[str]] = field(default_factory=dict)
    """Detection errors per detector, plus the ``general`` key."""

    icons: List[Icon] = field(default_factory=list)
    """App icons collected from all detectors, not deduplicated."""

    def add_error(self, detector: str, message: str) -> None:
        """Record an error against a detector name."""
        self.errors.setdefault(result_key(detector), []).append(message)

    def add_warnings(self, detector: str, messages: List[str]) -> None:
        """Record warnings against a detector name."""
        if messages:
            self.warnings.setdefault(result_key(detector), []).extend(messages)

    @property
    def detected_platforms(self) -> List[str]:
        """Names of detectors that produced an option tree."""
        return list(self.options.keys())

    @property
    def has_errors(self) -> bool:
        """Check whether any detector or the scan itself reported an error."""
        return any(self.errors.values())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serialisable dict, leaving out empty sections and icons."""
        data: Dict[str, Any] = {}
        if self.options:
            data["options"] = {name: node.to_dict() for name, node in self.options.items()}
        if self.configs:
            data["configs"] = {name: dict(docs) for name, docs in self.configs.items()}
        if self.warnings:
            data["warnings"] = {name: list(msgs) for name, msgs in self.warnings.items()}
        if self.errors:
            data["errors"] = {name: list(msgs) for name, msgs in self.errors.items()}
        return data
