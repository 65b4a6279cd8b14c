"""Exception hierarchy shared across ciscout.

Detection failures of a single detector are not exceptions at this level:
the orchestrator records them against the detector's name. The types here
are the failures that abort a whole scan or reject bad input.
"""

from __future__ import annotations


class CIScoutError(Exception):
    """Base class for ciscout errors."""


class ScanError(CIScoutError):
    """The scan root could not be walked; no detector can run."""


class SynthesisError(CIScoutError):
    """A detector matched but failed to build its options or configs."""

    def __init__(self, detector: str, message: str) -> None:
        super().__init__(f"{detector}: {message}")
        self.detector = detector


class DetectorRegistrationError(CIScoutError):
    """The detector set handed to the orchestrator is inconsistent."""


class OptionResolutionError(CIScoutError):
    """A choice does not match any value of an option tree node."""
