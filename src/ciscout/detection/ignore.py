"""Gitignore-style pruning patterns for the directory snapshot.

Patterns come from:
- .ciscoutignore file in the scan root (gitignore syntax)
- the ``ignore`` list of .ciscout.yml (gitignore syntax)

They are applied on top of the fixed set of ignored directory names
(VCS metadata, build output, dependency folders).
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pathspec

from ciscout.core.logging import get_logger

LOGGER = get_logger(__name__)

CISCOUTIGNORE_NAMES = [".ciscoutignore"]


class IgnorePatterns:
    """Manages ignore patterns from multiple sources."""

    def __init__(
        self,
        patterns: List[str],
        source: str = "config",
    ) -> None:
        """Initialize with a list of gitignore-style patterns.

        Args:
            patterns: List of gitignore-style patterns.
            source: Source description for logging.
        """
        self._source = source
        self._raw_patterns = patterns

        clean_patterns = [
            p for p in patterns if p.strip() and not p.strip().startswith("#")
        ]

        self._spec = pathspec.PathSpec.from_lines(
            pathspec.patterns.GitWildMatchPattern,
            clean_patterns,
        )

        if clean_patterns:
            LOGGER.debug(f"Loaded {len(clean_patterns)} ignore patterns from {source}")

    def __bool__(self) -> bool:
        return bool(self.patterns)

    @property
    def patterns(self) -> List[str]:
        """Clean patterns without blank lines or comments."""
        return [
            p.strip()
            for p in self._raw_patterns
            if p.strip() and not p.strip().startswith("#")
        ]

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        """Check if a path relative to the scan root is ignored.

        Args:
            rel_path: Forward-slash path relative to the scan root. A leading
                ``./`` is accepted.
            is_dir: Whether the path is a directory; directory-only patterns
                (``foo/``) only match when set.

        Returns:
            True if the path should be pruned.
        """
        if rel_path.startswith("./"):
            rel_path = rel_path[2:]
        if not rel_path:
            return False
        if is_dir and not rel_path.endswith("/"):
            rel_path += "/"
        return self._spec.match_file(rel_path)

    @classmethod
    def from_file(cls, file_path: Path) -> Optional["IgnorePatterns"]:
        """Load patterns from a file.

        Args:
            file_path: Path to ignore file.

        Returns:
            IgnorePatterns instance, or None if file doesn't exist.
        """
        if not file_path.exists():
            return None

        try:
            content = file_path.read_text(encoding="utf-8")
        except OSError as e:
            LOGGER.warning(f"Failed to load ignore file {file_path}: {e}")
            return None
        return cls(content.splitlines(), source=str(file_path))

    @classmethod
    def merge(cls, *pattern_sets: Optional["IgnorePatterns"]) -> "IgnorePatterns":
        """Merge multiple IgnorePatterns instances.

        Args:
            pattern_sets: IgnorePatterns instances to merge.

        Returns:
            New IgnorePatterns with combined patterns.
        """
        all_patterns: List[str] = []
        sources: List[str] = []

        for ps in pattern_sets:
            if ps is not None:
                all_patterns.extend(ps._raw_patterns)
                sources.append(ps._source)

        return cls(all_patterns, source="+".join(sources) if sources else "empty")


def find_ciscoutignore(project_root: Path) -> Optional[Path]:
    """Find .ciscoutignore file in the scan root."""
    for name in CISCOUTIGNORE_NAMES:
        ignore_path = project_root / name
        if ignore_path.exists():
            return ignore_path
    return None


def load_ignore_patterns(
    project_root: Path,
    config_patterns: List[str],
) -> IgnorePatterns:
    """Load and merge ignore patterns from all sources.

    Args:
        project_root: Scan root directory.
        config_patterns: Patterns from the ``ignore`` config key.

    Returns:
        Merged IgnorePatterns instance (file patterns first, then config).
    """
    ignore_file = find_ciscoutignore(project_root)
    file_patterns = IgnorePatterns.from_file(ignore_file) if ignore_file else None

    config_ignore = (
        IgnorePatterns(config_patterns, source="config.ignore")
        if config_patterns
        else None
    )

    return IgnorePatterns.merge(file_patterns, config_ignore)
