"""Immutable snapshot of a directory tree.

The tree is walked once per scan and then queried by every detector, so
detectors never touch the disk for layout questions. Directory names
in IGNORED_DIR_NAMES are pruned together with their whole subtree: build
output and VCS metadata routinely contain files that would falsely match
platform heuristics.

Usage:
    snapshot = build_snapshot("/path/to/repo", max_depth=6)
    gradlew = snapshot.root.find_first_by_name("gradlew")
    project_dir = snapshot.parent(gradlew)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from ciscout.core.errors import ScanError
from ciscout.core.logging import get_logger
from ciscout.detection.ignore import IgnorePatterns

LOGGER = get_logger(__name__)

IGNORED_DIR_NAMES = frozenset({
    ".git",
    ".github",
    ".gradle",
    ".idea",
    "build",
    ".kotlin",
    ".fleet",
    "CordovaLib",
    "node_modules",
})

ROOT_REL_PATH = "./"


@dataclass(frozen=True)
class DirEntry:
    """A file or directory in a TreeSnapshot.

    Entries are plain values: they hold their children but no reference to
    their parent. Use TreeSnapshot.parent() to navigate upwards.
    """

    abs_path: str
    """Absolute filesystem path."""

    rel_path: str
    """Path relative to the scan root, ``./`` for the root, ``./a/b`` below it."""

    name: str
    """Base name; empty for the root."""

    is_dir: bool
    """Whether the entry is a directory."""

    children: Tuple["DirEntry", ...] = ()
    """Child entries in name order (directories only)."""

    def iter_breadth_first(self) -> Iterator["DirEntry"]:
        """Yield all descendants level by level, in listing order."""
        level: List[DirEntry] = [self]
        while level:
            next_level: List[DirEntry] = []
            for parent in level:
                for entry in parent.children:
                    yield entry
                    if entry.is_dir:
                        next_level.append(entry)
            level = next_level

    def find_first_by_name(self, name: str, is_dir: bool = False) -> Optional["DirEntry"]:
        """Return the shallowest descendant with the given name and kind.

        Ties between entries at the same depth go to the one listed first.
        """
        for entry in self.iter_breadth_first():
            if entry.name == name and entry.is_dir == is_dir:
                return entry
        return None

    def find_all_by_name(self, name: str, is_dir: bool = False) -> List["DirEntry"]:
        """Return every descendant with the given name and kind, shallowest first."""
        return [
            entry
            for entry in self.iter_breadth_first()
            if entry.name == name and entry.is_dir == is_dir
        ]

    def find_first_by_extension(self, extension: str) -> Optional["DirEntry"]:
        """Return the shallowest descendant whose name has the given extension.

        Directories match too (``.xcodeproj`` bundles are directories).
        """
        for entry in self.iter_breadth_first():
            if os.path.splitext(entry.name)[1] == extension:
                return entry
        return None

    def find_immediate_child(self, name: str, is_dir: bool = False) -> Optional["DirEntry"]:
        """Return the direct child with the given name and kind."""
        for entry in self.children:
            if entry.name == name and entry.is_dir == is_dir:
                return entry
        return None

    def find_by_path_components(self, *components: str, is_dir: bool = False) -> Optional["DirEntry"]:
        """Descend by exact path components.

        All components but the last must be directories; ``is_dir`` applies
        to the last one. Returns None on any missing segment.
        """
        if not components:
            return None
        entry = self
        for component in components[:-1]:
            child = entry.find_immediate_child(component, is_dir=True)
            if child is None:
                return None
            entry = child
        return entry.find_immediate_child(components[-1], is_dir)


class TreeSnapshot:
    """A walked directory tree plus a child-to-parent index.

    The snapshot is read-only after construction; detectors may share it.
    """

    def __init__(self, root: DirEntry, parents: Dict[str, DirEntry], max_depth: int) -> None:
        self._root = root
        self._parents = parents
        self._entries: Dict[str, DirEntry] = {root.abs_path: root}
        for entry in root.iter_breadth_first():
            self._entries[entry.abs_path] = entry
        self.max_depth = max_depth

    @property
    def root(self) -> DirEntry:
        """Root entry of the scan."""
        return self._root

    @property
    def root_dir(self) -> str:
        """Absolute path of the scan root."""
        return self._root.abs_path

    def parent(self, entry: DirEntry) -> Optional[DirEntry]:
        """Return the directory containing ``entry``, or None for the root."""
        return self._parents.get(entry.abs_path)

    def entry_for(self, abs_path: str) -> Optional[DirEntry]:
        """Look up an entry by absolute path."""
        return self._entries.get(os.path.abspath(abs_path))

    def __len__(self) -> int:
        return len(self._entries)


def _list_dir(path: str) -> List[os.DirEntry]:
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def build_snapshot(
    root_dir: "str | os.PathLike[str]",
    max_depth: int,
    ignore: Optional[IgnorePatterns] = None,
) -> TreeSnapshot:
    """Walk ``root_dir`` and return an immutable snapshot.

    Args:
        root_dir: Directory to scan.
        max_depth: Number of directory levels to list; 1 lists only the
            root's immediate children, 0 yields an empty root.
        ignore: Extra gitignore-style patterns to prune.

    Returns:
        TreeSnapshot of the walked tree.

    Raises:
        ScanError: If the root directory cannot be read.
    """
    root_path = os.path.abspath(os.fspath(root_dir))
    parents: Dict[str, DirEntry] = {}

    if max_depth <= 0:
        if not os.path.isdir(root_path):
            raise ScanError(f"Scan root is not a directory: {root_path}")
        root = DirEntry(abs_path=root_path, rel_path=ROOT_REL_PATH, name="", is_dir=True)
        return TreeSnapshot(root, parents, max_depth)

    try:
        listing = _list_dir(root_path)
    except OSError as e:
        raise ScanError(f"Unable to read scan root {root_path}: {e}") from e

    def walk(abs_path: str, rel_path: str, name: str, depth: int, entries: List[os.DirEntry]) -> DirEntry:
        children: List[DirEntry] = []
        for item in entries:
            if item.name in IGNORED_DIR_NAMES:
                continue
            child_abs = os.path.join(abs_path, item.name)
            child_rel = ROOT_REL_PATH + os.path.relpath(child_abs, root_path).replace(os.sep, "/")
            child_is_dir = _is_dir(item)
            if ignore and ignore.matches(child_rel, child_is_dir):
                LOGGER.debug(f"Ignoring {child_rel}")
                continue

            if child_is_dir and depth + 1 < max_depth:
                try:
                    child_listing = _list_dir(child_abs)
                except OSError as e:
                    LOGGER.warning(f"Unable to read directory {child_abs}: {e}")
                    child_listing = []
                child = walk(child_abs, child_rel, item.name, depth + 1, child_listing)
            else:
                child = DirEntry(abs_path=child_abs, rel_path=child_rel, name=item.name, is_dir=child_is_dir)
            children.append(child)

        entry = DirEntry(
            abs_path=abs_path,
            rel_path=rel_path,
            name=name,
            is_dir=True,
            children=tuple(children),
        )
        for child in children:
            parents[child.abs_path] = entry
        return entry

    root = walk(root_path, ROOT_REL_PATH, "", 0, listing)
    LOGGER.debug(f"Snapshot of {root_path} built to depth {max_depth}")
    return TreeSnapshot(root, parents, max_depth)
