"""Depth-first traversal of a cgroup mount.

Every directory under the mount root is one cgroup. The walker keeps an
explicit stack of frames (a directory and its not yet visited children)
and yields directories pre-order: a parent always comes before its
children. Each directory listing is read completely and its handle
released before anything is yielded, so abandoning the iteration early
leaves nothing open.

Cgroups are created and removed by the kernel at any time. A directory
that vanishes or cannot be listed is skipped together with its subtree
and recorded as a TraversalIssue; the walk itself never fails.
"""

import logging
import stat
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from cgroups_explorer.core.models import IssueKind, TraversalIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """A directory reached by the walker.

    Attributes:
        path: Absolute path of the directory.
        relative_path: Forward-slash path relative to the walk root.
        depth: Number of segments below the walk root (root itself is 0).
    """

    path: Path
    relative_path: str
    depth: int


@dataclass(slots=True)
class _Frame:
    """A directory whose children are still being visited."""

    relative_path: str
    depth: int
    children: list[Path]


class HierarchyWalker:
    """Recursive, pre-order directory walker for a cgroup mount.

    Symbolic links are never followed. Issues encountered during the most
    recent walk are available through ``issues``; starting a new walk
    clears them.

    Args:
        root: Directory to start from.
        sort: If True, visit children in lexicographic order.
        min_depth: Minimum depth of yielded entries (1 skips the root).
    """

    def __init__(self, root: Path, *, sort: bool = True, min_depth: int = 1) -> None:
        self._root = root
        self._sort = sort
        self._min_depth = min_depth
        self.issues: list[TraversalIssue] = []

    @property
    def root(self) -> Path:
        """Directory the walk starts from."""
        return self._root

    def walk(self, descend: Callable[[WalkEntry], bool] | None = None) -> Iterator[WalkEntry]:
        """Yield every directory reachable from the root.

        Args:
            descend: Optional predicate called for each directory before it
                is yielded. Returning False prunes the directory's subtree.

        Yields:
            WalkEntry for each directory, parents before children.
        """
        self.issues = []

        if self._min_depth <= 0:
            yield WalkEntry(path=self._root, relative_path="", depth=0)

        try:
            children = self._read_children(self._root)
        except OSError as e:
            self._record(self._root, e)
            return
        stack: list[_Frame] = [_Frame(relative_path="", depth=0, children=children)]

        while stack:
            frame = stack[-1]
            if not frame.children:
                stack.pop()
                continue

            child = frame.children.pop()
            try:
                if not self._is_cgroup_dir(child):
                    continue
            except OSError as e:
                # Listed with its parent, removed before it was reached
                self._record(child, e)
                continue

            relative = f"{frame.relative_path}/{child.name}" if frame.relative_path else child.name
            entry = WalkEntry(path=child, relative_path=relative, depth=frame.depth + 1)

            grandchildren: list[Path] = []
            if descend is None or descend(entry):
                try:
                    grandchildren = self._read_children(child)
                except OSError as e:
                    # Removed between the parent listing and now: not a cgroup anymore
                    if self._record(child, e) == IssueKind.VANISHED:
                        continue

            if entry.depth >= self._min_depth:
                yield entry

            if grandchildren:
                stack.append(
                    _Frame(relative_path=relative, depth=entry.depth, children=grandchildren)
                )

    def _read_children(self, directory: Path) -> list[Path]:
        """Read the entries of a directory in reverse visiting order.

        The returned list is consumed with ``pop()``, so the last element
        is visited first.

        Raises:
            OSError: If the directory cannot be listed.
        """
        children = list(directory.iterdir())
        if self._sort:
            children.sort(key=lambda p: p.name, reverse=True)
        else:
            children.reverse()
        return children

    def _is_cgroup_dir(self, path: Path) -> bool:
        """Check for a real directory without following symlinks.

        Raises:
            OSError: If the entry cannot be inspected, e.g. it vanished.
        """
        return stat.S_ISDIR(path.lstat().st_mode)

    def _record(self, directory: Path, error: OSError) -> IssueKind:
        """Log a listing failure and keep it as a TraversalIssue.

        Returns:
            The kind the failure was classified as.
        """
        if isinstance(error, PermissionError):
            kind = IssueKind.PERMISSION_DENIED
            logger.warning("Permission denied scanning cgroup directory: %s", directory)
        elif isinstance(error, (FileNotFoundError, NotADirectoryError)):
            kind = IssueKind.VANISHED
            logger.debug("Cgroup directory vanished during scan: %s", directory)
        else:
            kind = IssueKind.UNREADABLE
            logger.warning("Cannot read cgroup directory %s: %s", directory, error)

        self.issues.append(
            TraversalIssue(path=directory, kind=kind, message=error.strerror or str(error))
        )
        return kind
