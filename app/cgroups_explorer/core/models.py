"""Domain models for discovered cgroups and traversal diagnostics.

This module defines the value types produced by a scan: the cgroup
version, the discovered Cgroup node, and the non-fatal issues recorded
when part of the hierarchy cannot be read.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any


class CgroupVersion(str, Enum):
    """On-disk cgroup layout.

    Attributes:
        V1: One mount point per controller (legacy hierarchy).
        V2: Single unified hierarchy.
    """

    V1 = "v1"
    V2 = "v2"


class IssueKind(str, Enum):
    """Reason a directory could not be traversed.

    Attributes:
        PERMISSION_DENIED: The directory listing was refused.
        VANISHED: The directory was removed between listing and reading.
        UNREADABLE: Any other I/O failure while listing the directory.
    """

    PERMISSION_DENIED = "permission_denied"
    VANISHED = "vanished"
    UNREADABLE = "unreadable"


@dataclass(frozen=True, slots=True)
class TraversalIssue:
    """A non-fatal condition encountered during a scan.

    The affected subtree is skipped; the scan itself continues.

    Attributes:
        path: Absolute path of the directory that could not be read.
        kind: Classification of the failure.
        message: Description taken from the underlying OS error.
    """

    path: Path
    kind: IssueKind
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"path": str(self.path), "kind": self.kind.value, "message": self.message}


@dataclass(frozen=True, slots=True)
class Cgroup:
    """A cgroup discovered during traversal.

    A Cgroup is a snapshot value: it owns no filesystem resources and the
    directory it names may have been removed by the kernel since the scan.

    Attributes:
        relative_path: Forward-slash path relative to the mount root.
        path: Absolute filesystem path of the cgroup directory.
        version: Cgroup version of the hierarchy it was found in.
        root: Mount root the scan started from.
    """

    relative_path: str
    path: Path
    version: CgroupVersion
    root: Path

    def __post_init__(self) -> None:
        """Validate the relative path after initialization."""
        if not self.relative_path:
            msg = "Relative path cannot be empty"
            raise ValueError(msg)
        parts = PurePosixPath(self.relative_path).parts
        if self.relative_path.startswith("/") or ".." in parts:
            msg = f"Relative path must stay under the mount root, got {self.relative_path!r}"
            raise ValueError(msg)

    @property
    def name(self) -> str:
        """Last segment of the cgroup path."""
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def depth(self) -> int:
        """Number of segments below the mount root."""
        return self.relative_path.count("/") + 1

    def exists(self) -> bool:
        """Check whether the cgroup directory is still present."""
        return self.path.is_dir()

    def controller_path(self, controller: str) -> Path:
        """Directory holding the control files of a controller for this cgroup.

        On v2 all controllers share the cgroup directory. On v1 each
        controller has its own mount next to the scanned one, so the same
        relative path is resolved under ``<root parent>/<controller>``.

        Args:
            controller: Controller name (e.g., "memory", "cpu").

        Returns:
            Absolute directory path for the controller files.
        """
        if self.version == CgroupVersion.V2:
            return self.path
        return self.root.parent / controller / self.relative_path

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "relative_path": self.relative_path,
            "path": str(self.path),
            "version": self.version.value,
            "root": str(self.root),
        }
