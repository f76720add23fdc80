"""cgroups-explorer - discover and filter Linux cgroup hierarchies.

Example:
    >>> from cgroups_explorer import Explorer
    >>> explorer = Explorer.detect_version().include(["user.slice/*"]).build()
    >>> for cgroup in explorer.iter_cgroups():
    ...     print(cgroup.relative_path)
"""

from cgroups_explorer.core.detector import detect_version
from cgroups_explorer.core.errors import (
    BuildError,
    CgroupsExplorerError,
    DetectionError,
    PatternError,
)
from cgroups_explorer.core.explorer import CgroupsIterator, Explorer, ExplorerBuilder
from cgroups_explorer.core.models import Cgroup, CgroupVersion, IssueKind, TraversalIssue
from cgroups_explorer.core.patterns import PatternSet, PatternSyntax

__version__ = "0.4.1"

__all__ = [
    "BuildError",
    "Cgroup",
    "CgroupVersion",
    "CgroupsExplorerError",
    "CgroupsIterator",
    "DetectionError",
    "Explorer",
    "ExplorerBuilder",
    "IssueKind",
    "PatternError",
    "PatternSet",
    "PatternSyntax",
    "TraversalIssue",
    "__version__",
    "detect_version",
]
