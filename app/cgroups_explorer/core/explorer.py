"""Explorer facade: configure once, scan many times.

An ExplorerBuilder accumulates the cgroup version, mount root and
include/exclude patterns. ``build()`` validates everything and freezes it
into an immutable Explorer. Each ``iter_cgroups()`` call is an independent,
lazy scan of the hierarchy.

Exclusion is hereditary: once a cgroup is excluded, none of its
descendants is reported. With pruning enabled (the default) the walker
does not descend into excluded cgroups at all; without it the descendants
are still visited and rejected individually. Both settings report the
same cgroups.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

from cgroups_explorer.core.detector import DEFAULT_MOUNTS_PATH, default_root, detect_layout
from cgroups_explorer.core.errors import BuildError, PatternError
from cgroups_explorer.core.models import Cgroup, CgroupVersion, TraversalIssue
from cgroups_explorer.core.patterns import PatternSet, PatternSyntax
from cgroups_explorer.core.walker import HierarchyWalker, WalkEntry

if TYPE_CHECKING:
    from cgroups_explorer.core.config import ExplorerConfig

logger = logging.getLogger(__name__)


def _as_list(patterns: str | Iterable[str]) -> list[str]:
    """Accept a single pattern or an iterable of patterns."""
    if isinstance(patterns, str):
        return [patterns]
    return list(patterns)


class ExplorerBuilder:
    """Mutable configuration accumulated before building an Explorer.

    Every setter returns the builder so calls can be chained. The order of
    ``include``/``exclude`` calls only affects the order patterns are
    reported in, never which cgroups match.

    Args:
        version: Cgroup version the hierarchy uses.
        root: Default mount root for that version.
    """

    def __init__(self, version: CgroupVersion, root: Path) -> None:
        self._version = version
        self._root = root
        self._include: list[str] = []
        self._exclude: list[str] = []
        self._syntax = PatternSyntax.GLOB
        self._prune_excluded = True
        self._sort = True

    @classmethod
    def from_config(
        cls,
        config: "ExplorerConfig",
        mounts_path: Path = DEFAULT_MOUNTS_PATH,
    ) -> "ExplorerBuilder":
        """Create a builder from a loaded configuration file.

        Args:
            config: Validated configuration.
            mounts_path: Mount table used when the version is "auto".

        Returns:
            Builder populated with every configured setting.

        Raises:
            DetectionError: If the version is "auto" and detection fails.
        """
        if config.version == "auto":
            builder = Explorer.detect_version(mounts_path)
        else:
            builder = Explorer.with_version(CgroupVersion(config.version))

        builder.include(config.include).exclude(config.exclude)
        builder.syntax(PatternSyntax(config.syntax))
        builder.prune_excluded(config.prune_excluded).sort(config.sort)
        if config.root is not None:
            builder.root(config.root)
        return builder

    @property
    def version(self) -> CgroupVersion:
        """Cgroup version the Explorer will be built for."""
        return self._version

    def include(self, patterns: str | Iterable[str]) -> "ExplorerBuilder":
        """Add include patterns. With no includes, every cgroup is included."""
        self._include.extend(_as_list(patterns))
        return self

    def exclude(self, patterns: str | Iterable[str]) -> "ExplorerBuilder":
        """Add exclude patterns. Excludes take precedence over includes."""
        self._exclude.extend(_as_list(patterns))
        return self

    def root(self, path: str | Path) -> "ExplorerBuilder":
        """Override the mount root the scan starts from."""
        self._root = Path(path)
        return self

    def syntax(self, syntax: PatternSyntax) -> "ExplorerBuilder":
        """Select how every pattern of this Explorer is interpreted."""
        self._syntax = syntax
        return self

    def prune_excluded(self, enabled: bool = True) -> "ExplorerBuilder":
        """Skip the subtrees of excluded cgroups instead of visiting them."""
        self._prune_excluded = enabled
        return self

    def sort(self, enabled: bool = True) -> "ExplorerBuilder":
        """Visit sibling cgroups in lexicographic order."""
        self._sort = enabled
        return self

    def build(self) -> "Explorer":
        """Validate the configuration and create an immutable Explorer.

        Returns:
            The configured Explorer.

        Raises:
            BuildError: Wrapping the first PatternError, or when the mount
                root is not an accessible directory.
        """
        try:
            patterns = PatternSet.compile(self._include, self._exclude, self._syntax)
        except PatternError as e:
            raise BuildError(str(e), cause=e) from e

        root = Path(os.path.abspath(self._root))
        if not root.is_dir():
            msg = f"Cgroup root is not a directory: {root}"
            error = FileNotFoundError(msg)
            raise BuildError(msg, cause=error) from error
        if not os.access(root, os.R_OK | os.X_OK):
            msg = f"Cgroup root is not readable: {root}"
            error = PermissionError(msg)
            raise BuildError(msg, cause=error) from error

        logger.debug(
            "Built cgroup %s explorer at %s (%d include, %d exclude)",
            self._version.value,
            root,
            len(patterns.includes),
            len(patterns.excludes),
        )
        return Explorer(
            version=self._version,
            root=root,
            patterns=patterns,
            prune_excluded=self._prune_excluded,
            sort=self._sort,
        )


class Explorer:
    """An interface to explore the cgroups of the host.

    Instances are created through ExplorerBuilder and never change. They
    hold no open resources, so they can be shared between threads; every
    scan is independent.

    Example:
        >>> explorer = Explorer.detect_version().include(["user.slice/*"]).build()
        >>> for cgroup in explorer.iter_cgroups():
        ...     print(cgroup.relative_path)
    """

    __slots__ = ("_patterns", "_prune_excluded", "_root", "_sort", "_version")

    def __init__(
        self,
        *,
        version: CgroupVersion,
        root: Path,
        patterns: PatternSet,
        prune_excluded: bool = True,
        sort: bool = True,
    ) -> None:
        self._version = version
        self._root = root
        self._patterns = patterns
        self._prune_excluded = prune_excluded
        self._sort = sort

    @staticmethod
    def detect_version(mounts_path: Path = DEFAULT_MOUNTS_PATH) -> ExplorerBuilder:
        """Start a builder for the cgroup version detected on the host.

        Raises:
            DetectionError: If no cgroup layout can be detected.
        """
        layout = detect_layout(mounts_path)
        return ExplorerBuilder(layout.version, layout.root)

    @staticmethod
    def with_version(version: CgroupVersion) -> ExplorerBuilder:
        """Start a builder for an explicit version, skipping detection."""
        return ExplorerBuilder(version, default_root(version))

    @staticmethod
    def v1() -> ExplorerBuilder:
        """Start a builder for cgroups v1."""
        return Explorer.with_version(CgroupVersion.V1)

    @staticmethod
    def v2() -> ExplorerBuilder:
        """Start a builder for cgroups v2."""
        return Explorer.with_version(CgroupVersion.V2)

    @property
    def version(self) -> CgroupVersion:
        """Cgroup version of the explored hierarchy."""
        return self._version

    @property
    def root(self) -> Path:
        """Mount root every scan starts from."""
        return self._root

    @property
    def patterns(self) -> PatternSet:
        """Compiled include/exclude patterns."""
        return self._patterns

    @property
    def syntax(self) -> PatternSyntax:
        """Syntax the patterns were compiled with."""
        return self._patterns.syntax

    @property
    def prunes_excluded(self) -> bool:
        """Whether excluded subtrees are skipped during traversal."""
        return self._prune_excluded

    @property
    def sorts(self) -> bool:
        """Whether sibling cgroups are visited in lexicographic order."""
        return self._sort

    def iter_cgroups(self) -> "CgroupsIterator":
        """Create a lazy iterator over the cgroups matching the patterns."""
        return CgroupsIterator(self)

    def __repr__(self) -> str:
        return (
            f"Explorer(version={self._version.value!r}, root={str(self._root)!r}, "
            f"include={[p.source for p in self._patterns.includes]!r}, "
            f"exclude={[p.source for p in self._patterns.excludes]!r})"
        )


class CgroupsIterator(Iterator[Cgroup]):
    """An iterator over cgroups in the system that match the patterns.

    Directories that could not be read during the scan are reported
    through ``issues``, which grows as the iteration proceeds.
    """

    def __init__(self, explorer: Explorer) -> None:
        self._explorer = explorer
        self._walker = HierarchyWalker(explorer.root, sort=explorer.sorts, min_depth=1)
        self._excluded: set[str] = set()
        descend = self._descend if explorer.prunes_excluded else None
        self._entries = self._walker.walk(descend)

    @property
    def issues(self) -> list[TraversalIssue]:
        """Non-fatal traversal issues recorded so far."""
        return list(self._walker.issues)

    def __iter__(self) -> "CgroupsIterator":
        return self

    def __next__(self) -> Cgroup:
        for entry in self._entries:
            if self._is_excluded(entry):
                continue
            if not self._explorer.patterns.is_included(entry.relative_path):
                continue
            return Cgroup(
                relative_path=entry.relative_path,
                path=entry.path,
                version=self._explorer.version,
                root=self._explorer.root,
            )
        raise StopIteration

    def _descend(self, entry: WalkEntry) -> bool:
        return not self._is_excluded(entry)

    def _is_excluded(self, entry: WalkEntry) -> bool:
        """Check the entry and its ancestors against the exclude patterns.

        Pre-order traversal guarantees every ancestor was checked first,
        so only the direct parent needs to be looked up.
        """
        relative = entry.relative_path
        if relative in self._excluded:
            return True
        parent = relative.rpartition("/")[0]
        if (parent and parent in self._excluded) or self._explorer.patterns.is_excluded(relative):
            self._excluded.add(relative)
            return True
        return False
