"""Cgroup version detection from the host mount table.

The unified (v2) hierarchy is recognized by a ``cgroup2`` mount at the
conventional cgroup prefix. The legacy (v1) layout is recognized by one
``cgroup`` mount per controller. Detection is a pure read and performs no
caching; callers keep the returned layout for as long as they need it.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from cgroups_explorer.core.errors import DetectionError
from cgroups_explorer.core.models import CgroupVersion

logger = logging.getLogger(__name__)

CGROUP_MOUNT_PREFIX = Path("/sys/fs/cgroup")
DEFAULT_MOUNTS_PATH = Path("/proc/self/mounts")
DEFAULT_SUBSYSTEMS_PATH = Path("/proc/cgroups")

# Preferred v1 controller whose mount becomes the default root.
PREFERRED_V1_CONTROLLERS: tuple[str, ...] = ("memory", "cpu", "cpuacct", "pids")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# v1 controllers known to the kernel; /proc/cgroups may add more.
KNOWN_V1_CONTROLLERS: frozenset[str] = frozenset(
    {
        "blkio",
        "cpu",
        "cpuacct",
        "cpuset",
        "debug",
        "devices",
        "freezer",
        "hugetlb",
        "memory",
        "misc",
        "net_cls",
        "net_prio",
        "perf_event",
        "pids",
        "rdma",
    }
)


@dataclass(frozen=True, slots=True)
class MountEntry:
    """A single line of the mount table.

    Attributes:
        source: Mounted device or pseudo-filesystem name.
        mount_point: Where the filesystem is mounted.
        fs_type: Filesystem type (e.g., "cgroup", "cgroup2").
        options: Mount options in declaration order.
    """

    source: str
    mount_point: Path
    fs_type: str
    options: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class MountLayout:
    """Result of version detection.

    Attributes:
        version: Detected cgroup version.
        root: Default mount root to traverse.
        controllers: For v1, controller name to its mount point.
    """

    version: CgroupVersion
    root: Path
    controllers: dict[str, Path] = field(default_factory=lambda: {})


def _unescape(value: str) -> str:
    """Decode the octal escapes used by the kernel in mount fields."""
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)


def parse_mounts(content: str) -> list[MountEntry]:
    """Parse mount table content in /proc/mounts format.

    Malformed lines are skipped.

    Args:
        content: Raw mount table text.

    Returns:
        List of parsed mount entries.
    """
    entries: list[MountEntry] = []
    for line in content.splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue
        entries.append(
            MountEntry(
                source=_unescape(parts[0]),
                mount_point=Path(_unescape(parts[1])),
                fs_type=parts[2],
                options=tuple(parts[3].split(",")),
            )
        )
    return entries


def parse_subsystems(content: str) -> set[str]:
    """Parse controller names from content in /proc/cgroups format.

    Args:
        content: Raw subsystem table text.

    Returns:
        Names of the controllers the kernel provides.
    """
    names: set[str] = set()
    for line in content.splitlines():
        if not line.strip() or line.startswith("#"):
            continue
        names.add(line.split()[0])
    return names


def _read_subsystems(subsystems_path: Path) -> set[str]:
    """Read the kernel's controller names, or nothing if unavailable."""
    try:
        return parse_subsystems(subsystems_path.read_text())
    except OSError as e:
        logger.debug("Cannot read subsystem table %s: %s", subsystems_path, e)
        return set()


def _v1_controllers(entry: MountEntry, known: frozenset[str]) -> list[str]:
    """Extract controller names from a v1 mount's options.

    Only options naming a known controller count. Named hierarchies
    (``name=systemd``) and mount flags such as ``seclabel`` are not
    controllers.
    """
    return [opt for opt in entry.options if opt in known]


def layout_from_mounts(
    entries: list[MountEntry],
    subsystems: Iterable[str] = (),
) -> MountLayout:
    """Decide the cgroup layout from parsed mount entries.

    Args:
        entries: Parsed mount table.
        subsystems: Controller names reported by the kernel, in addition
            to KNOWN_V1_CONTROLLERS.

    Returns:
        The detected MountLayout.

    Raises:
        DetectionError: If neither a v2 nor a v1 layout is present.
    """
    known = KNOWN_V1_CONTROLLERS | frozenset(subsystems)
    v2_mounts = [e for e in entries if e.fs_type == "cgroup2"]
    v1_mounts = [e for e in entries if e.fs_type == "cgroup"]

    for entry in v2_mounts:
        if entry.mount_point == CGROUP_MOUNT_PREFIX:
            return MountLayout(version=CgroupVersion.V2, root=entry.mount_point)

    controllers: dict[str, Path] = {}
    for entry in v1_mounts:
        for controller in _v1_controllers(entry, known):
            controllers.setdefault(controller, entry.mount_point)

    if controllers:
        root = next(
            (controllers[c] for c in PREFERRED_V1_CONTROLLERS if c in controllers),
            next(iter(controllers.values())),
        )
        return MountLayout(version=CgroupVersion.V1, root=root, controllers=controllers)

    # cgroup2 mounted somewhere unconventional and no v1 controllers at all
    if v2_mounts:
        return MountLayout(version=CgroupVersion.V2, root=v2_mounts[0].mount_point)

    msg = "No cgroup v1 or v2 mounts found"
    raise DetectionError(msg)


def detect_layout(
    mounts_path: Path = DEFAULT_MOUNTS_PATH,
    subsystems_path: Path = DEFAULT_SUBSYSTEMS_PATH,
) -> MountLayout:
    """Detect the host cgroup layout by reading the mount table.

    Args:
        mounts_path: Mount table to read. Defaults to /proc/self/mounts.
        subsystems_path: Kernel controller table. Defaults to /proc/cgroups;
            when unreadable only KNOWN_V1_CONTROLLERS are recognized.

    Returns:
        The detected MountLayout.

    Raises:
        DetectionError: If the mount table is unreadable or holds no
            recognizable cgroup layout.
    """
    try:
        content = mounts_path.read_text()
    except PermissionError as e:
        msg = f"Cannot read mount table {mounts_path}: Permission denied"
        raise DetectionError(msg) from e
    except OSError as e:
        msg = f"Cannot read mount table {mounts_path}: {e}"
        raise DetectionError(msg) from e

    layout = layout_from_mounts(parse_mounts(content), _read_subsystems(subsystems_path))
    logger.debug("Detected cgroup %s hierarchy at %s", layout.version.value, layout.root)
    return layout


def detect_version(mounts_path: Path = DEFAULT_MOUNTS_PATH) -> CgroupVersion:
    """Detect the cgroup version of the host.

    Args:
        mounts_path: Mount table to read. Defaults to /proc/self/mounts.

    Returns:
        The detected CgroupVersion.

    Raises:
        DetectionError: If no layout can be detected.
    """
    return detect_layout(mounts_path).version


def default_root(version: CgroupVersion) -> Path:
    """Conventional mount root for a version, without inspecting the host."""
    if version == CgroupVersion.V2:
        return CGROUP_MOUNT_PREFIX
    return CGROUP_MOUNT_PREFIX / PREFERRED_V1_CONTROLLERS[0]
