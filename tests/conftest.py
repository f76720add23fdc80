"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

# Relative cgroup directories of the fake hierarchy, parents first.
CGROUP_DIRS: tuple[str, ...] = (
    "init.scope",
    "system.slice",
    "system.slice/cron.service",
    "system.slice/ssh.service",
    "user.slice",
    "user.slice/user-1000.slice",
    "user.slice/user-1000.slice/session-1.scope",
)

# Control files every cgroup directory carries.
CONTROL_FILES: tuple[str, ...] = ("cgroup.procs", "memory.current")


def make_tree(root: Path, dirs: tuple[str, ...] = CGROUP_DIRS) -> Path:
    """Create a fake cgroup hierarchy under root and return root."""
    root.mkdir(parents=True, exist_ok=True)
    for name in CONTROL_FILES:
        (root / name).write_text("")
    for rel in dirs:
        directory = root / rel
        directory.mkdir(parents=True, exist_ok=True)
        for name in CONTROL_FILES:
            (directory / name).write_text("0\n")
    return root


@pytest.fixture
def tree_factory() -> Callable[..., Path]:
    """Factory building fake cgroup hierarchies: tree_factory(root, dirs)."""
    return make_tree


@pytest.fixture
def cgroup_root(tmp_path: Path) -> Path:
    """Fake cgroup v2 hierarchy with user and system slices."""
    return make_tree(tmp_path / "cgroup")


@pytest.fixture
def mock_v2_mounts() -> str:
    """Mount table of a unified (cgroup v2 only) host."""
    return """sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0
cgroup2 /sys/fs/cgroup cgroup2 rw,nosuid,nodev,noexec,relatime,nsdelegate 0 0
/dev/nvme0n1p2 / ext4 rw,relatime 0 0"""


@pytest.fixture
def mock_v1_mounts() -> str:
    """Mount table of a legacy (cgroup v1) host."""
    return """sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
tmpfs /sys/fs/cgroup tmpfs ro,nosuid,nodev,noexec,mode=755 0 0
cgroup /sys/fs/cgroup/systemd cgroup rw,nosuid,nodev,noexec,relatime,xattr,name=systemd 0 0
cgroup /sys/fs/cgroup/cpu,cpuacct cgroup rw,nosuid,nodev,noexec,relatime,cpu,cpuacct 0 0
cgroup /sys/fs/cgroup/memory cgroup rw,nosuid,nodev,noexec,relatime,memory 0 0
cgroup /sys/fs/cgroup/pids cgroup rw,nosuid,nodev,noexec,relatime,pids 0 0"""


@pytest.fixture
def mock_hybrid_mounts() -> str:
    """Mount table of a hybrid host (v1 controllers, v2 at /unified)."""
    return """tmpfs /sys/fs/cgroup tmpfs ro,nosuid,nodev,noexec,mode=755 0 0
cgroup2 /sys/fs/cgroup/unified cgroup2 rw,nosuid,nodev,noexec,relatime,nsdelegate 0 0
cgroup /sys/fs/cgroup/systemd cgroup rw,nosuid,nodev,noexec,relatime,xattr,name=systemd 0 0
cgroup /sys/fs/cgroup/cpu,cpuacct cgroup rw,nosuid,nodev,noexec,relatime,cpu,cpuacct 0 0"""


@pytest.fixture
def mock_no_cgroup_mounts() -> str:
    """Mount table without any cgroup filesystem."""
    return """sysfs /sys sysfs rw,nosuid,nodev,noexec,relatime 0 0
proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0"""


@pytest.fixture
def mounts_file(tmp_path: Path, mock_v2_mounts: str) -> Path:
    """Mount table file describing a v2 host."""
    path = tmp_path / "mounts"
    path.write_text(mock_v2_mounts)
    return path


@pytest.fixture
def mock_selinux_v1_mounts() -> str:
    """Mount table of a legacy host with SELinux labels on every mount."""
    return """tmpfs /sys/fs/cgroup tmpfs ro,seclabel,nosuid,nodev,noexec,mode=755 0 0
cgroup /sys/fs/cgroup/systemd cgroup rw,seclabel,nosuid,nodev,noexec,relatime,xattr,name=systemd 0 0
cgroup /sys/fs/cgroup/blkio cgroup rw,seclabel,nosuid,nodev,noexec,relatime,blkio 0 0
cgroup /sys/fs/cgroup/cpuset cgroup rw,seclabel,nosuid,nodev,noexec,relatime,cpuset,cpuset_v2_mode 0 0"""


@pytest.fixture
def mock_subsystems() -> str:
    """Kernel controller table in /proc/cgroups format."""
    return """#subsys_name\thierarchy\tnum_cgroups\tenabled
cpuset\t4\t1\t1
blkio\t3\t1\t1
memory\t0\t1\t1
ioprio\t5\t1\t1"""
