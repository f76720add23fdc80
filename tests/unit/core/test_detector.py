"""Tests for cgroup version detection."""

from pathlib import Path
from unittest.mock import patch

import pytest
from cgroups_explorer.core.detector import (
    CGROUP_MOUNT_PREFIX,
    default_root,
    detect_layout,
    detect_version,
    layout_from_mounts,
    parse_mounts,
    parse_subsystems,
)
from cgroups_explorer.core.errors import DetectionError
from cgroups_explorer.core.models import CgroupVersion


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "mounts"
    path.write_text(content)
    return path


class TestParseMounts:
    """Tests for mount table parsing."""

    def test_parse_fields(self, mock_v2_mounts: str) -> None:
        """Each line is split into source, mount point, type and options."""
        entries = parse_mounts(mock_v2_mounts)

        cgroup = next(e for e in entries if e.fs_type == "cgroup2")
        assert cgroup.source == "cgroup2"
        assert cgroup.mount_point == CGROUP_MOUNT_PREFIX
        assert "nsdelegate" in cgroup.options

    def test_octal_escapes_decoded(self) -> None:
        """Spaces escaped as \\040 are decoded in mount points."""
        entries = parse_mounts("cgroup2 /mnt/my\\040cgroup cgroup2 rw 0 0")

        assert entries[0].mount_point == Path("/mnt/my cgroup")

    def test_malformed_lines_skipped(self) -> None:
        """Lines with too few fields are ignored."""
        entries = parse_mounts("garbage\n\ncgroup2 /sys/fs/cgroup cgroup2 rw 0 0")

        assert len(entries) == 1


class TestLayoutFromMounts:
    """Tests for the v1/v2 decision."""

    def test_unified_v2(self, mock_v2_mounts: str) -> None:
        """A cgroup2 mount at /sys/fs/cgroup is v2."""
        layout = layout_from_mounts(parse_mounts(mock_v2_mounts))

        assert layout.version == CgroupVersion.V2
        assert layout.root == CGROUP_MOUNT_PREFIX
        assert layout.controllers == {}

    def test_legacy_v1(self, mock_v1_mounts: str) -> None:
        """Per-controller cgroup mounts are v1 rooted at the memory controller."""
        layout = layout_from_mounts(parse_mounts(mock_v1_mounts))

        assert layout.version == CgroupVersion.V1
        assert layout.root == Path("/sys/fs/cgroup/memory")
        assert layout.controllers["cpu"] == Path("/sys/fs/cgroup/cpu,cpuacct")
        assert layout.controllers["cpuacct"] == Path("/sys/fs/cgroup/cpu,cpuacct")
        assert layout.controllers["pids"] == Path("/sys/fs/cgroup/pids")

    def test_named_hierarchy_is_not_a_controller(self, mock_v1_mounts: str) -> None:
        """name=systemd and generic flags are not reported as controllers."""
        layout = layout_from_mounts(parse_mounts(mock_v1_mounts))

        assert "systemd" not in layout.controllers
        assert "xattr" not in layout.controllers
        assert "rw" not in layout.controllers

    def test_hybrid_is_v1(self, mock_hybrid_mounts: str) -> None:
        """v1 controllers plus cgroup2 at /unified detect as v1."""
        layout = layout_from_mounts(parse_mounts(mock_hybrid_mounts))

        assert layout.version == CgroupVersion.V1
        assert layout.root == Path("/sys/fs/cgroup/cpu,cpuacct")

    def test_v1_without_preferred_controller(self) -> None:
        """Without a preferred controller the first mount becomes the root."""
        content = "cgroup /sys/fs/cgroup/blkio cgroup rw,nosuid,blkio 0 0"

        layout = layout_from_mounts(parse_mounts(content))

        assert layout.root == Path("/sys/fs/cgroup/blkio")

    def test_unconventional_cgroup2_mount(self) -> None:
        """A lone cgroup2 mount elsewhere is still v2."""
        content = "none /mnt/cgroup2 cgroup2 rw,relatime 0 0"

        layout = layout_from_mounts(parse_mounts(content))

        assert layout.version == CgroupVersion.V2
        assert layout.root == Path("/mnt/cgroup2")

    def test_no_cgroup_mounts(self, mock_no_cgroup_mounts: str) -> None:
        """No cgroup filesystem raises DetectionError."""
        with pytest.raises(DetectionError, match="No cgroup"):
            layout_from_mounts(parse_mounts(mock_no_cgroup_mounts))

    def test_mount_flags_are_not_controllers(self, mock_selinux_v1_mounts: str) -> None:
        """seclabel and other kernel mount flags never become controllers."""
        layout = layout_from_mounts(parse_mounts(mock_selinux_v1_mounts))

        assert layout.controllers == {
            "blkio": Path("/sys/fs/cgroup/blkio"),
            "cpuset": Path("/sys/fs/cgroup/cpuset"),
        }
        assert layout.root == Path("/sys/fs/cgroup/blkio")

    def test_named_only_v1_is_not_detected(self) -> None:
        """A labeled named hierarchy alone holds no controllers."""
        content = "cgroup /sys/fs/cgroup/systemd cgroup rw,seclabel,nsdelegate,name=systemd 0 0"

        with pytest.raises(DetectionError):
            layout_from_mounts(parse_mounts(content))

    def test_kernel_subsystems_extend_known_controllers(self) -> None:
        """Controllers listed by the kernel are recognized too."""
        content = "cgroup /sys/fs/cgroup/ioprio cgroup rw,seclabel,ioprio 0 0"

        layout = layout_from_mounts(parse_mounts(content), {"ioprio"})

        assert layout.controllers == {"ioprio": Path("/sys/fs/cgroup/ioprio")}


class TestDetectVersion:
    """Tests for reading the mount table from disk."""

    def test_detect_v2(self, tmp_path: Path, mock_v2_mounts: str) -> None:
        """detect_version reads the given mount table."""
        assert detect_version(_write(tmp_path, mock_v2_mounts)) == CgroupVersion.V2

    def test_detect_v1(self, tmp_path: Path, mock_v1_mounts: str) -> None:
        """v1 layouts are detected from file content."""
        assert detect_version(_write(tmp_path, mock_v1_mounts)) == CgroupVersion.V1

    def test_detection_is_deterministic(self, tmp_path: Path, mock_v1_mounts: str) -> None:
        """Repeated detection on an unchanged layout gives the same answer."""
        mounts = _write(tmp_path, mock_v1_mounts)

        results = {detect_version(mounts) for _ in range(3)}

        assert results == {CgroupVersion.V1}

    def test_missing_mount_table(self, tmp_path: Path) -> None:
        """A missing mount table raises DetectionError."""
        with pytest.raises(DetectionError, match="Cannot read mount table"):
            detect_layout(tmp_path / "nope")

    def test_unreadable_mount_table(self, tmp_path: Path, mock_v2_mounts: str) -> None:
        """Permission errors are reported as DetectionError."""
        mounts = _write(tmp_path, mock_v2_mounts)

        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            with pytest.raises(DetectionError, match="Permission denied"):
                detect_layout(mounts)

    def test_empty_mount_table(self, tmp_path: Path) -> None:
        """An empty mount table holds no layout."""
        with pytest.raises(DetectionError):
            detect_version(_write(tmp_path, ""))

    def test_subsystem_table_is_read(self, tmp_path: Path, mock_subsystems: str) -> None:
        """Controllers from the kernel's subsystem table are recognized."""
        mounts = _write(tmp_path, "cgroup /sys/fs/cgroup/ioprio cgroup rw,ioprio 0 0")
        subsystems = tmp_path / "cgroups"
        subsystems.write_text(mock_subsystems)

        layout = detect_layout(mounts, subsystems)

        assert layout.controllers == {"ioprio": Path("/sys/fs/cgroup/ioprio")}

    def test_missing_subsystem_table(self, tmp_path: Path, mock_v1_mounts: str) -> None:
        """Without a subsystem table the known controllers still apply."""
        layout = detect_layout(_write(tmp_path, mock_v1_mounts), tmp_path / "nope")

        assert layout.root == Path("/sys/fs/cgroup/memory")


class TestParseSubsystems:
    """Tests for /proc/cgroups parsing."""

    def test_names_without_header(self, mock_subsystems: str) -> None:
        """The header line is skipped and every controller name kept."""
        assert parse_subsystems(mock_subsystems) == {"cpuset", "blkio", "memory", "ioprio"}

    def test_blank_lines_ignored(self) -> None:
        """Empty content yields no controllers."""
        assert parse_subsystems("\n\n") == set()


class TestDefaultRoot:
    """Tests for conventional roots of explicit versions."""

    def test_v2_default_root(self) -> None:
        """v2 uses the unified mount."""
        assert default_root(CgroupVersion.V2) == Path("/sys/fs/cgroup")

    def test_v1_default_root(self) -> None:
        """v1 uses the memory controller mount."""
        assert default_root(CgroupVersion.V1) == Path("/sys/fs/cgroup/memory")
