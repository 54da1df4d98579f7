"""Block device I/O statistics from /proc/diskstats and /sys/block."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Callable

from procinfo.fs import DEFAULT_PROC_MOUNT_POINT, DEFAULT_SYS_MOUNT_POINT, FS

_PROC_DISKSTATS_PATH = "diskstats"
_SYS_BLOCK_PATH = "block"

_DIGITS_RE = re.compile(r"[0-9]+")

_IOSTAT_FIELDS = (
    "read_ios",
    "read_merges",
    "read_sectors",
    "read_ticks",
    "write_ios",
    "write_merges",
    "write_sectors",
    "write_ticks",
    "ios_in_progress",
    "ios_total_ticks",
    "weighted_io_ticks",
    "discard_ios",
    "discard_merges",
    "discard_sectors",
    "discard_ticks",
)


@dataclass
class IOStats:
    """Kernel I/O counters of one block device."""

    read_ios: int = 0
    read_merges: int = 0
    read_sectors: int = 0
    read_ticks: int = 0
    write_ios: int = 0
    write_merges: int = 0
    write_sectors: int = 0
    write_ticks: int = 0
    ios_in_progress: int = 0
    ios_total_ticks: int = 0
    weighted_io_ticks: int = 0
    discard_ios: int = 0
    discard_merges: int = 0
    discard_sectors: int = 0
    discard_ticks: int = 0


@dataclass
class Diskstats(IOStats):
    """One line of /proc/diskstats.

    ``io_stats_count`` is the number of fields read: 18 on kernels that
    report discard statistics, 14 on older ones.
    """

    major_number: int = 0
    minor_number: int = 0
    device_name: str = ""
    io_stats_count: int = 0


def _unsigned(bits: int) -> Callable[[str], int]:
    def convert(token: str) -> int:
        if not _DIGITS_RE.fullmatch(token):
            raise ValueError(f"expected integer, got {token!r}")
        value = int(token)
        if value >= 1 << bits:
            raise ValueError(f"value out of range: {token!r}")
        return value

    return convert


_UINT32 = _unsigned(32)
_UINT64 = _unsigned(64)

_DISKSTATS_CONVERTERS = (_UINT32, _UINT32, str) + (_UINT64,) * len(_IOSTAT_FIELDS)
_DISKSTATS_FIELDS = ("major_number", "minor_number", "device_name") + _IOSTAT_FIELDS


def _scan(text: str, converters) -> list:
    """Convert leading whitespace-separated tokens, stopping when input runs out."""
    return [convert(token) for token, convert in zip(text.split(), converters)]


class BlockDeviceFS:
    """The proc and sys filesystems as seen for block devices.

    Blank mount points fall back to /proc and /sys.
    """

    def __init__(
        self,
        proc_mount_point: str = DEFAULT_PROC_MOUNT_POINT,
        sys_mount_point: str = DEFAULT_SYS_MOUNT_POINT,
    ) -> None:
        if not proc_mount_point.strip():
            proc_mount_point = DEFAULT_PROC_MOUNT_POINT
        if not sys_mount_point.strip():
            sys_mount_point = DEFAULT_SYS_MOUNT_POINT
        self.proc = FS(proc_mount_point)
        self.sys = FS(sys_mount_point)

    def proc_diskstats(self) -> list[Diskstats]:
        """Read /proc/diskstats, one entry per device with 14 or 18 fields."""
        result: list[Diskstats] = []
        with open(self.proc.path(_PROC_DISKSTATS_PATH), encoding="utf-8") as handle:
            for line in handle:
                values = _scan(line, _DISKSTATS_CONVERTERS)
                if len(values) in (14, 18):
                    result.append(
                        Diskstats(
                            **dict(zip(_DISKSTATS_FIELDS, values)),
                            io_stats_count=len(values),
                        )
                    )
        return result

    def sys_block_devices(self) -> list[str]:
        """List the device directories under /sys/block, sorted by name."""
        with os.scandir(self.sys.path(_SYS_BLOCK_PATH)) as entries:
            return sorted(
                entry.name for entry in entries if entry.is_dir(follow_symlinks=False)
            )

    def sys_block_device_stat(self, device: str) -> tuple[IOStats, int]:
        """Read /sys/block/<device>/stat and return the stats and field count.

        The count is 15 when discard statistics are present and 11 otherwise.
        """
        with open(self.sys.path(_SYS_BLOCK_PATH, device, "stat"), encoding="utf-8") as handle:
            text = handle.read().strip()
        values = _scan(text, (_UINT64,) * len(_IOSTAT_FIELDS))
        return IOStats(**dict(zip(_IOSTAT_FIELDS, values))), len(values)