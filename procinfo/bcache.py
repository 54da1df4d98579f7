"""Statistics of the Linux block cache (bcache) read from /sys/fs/bcache."""

from __future__ import annotations

import fnmatch
import math
import os
from dataclasses import dataclass, field

from procinfo.fs import DEFAULT_SYS_MOUNT_POINT, FS
from procinfo.util import parse_uint64s

_MULTIPLIERS = {
    ord("k"): 1 << 10,
    ord("M"): 1 << 20,
    ord("G"): 1 << 30,
    ord("T"): 1 << 40,
    ord("P"): 1 << 50,
    ord("E"): 1 << 60,
    ord("Z"): 1 << 70,
    ord("Y"): 1 << 80,
}

_PERIOD_FILES = (
    "bypassed",
    "cache_bypass_hits",
    "cache_bypass_misses",
    "cache_hits",
    "cache_miss_collisions",
    "cache_misses",
    "cache_readaheads",
)


@dataclass
class PeriodStats:
    """Counters for a time period (five minutes or total)."""

    bypassed: int = 0
    cache_bypass_hits: int = 0
    cache_bypass_misses: int = 0
    cache_hits: int = 0
    cache_miss_collisions: int = 0
    cache_misses: int = 0
    cache_readaheads: int = 0


@dataclass
class InternalStats:
    """Internal bcache statistics."""

    active_journal_entries: int = 0
    btree_nodes: int = 0
    btree_read_average_duration_nano_seconds: int = 0
    cache_read_races: int = 0


@dataclass
class PriorityStats:
    """Values from the priority_stats file."""

    unused_percent: int = 0
    metadata_percent: int = 0


@dataclass
class BcacheStats:
    """Statistics tied to one bcache ID."""

    average_key_size: int = 0
    btree_cache_size: int = 0
    cache_available_percent: int = 0
    congested: int = 0
    root_usage_percent: int = 0
    tree_depth: int = 0
    internal: InternalStats = field(default_factory=InternalStats)
    five_min: PeriodStats = field(default_factory=PeriodStats)
    total: PeriodStats = field(default_factory=PeriodStats)


@dataclass
class BdevStats:
    """Statistics of one backing device."""

    name: str = ""
    dirty_data: int = 0
    five_min: PeriodStats = field(default_factory=PeriodStats)
    total: PeriodStats = field(default_factory=PeriodStats)


@dataclass
class CacheStats:
    """Statistics of one cache device."""

    name: str = ""
    io_errors: int = 0
    metadata_written: int = 0
    written: int = 0
    priority: PriorityStats = field(default_factory=PriorityStats)


@dataclass
class Stats:
    """Runtime statistics of one bcache."""

    name: str = ""
    bcache: BcacheStats = field(default_factory=BcacheStats)
    bdevs: list[BdevStats] = field(default_factory=list)
    caches: list[CacheStats] = field(default_factory=list)


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


def parse_pseudo_float(text: str) -> float:
    """Parse the fractional format written by bcache's human-readable printer.

    The digits after the point count 1/1024ths scaled by 100, so they are
    divided by 10.24 to restore a proper fraction.
    """
    parts = text.split(".")
    int_part = _parse_float(parts[0])
    if len(parts) == 1:
        return int_part
    frac_part = _parse_float(parts[1])
    return int_part + frac_part / 10.24


def dehumanize(hbytes) -> int:
    """Convert a human-readable size such as ``542k`` into an integer."""
    if isinstance(hbytes, str):
        hbytes = hbytes.encode()
    if not hbytes:
        raise ValueError("zero-length reply")

    last = hbytes[-1]
    if last > ord("9"):
        multiplier = _MULTIPLIERS.get(last, 0)
        mantissa = parse_pseudo_float(hbytes[:-1].decode(errors="replace"))
    else:
        multiplier = 1
        mantissa = _parse_float(hbytes.decode(errors="replace"))

    value = mantissa * multiplier
    if not math.isfinite(value) or value < 0 or value >= 2.0**64:
        raise ValueError(f"value out of range: {hbytes!r}")
    return int(value)


def parse_priority_stats(line: str, stats: PriorityStats) -> None:
    """Update ``stats`` from one line of a priority_stats file."""
    if line.startswith("Unused:"):
        attribute = "unused_percent"
    elif line.startswith("Metadata:"):
        attribute = "metadata_percent"
    else:
        return
    raw = line.split()[-1].removesuffix("%")
    setattr(stats, attribute, parse_uint64s([raw])[0])


def _glob(directory: str, pattern: str) -> list[str]:
    try:
        names = os.listdir(directory)
    except OSError:
        return []
    return sorted(
        os.path.join(directory, name)
        for name in names
        if fnmatch.fnmatchcase(name, pattern)
    )


def _read_value(directory: str, file_name: str) -> int:
    path = os.path.join(directory, file_name)
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise OSError(exc.errno, f"failed to read: {path}") from exc
    # Drop the trailing newline.
    return dehumanize(data[:-1])


def _read_period(directory: str) -> PeriodStats:
    return PeriodStats(**{name: _read_value(directory, name) for name in _PERIOD_FILES})


def _read_priority_stats(directory: str) -> PriorityStats:
    path = os.path.join(directory, "priority_stats")
    result = PriorityStats()
    try:
        handle = open(path, encoding="utf-8")
    except OSError as exc:
        raise OSError(exc.errno, f"failed to read: {path}") from exc
    with handle:
        for line in handle:
            try:
                parse_priority_stats(line.rstrip("\r\n"), result)
            except ValueError as exc:
                raise ValueError(f"failed to parse: {path} ({exc})") from exc
    return result


def get_stats(uuid_path: str) -> Stats:
    """Collect the statistics of the bcache whose sysfs directory is ``uuid_path``."""
    stats = Stats()
    bcache = stats.bcache

    bcache.average_key_size = _read_value(uuid_path, "average_key_size")
    bcache.btree_cache_size = _read_value(uuid_path, "btree_cache_size")
    bcache.cache_available_percent = _read_value(uuid_path, "cache_available_percent")
    bcache.congested = _read_value(uuid_path, "congested")
    bcache.root_usage_percent = _read_value(uuid_path, "root_usage_percent")
    bcache.tree_depth = _read_value(uuid_path, "tree_depth")

    internal_dir = os.path.join(uuid_path, "internal")
    bcache.internal = InternalStats(
        active_journal_entries=_read_value(internal_dir, "active_journal_entries"),
        btree_nodes=_read_value(internal_dir, "btree_nodes"),
        btree_read_average_duration_nano_seconds=_read_value(
            internal_dir, "btree_read_average_duration_us"
        ),
        cache_read_races=_read_value(internal_dir, "cache_read_races"),
    )

    bcache.five_min = _read_period(os.path.join(uuid_path, "stats_five_minute"))
    total_dir = os.path.join(uuid_path, "stats_total")
    bcache.total = _read_period(total_dir)

    for bdev_dir in _glob(uuid_path, "bdev[0-9]*"):
        name = os.path.basename(bdev_dir)
        stats.bdevs.append(
            BdevStats(
                name=name,
                dirty_data=_read_value(bdev_dir, "dirty_data"),
                five_min=_read_period(os.path.join(bdev_dir, "stats_five_minute")),
                # Backing device totals are taken from the bcache's own
                # stats_total directory.
                total=_read_period(total_dir),
            )
        )

    for cache_dir in _glob(uuid_path, "cache[0-9]*"):
        stats.caches.append(
            CacheStats(
                name=os.path.basename(cache_dir),
                io_errors=_read_value(cache_dir, "io_errors"),
                metadata_written=_read_value(cache_dir, "metadata_written"),
                written=_read_value(cache_dir, "written"),
                priority=_read_priority_stats(cache_dir),
            )
        )

    return stats


class BcacheFS:
    """The sys filesystem as seen for bcache; a blank mount point means /sys."""

    def __init__(self, mount_point: str = DEFAULT_SYS_MOUNT_POINT) -> None:
        if not mount_point.strip():
            mount_point = DEFAULT_SYS_MOUNT_POINT
        self.sys = FS(mount_point)

    def stats(self) -> list[Stats]:
        """Return the statistics of every bcache, named after its UUID directory."""
        result = []
        for uuid_path in _glob(self.sys.path("fs/bcache"), "*-*"):
            stats = get_stats(uuid_path)
            stats.name = os.path.basename(uuid_path)
            result.append(stats)
        return result