"""Parsing of per-process mount statistics from /proc/<pid>/mountstats."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Iterator

from procinfo.util import parse_uint64s

_DEVICE_ENTRY_LEN = 8

_FIELD_BYTES_LEN = 8
_FIELD_EVENTS_LEN = 27

_STAT_VERSION_10 = "1.0"
_STAT_VERSION_11 = "1.1"

_TRANSPORT_LENGTHS = {
    _STAT_VERSION_10: {"tcp": 10, "udp": 7},
    _STAT_VERSION_11: {"tcp": 13, "udp": 10},
}
_TRANSPORT_SLOTS = 13

_OPERATION_FIELDS = 9

_NFS_TYPES = ("nfs", "nfs4")
_STAT_VERSION_PREFIX = "statvers="

# Words expected at fixed positions of a "device ... mounted on ..." line.
_DEVICE_FORMAT = ((0, "device"), (2, "mounted"), (3, "on"), (5, "with"), (6, "fstype"))

_SECONDS_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


@dataclass
class NFSBytesStats:
    """Byte counters of reads and writes between an NFS client and server."""

    read: int = 0
    write: int = 0
    direct_read: int = 0
    direct_write: int = 0
    read_total: int = 0
    write_total: int = 0
    read_pages: int = 0
    write_pages: int = 0


@dataclass
class NFSEventsStats:
    """Counters of NFS event occurrences."""

    inode_revalidate: int = 0
    dnode_revalidate: int = 0
    data_invalidate: int = 0
    attribute_invalidate: int = 0
    vfs_open: int = 0
    vfs_lookup: int = 0
    vfs_access: int = 0
    vfs_update_page: int = 0
    vfs_read_page: int = 0
    vfs_read_pages: int = 0
    vfs_write_page: int = 0
    vfs_write_pages: int = 0
    vfs_getdents: int = 0
    vfs_setattr: int = 0
    vfs_flush: int = 0
    vfs_fsync: int = 0
    vfs_lock: int = 0
    vfs_file_release: int = 0
    congestion_wait: int = 0
    truncation: int = 0
    write_extension: int = 0
    silly_rename: int = 0
    short_read: int = 0
    short_write: int = 0
    jukebox_delay: int = 0
    pnfs_read: int = 0
    pnfs_write: int = 0


@dataclass
class NFSOperationStats:
    """Statistics for a single NFS operation."""

    operation: str = ""
    requests: int = 0
    transmissions: int = 0
    major_timeouts: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    cumulative_queue_milliseconds: int = 0
    cumulative_total_response_milliseconds: int = 0
    cumulative_total_request_milliseconds: int = 0


@dataclass
class NFSTransportStats:
    """Statistics of the RPC transport of an NFS mount.

    The last three counters are only reported by statistics version 1.1.
    """

    protocol: str = ""
    port: int = 0
    bind: int = 0
    connect: int = 0
    connect_idle_time: int = 0
    idle_time_seconds: int = 0
    sends: int = 0
    receives: int = 0
    bad_transaction_ids: int = 0
    cumulative_active_requests: int = 0
    cumulative_backlog: int = 0
    maximum_rpc_slots_used: int = 0
    cumulative_sending_queue: int = 0
    cumulative_pending_queue: int = 0


@dataclass
class MountStatsNFS:
    """Detailed statistics of an NFSv3 or NFSv4 mount."""

    stat_version: str = ""
    opts: dict[str, str] = field(default_factory=dict)
    age: timedelta = field(default_factory=timedelta)
    bytes: NFSBytesStats = field(default_factory=NFSBytesStats)
    events: NFSEventsStats = field(default_factory=NFSEventsStats)
    operations: list[NFSOperationStats] = field(default_factory=list)
    transport: NFSTransportStats = field(default_factory=NFSTransportStats)


@dataclass
class Mount:
    """A device mount; ``stats`` is set when the kernel reports statistics."""

    device: str
    mount: str
    type: str
    stats: MountStatsNFS | None = None


def _parse_mount(ss: list[str]) -> Mount:
    if len(ss) < _DEVICE_ENTRY_LEN:
        raise ValueError(f"invalid device entry: {ss}")
    for index, word in _DEVICE_FORMAT:
        if ss[index] != word:
            raise ValueError(f"invalid device entry: {ss}")
    return Mount(device=ss[1], mount=ss[4], type=ss[7])


def _parse_age(text: str) -> timedelta:
    if not _SECONDS_RE.fullmatch(text):
        raise ValueError(f"invalid duration: {text + 's'!r}")
    return timedelta(seconds=float(text))


def _parse_nfs_bytes_stats(ss: list[str]) -> NFSBytesStats:
    if len(ss) != _FIELD_BYTES_LEN:
        raise ValueError(f"invalid NFS bytes stats: {ss}")
    return NFSBytesStats(*parse_uint64s(ss))


def _parse_nfs_events_stats(ss: list[str]) -> NFSEventsStats:
    if len(ss) != _FIELD_EVENTS_LEN:
        raise ValueError(f"invalid NFS events stats: {ss}")
    return NFSEventsStats(*parse_uint64s(ss))


def _parse_nfs_transport_stats(ss: list[str], stat_version: str) -> NFSTransportStats:
    protocol, values = ss[0], ss[1:]

    lengths = _TRANSPORT_LENGTHS.get(stat_version)
    if lengths is None:
        raise ValueError(f"unrecognized NFS transport stats version: {stat_version!r}")
    expected = lengths.get(protocol)
    if expected is None:
        raise ValueError(
            f'invalid NFS protocol "{protocol}" in stats {stat_version} statement: {values}'
        )
    if len(values) != expected:
        raise ValueError(f"invalid NFS transport stats {stat_version} statement: {values}")

    numbers = parse_uint64s(values)
    numbers += [0] * (_TRANSPORT_SLOTS - len(numbers))

    # UDP has no connection count, connect idle time or idle time.
    if protocol == "udp":
        numbers = numbers[:2] + [0, 0, 0] + numbers[2:]

    return NFSTransportStats(protocol, *numbers[:_TRANSPORT_SLOTS])


def _parse_nfs_operation_stats(lines: Iterator[str]) -> list[NFSOperationStats]:
    operations: list[NFSOperationStats] = []
    for line in lines:
        ss = line.split()
        if not ss:
            # A blank line ends this device's statistics.
            break
        if len(ss) != _OPERATION_FIELDS:
            raise ValueError(f"invalid NFS per-operations stats: {ss}")
        name = ss[0].removesuffix(":")
        operations.append(NFSOperationStats(name, *parse_uint64s(ss[1:])))
    return operations


def _parse_mount_stats_nfs(lines: Iterator[str], stat_version: str) -> MountStatsNFS:
    stats = MountStatsNFS(stat_version=stat_version)

    for line in lines:
        ss = line.split()
        if not ss:
            break
        if len(ss) < 2:
            raise ValueError(f"not enough information for NFS stats: {ss}")

        key = ss[0]
        if key == "opts:":
            for opt in ss[1].split(","):
                pieces = opt.split("=")
                if len(pieces) == 2:
                    stats.opts[pieces[0]] = pieces[1]
                else:
                    stats.opts[opt] = ""
        elif key == "age:":
            stats.age = _parse_age(ss[1])
        elif key == "bytes:":
            stats.bytes = _parse_nfs_bytes_stats(ss[1:])
        elif key == "events:":
            stats.events = _parse_nfs_events_stats(ss[1:])
        elif key == "xprt:":
            if len(ss) < 3:
                raise ValueError(f"not enough information for NFS transport stats: {ss}")
            stats.transport = _parse_nfs_transport_stats(ss[1:], stat_version)
        elif key == "per-op":
            # Per-operation statistics come last, up to the next blank line.
            break

    stats.operations = _parse_nfs_operation_stats(lines)
    return stats


def parse_mount_stats(stream: Iterable[str] | str) -> list[Mount]:
    """Parse mountstats text, given as a string, a text stream or lines.

    Statistics are parsed for NFS mounts only; any other mount type that
    carries statistics is an error.
    """
    if isinstance(stream, str):
        stream = stream.splitlines()
    lines = iter(stream)
    mounts: list[Mount] = []

    for line in lines:
        ss = line.split()
        if not ss or ss[0] != "device":
            continue

        mount = _parse_mount(ss)
        if len(ss) > _DEVICE_ENTRY_LEN:
            if mount.type not in _NFS_TYPES:
                raise ValueError(f"cannot parse MountStats for fstype {mount.type!r}")
            version = ss[8].removeprefix(_STAT_VERSION_PREFIX)
            mount.stats = _parse_mount_stats_nfs(lines, version)
        mounts.append(mount)

    return mounts