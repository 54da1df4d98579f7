"""Parsing of software RAID status from /proc/mdstat."""

from __future__ import annotations

import re
from dataclasses import dataclass

from procinfo.fs import FS

_STATUS_LINE_RE = re.compile(r"([0-9]+) blocks .*\[([0-9]+)/([0-9]+)\] \[[U_]+\]")
_RECOVERY_LINE_RE = re.compile(r"\(([0-9]+)/[0-9]+\)")
_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_LIMIT = 1 << 63


@dataclass(frozen=True)
class MDStat:
    """State of one md device."""

    name: str
    activity_state: str
    disks_active: int
    disks_total: int
    disks_failed: int
    disks_spare: int
    blocks_total: int
    blocks_synced: int


def _parse_int64(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {text!r}")
    value = int(text)
    if not -_INT64_LIMIT <= value < _INT64_LIMIT:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _eval_status_line(device_line: str, status_line: str) -> tuple[int, int, int]:
    """Return (active, total, size) for a device."""
    fields = status_line.split()
    if not fields:
        raise ValueError(f"unexpected statusLine {status_line}: empty line")
    try:
        size = _parse_int64(fields[0])
    except ValueError as exc:
        raise ValueError(f"unexpected statusLine {status_line}: {exc}") from exc

    if "raid0" in device_line or "linear" in device_line:
        # Only disks carry a bracketed number on the device line.
        total = device_line.count("[")
        return total, total, size

    if "inactive" in device_line:
        return 0, 0, size

    match = _STATUS_LINE_RE.search(status_line)
    if match is None:
        raise ValueError(f"couldn't find all the substring matches: {status_line}")
    try:
        total = _parse_int64(match.group(2))
        active = _parse_int64(match.group(3))
    except ValueError as exc:
        raise ValueError(f"unexpected statusLine {status_line}: {exc}") from exc
    return active, total, size


def _eval_recovery_line(recovery_line: str) -> int:
    match = _RECOVERY_LINE_RE.search(recovery_line)
    if match is None:
        raise ValueError(f"unexpected recoveryLine: {recovery_line}")
    try:
        return _parse_int64(match.group(1))
    except ValueError as exc:
        raise ValueError(f"{exc} in recoveryLine: {recovery_line}") from exc


def parse_mdstat(data) -> list[MDStat]:
    """Parse the contents of /proc/mdstat."""
    text = data.decode() if isinstance(data, (bytes, bytearray)) else data
    lines = text.split("\n")
    stats: list[MDStat] = []

    for i, line in enumerate(lines):
        if (
            not line.strip()
            or line[0] == " "
            or line.startswith("Personalities")
            or line.startswith("unused")
        ):
            continue

        device_fields = line.split()
        if len(device_fields) < 3:
            raise ValueError(f"not enough fields in mdline (expected at least 3): {line}")
        name = device_fields[0]
        state = device_fields[2]

        if len(lines) <= i + 3:
            raise ValueError(f"error parsing {name}: too few lines for md device")

        failed = line.count("(F)")
        spare = line.count("(S)")
        try:
            active, total, size = _eval_status_line(line, lines[i + 1])
        except ValueError as exc:
            raise ValueError(f"error parsing md device lines: {exc}") from exc

        sync_index = i + 2
        if "bitmap" in lines[sync_index]:
            sync_index += 1
        sync_line = lines[sync_index]

        synced = size
        recovering = "recovery" in sync_line
        resyncing = "resync" in sync_line
        if recovering or resyncing:
            state = "recovering" if recovering else "resyncing"
            if "PENDING" in sync_line or "DELAYED" in sync_line:
                synced = 0
            else:
                try:
                    synced = _eval_recovery_line(sync_line)
                except ValueError as exc:
                    raise ValueError(
                        f"error parsing sync line in md device {name}: {exc}"
                    ) from exc

        stats.append(
            MDStat(
                name=name,
                activity_state=state,
                disks_active=active,
                disks_total=total,
                disks_failed=failed,
                disks_spare=spare,
                blocks_total=size,
                blocks_synced=synced,
            )
        )
    return stats


def mdstat(fs: FS) -> list[MDStat]:
    """Read and parse the mdstat file of the given proc filesystem."""
    path = fs.path("mdstat")
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise OSError(exc.errno, f"error parsing mdstat {path}: {exc.strerror}") from exc
    try:
        return parse_mdstat(data)
    except ValueError as exc:
        raise ValueError(f"error parsing mdstat {path}: {exc}") from exc