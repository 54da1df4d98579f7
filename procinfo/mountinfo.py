"""Parsing of per-process mount descriptions from /proc/<pid>/mountinfo."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

_VALID_OPTIONAL_FIELDS = frozenset({"shared", "master", "propagate_from", "unbindable"})
_INT_RE = re.compile(r"[+-]?[0-9]+")


@dataclass
class MountInfo:
    """One mount as described by a mountinfo line."""

    mount_id: int = 0
    parent_id: int = 0
    major_minor_ver: str = ""
    root: str = ""
    mount_point: str = ""
    options: dict[str, str] = field(default_factory=dict)
    optional_fields: dict[str, str] | None = None
    fs_type: str = ""
    source: str = ""
    super_options: dict[str, str] = field(default_factory=dict)


def _element(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""


def _atoi(text: str, what: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"failed to parse {what}")
    return int(text)


def mount_options_parser(options: str) -> dict[str, str]:
    """Parse comma separated mount or superblock options into a dict."""
    result: dict[str, str] = {}
    for option in options.split(","):
        pieces = option.split("=")
        result[pieces[0]] = pieces[1] if len(pieces) >= 2 else ""
    return result


def parse_mount_info_string(line: str) -> MountInfo:
    """Parse a single mountinfo line."""
    separator = line.find("-")
    if separator == -1:
        raise ValueError(f"no separator found in mountinfo string: {line}")
    before = line[:separator].split()
    after = line[separator + 1 :].split()
    if len(before) + len(after) < 7:
        raise ValueError("too few fields")

    mount = MountInfo(
        major_minor_ver=_element(before, 2),
        root=_element(before, 3),
        mount_point=_element(before, 4),
        options=mount_options_parser(_element(before, 5)),
        fs_type=_element(after, 0),
        source=_element(after, 1),
        super_options=mount_options_parser(_element(after, 2)),
    )
    mount.mount_id = _atoi(_element(before, 0), "mount ID")
    mount.parent_id = _atoi(_element(before, 1), "parent ID")

    if len(before) > 6:
        optional: dict[str, str] = {}
        for item in before[6:]:
            pieces = item.split(":")
            target = pieces[0]
            value = pieces[1] if len(pieces) == 2 else ""
            if target in _VALID_OPTIONAL_FIELDS:
                optional[target] = value
        mount.optional_fields = optional
    return mount


def parse_mount_info(stream: Iterable[str]) -> list[MountInfo]:
    """Parse every line of a mountinfo text stream."""
    return [parse_mount_info_string(line.rstrip("\r\n")) for line in stream]


def get_mounts() -> list[MountInfo]:
    """Return the mounts of the current process."""
    with open("/proc/self/mountinfo", encoding="utf-8") as handle:
        return parse_mount_info(handle)


def get_proc_mounts(pid: int) -> list[MountInfo]:
    """Return the mounts seen by the process with the given pid."""
    with open(f"/proc/{pid}/mountinfo", encoding="utf-8") as handle:
        return parse_mount_info(handle)