"""Parsing of free memory fragment counts from /proc/buddyinfo."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from procinfo.fs import FS


@dataclass
class BuddyInfo:
    """Free fragments of one memory zone.

    ``sizes[n]`` counts free blocks of ``2**n * PAGE_SIZE`` bytes.
    """

    node: str
    zone: str
    sizes: list[float] = field(default_factory=list)


def _parse_float(text: str) -> float:
    if text != text.strip():
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


def parse_buddy_info(stream: Iterable[str]) -> list[BuddyInfo]:
    """Parse buddyinfo lines from a text stream or any iterable of lines."""
    result: list[BuddyInfo] = []
    bucket_count: int | None = None

    for raw in stream:
        parts = raw.rstrip("\r\n").split()
        if len(parts) < 4:
            raise ValueError("invalid number of fields when parsing buddyinfo")

        node = parts[1].rstrip(",")
        zone = parts[3].rstrip(",")
        values = parts[4:]

        if bucket_count is None:
            bucket_count = len(values)
        elif bucket_count != len(values):
            raise ValueError(
                "mismatch in number of buddyinfo buckets, "
                f"previous count {bucket_count}, new count {len(values)}"
            )

        try:
            sizes = [_parse_float(value) for value in values]
        except ValueError as exc:
            raise ValueError(f"invalid value in buddyinfo: {exc}") from exc

        result.append(BuddyInfo(node=node, zone=zone, sizes=sizes))

    return result


def buddy_info(fs: FS) -> list[BuddyInfo]:
    """Read and parse the buddyinfo file of the given proc filesystem."""
    with open(fs.path("buddyinfo"), encoding="utf-8") as handle:
        return parse_buddy_info(handle)