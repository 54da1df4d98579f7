"""Parsing of the ARP table in /proc/net/arp."""

from __future__ import annotations

import ipaddress
import os
from dataclasses import dataclass

from procinfo.fs import FS

_EXPECTED_DATA_WIDTH = 6
_EXPECTED_HEADER_WIDTH = 9

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


@dataclass(frozen=True)
class ARPEntry:
    """One row of /proc/net/arp."""

    ip_addr: IPAddress | None
    hw_addr: str
    device: str


def _parse_ip(text: str) -> IPAddress | None:
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def _parse_arp_entry(columns: list[str]) -> ARPEntry:
    return ARPEntry(ip_addr=_parse_ip(columns[0]), hw_addr=columns[3], device=columns[5])


def parse_arp_entries(data) -> list[ARPEntry]:
    """Parse the contents of /proc/net/arp."""
    text = data.decode() if isinstance(data, (bytes, bytearray)) else data
    entries = []
    for line in text.split("\n"):
        columns = line.split()
        width = len(columns)
        if width in (0, _EXPECTED_HEADER_WIDTH):
            continue
        if width != _EXPECTED_DATA_WIDTH:
            raise ValueError(
                f"{width} columns were detected, but {_EXPECTED_DATA_WIDTH} were expected"
            )
        entries.append(_parse_arp_entry(columns))
    return entries


def gather_arp_entries(fs: FS) -> list[ARPEntry]:
    """Read and parse the ARP table of the given proc filesystem."""
    path = fs.path("net/arp")
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise OSError(exc.errno, f"error reading arp {path}: {exc.strerror}") from exc
    return parse_arp_entries(data)


__all__ = ["ARPEntry", "gather_arp_entries", "parse_arp_entries", "os"]