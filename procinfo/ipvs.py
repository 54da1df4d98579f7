"""Parsing of IPVS statistics from /proc/net/ip_vs and /proc/net/ip_vs_stats."""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Iterable

from procinfo.fs import FS
from procinfo.util import parse_uint64s, read_file_no_stat

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

_HEX_RE = re.compile(r"[0-9A-Fa-f]+")


@dataclass(frozen=True)
class IPVSStats:
    """Totals from /proc/net/ip_vs_stats."""

    connections: int = 0
    incoming_packets: int = 0
    outgoing_packets: int = 0
    incoming_bytes: int = 0
    outgoing_bytes: int = 0


@dataclass(frozen=True)
class IPVSBackendStatus:
    """Current metrics of one virtual/real address pair."""

    local_address: IPAddress | None = None
    remote_address: IPAddress | None = None
    local_port: int = 0
    remote_port: int = 0
    local_mark: str = ""
    proto: str = ""
    active_conn: int = 0
    inact_conn: int = 0
    weight: int = 0


def _parse_hex(text: str, bits: int) -> int:
    if not _HEX_RE.fullmatch(text):
        raise ValueError(f"invalid hexadecimal syntax: {text!r}")
    value = int(text, 16)
    if value >= 1 << bits:
        raise ValueError(f"value out of range: {text!r}")
    return value


def parse_ipvs_stats(data) -> IPVSStats:
    """Parse the contents of /proc/net/ip_vs_stats."""
    text = data.decode() if isinstance(data, (bytes, bytearray)) else data
    lines = text.split("\n", 3)
    if len(lines) != 4:
        raise ValueError("ip_vs_stats corrupt: too short")
    fields = lines[2].split()
    if len(fields) != 5:
        raise ValueError("ip_vs_stats corrupt: unexpected number of fields")
    values = [_parse_hex(field, 64) for field in fields]
    return IPVSStats(*values)


def ipvs_stats(fs: FS) -> IPVSStats:
    """Read and parse the IPVS totals of the given proc filesystem."""
    return parse_ipvs_stats(read_file_no_stat(fs.path("net/ip_vs_stats")))


def parse_ip_port(text: str) -> tuple[IPAddress, int]:
    """Parse an ``ADDRESS:PORT`` pair as written in /proc/net/ip_vs.

    IPv4 addresses are eight hex digits; IPv6 addresses are written in full
    inside brackets. The port is four hex digits.
    """
    if len(text) == 13:
        raw = text[0:8]
        if not _HEX_RE.fullmatch(raw):
            raise ValueError(f"invalid hex address: {raw}")
        ip: IPAddress = ipaddress.IPv4Address(bytes.fromhex(raw))
    elif len(text) == 46:
        raw = text[1:40]
        if "%" in raw:
            raise ValueError(f"invalid IPv6 address: {raw}")
        try:
            ip = ipaddress.ip_address(raw)
        except ValueError:
            raise ValueError(f"invalid IPv6 address: {raw}") from None
    else:
        raise ValueError(f"unexpected IP:Port: {text}")

    port = _parse_hex(text[-4:], 16)
    return ip, port


def parse_ipvs_backend_status(stream: Iterable[str]) -> list[IPVSBackendStatus]:
    """Parse the lines of /proc/net/ip_vs into backend statuses."""
    statuses: list[IPVSBackendStatus] = []
    proto = ""
    local_mark = ""
    local_address: IPAddress | None = None
    local_port = 0

    for line in stream:
        fields = line.split()
        if not fields:
            continue
        head = fields[0]
        if head in ("IP", "Prot") or (len(fields) > 1 and fields[1] == "RemoteAddress:Port"):
            continue
        if head in ("TCP", "UDP"):
            if len(fields) < 2:
                continue
            proto = head
            local_mark = ""
            local_address, local_port = parse_ip_port(fields[1])
        elif head == "FWM":
            if len(fields) < 2:
                continue
            proto = head
            local_mark = fields[1]
            local_address = None
            local_port = 0
        elif head == "->":
            if len(fields) < 6:
                continue
            remote_address, remote_port = parse_ip_port(fields[1])
            weight, active_conn, inact_conn = parse_uint64s(fields[3:6])
            statuses.append(
                IPVSBackendStatus(
                    local_address=local_address,
                    remote_address=remote_address,
                    local_port=local_port,
                    remote_port=remote_port,
                    local_mark=local_mark,
                    proto=proto,
                    active_conn=active_conn,
                    inact_conn=inact_conn,
                    weight=weight,
                )
            )
    return statuses


def ipvs_backend_status(fs: FS) -> list[IPVSBackendStatus]:
    """Read and parse the status of all virtual/real server pairs."""
    with open(fs.path("net/ip_vs"), encoding="utf-8") as handle:
        return parse_ipvs_backend_status(handle)