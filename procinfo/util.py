"""Small parsing and file-reading helpers shared by the parsers."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field

_MAX_FILE_SIZE = 1024 * 512
_SYS_FILE_BUFFER_SIZE = 128

_DECIMAL_RE = re.compile(r"[0-9]+")
_BASE0_RE = re.compile(r"[0-9A-Za-z_]+")


def _parse_uint(text: str, bits: int) -> int:
    if not _DECIMAL_RE.fullmatch(text):
        raise ValueError(f"invalid unsigned integer syntax: {text!r}")
    value = int(text, 10)
    if value >= 1 << bits:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _parse_int(text: str, bits: int) -> int:
    body = text[1:] if text[:1] in ("+", "-") else text
    if not _DECIMAL_RE.fullmatch(body):
        raise ValueError(f"invalid integer syntax: {text!r}")
    value = int(text, 10)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _parse_base0(text: str, signed: bool, bits: int) -> int:
    """Parse an integer whose base is inferred from its prefix."""
    negative = False
    body = text
    if signed and body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]
    if not body or not _BASE0_RE.fullmatch(body):
        raise ValueError(f"invalid syntax: {text!r}")

    lowered = body[:2].lower()
    if lowered == "0x":
        base = 16
    elif lowered == "0b":
        base = 2
    elif lowered == "0o":
        base = 8
    elif body[0] == "0" and len(body) > 1:
        base = 8
    else:
        base = 10
    try:
        magnitude = int(body, base)
    except ValueError:
        raise ValueError(f"invalid syntax: {text!r}") from None

    value = -magnitude if negative else magnitude
    if signed:
        limit = 1 << (bits - 1)
        if not -limit <= value < limit:
            raise ValueError(f"value out of range: {text!r}")
    elif value >= 1 << bits:
        raise ValueError(f"value out of range: {text!r}")
    return value


def parse_uint32s(values):
    """Parse decimal strings into unsigned 32-bit integers."""
    return [_parse_uint(v, 32) for v in values]


def parse_uint64s(values):
    """Parse decimal strings into unsigned 64-bit integers."""
    return [_parse_uint(v, 64) for v in values]


def parse_pint64s(values):
    """Parse decimal strings into signed 64-bit integers."""
    return [_parse_int(v, 64) for v in values]


def read_uint_from_file(path) -> int:
    """Read a file and parse its trimmed contents as an unsigned 64-bit integer."""
    with open(path, "rb") as handle:
        data = handle.read()
    return _parse_uint(data.decode().strip(), 64)


def parse_bool(value: str):
    """Map "enabled" to True and "disabled" to False; anything else gives None."""
    return {"enabled": True, "disabled": False}.get(value)


def read_file_no_stat(filename) -> bytes:
    """Read at most 512 KiB of a file without relying on its reported size."""
    with open(filename, "rb") as handle:
        return handle.read(_MAX_FILE_SIZE)


def sys_read_file(filename) -> str:
    """Read up to 128 bytes with a single read call and return them trimmed."""
    if not sys.platform.startswith("linux"):
        raise OSError("not supported on this platform")
    fd = os.open(filename, os.O_RDONLY)
    try:
        data = os.read(fd, _SYS_FILE_BUFFER_SIZE)
    finally:
        os.close(fd)
    return data.decode(errors="replace").strip()


@dataclass
class ValueParser:
    """Parses one string into numbers, remembering the first failure.

    Once a parse has failed, later calls return None and ``error`` keeps
    the original failure.
    """

    value: str
    error: ValueError | None = field(default=None, init=False)

    def _parse(self, signed: bool):
        if self.error is not None:
            return None
        try:
            return _parse_base0(self.value, signed=signed, bits=64)
        except ValueError as exc:
            self.error = exc
            return None

    def pint64(self):
        """Return the value as a signed 64-bit integer, or None on failure."""
        return self._parse(signed=True)

    def puint64(self):
        """Return the value as an unsigned 64-bit integer, or None on failure."""
        return self._parse(signed=False)