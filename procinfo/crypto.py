"""Parsing of the kernel crypto algorithm list in /proc/crypto."""

from __future__ import annotations

from dataclasses import dataclass

from procinfo.fs import FS
from procinfo.util import ValueParser

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}

_UNSIGNED = {
    "blocksize": "blocksize",
    "chunksize": "chunksize",
    "digestsize": "digestsize",
    "ivsize": "ivsize",
    "maxauthsize": "maxauthsize",
    "max keysize": "max_keysize",
    "min keysize": "min_keysize",
    "seedsize": "seedsize",
    "walksize": "walksize",
}
_SIGNED = {"priority": "priority", "refcnt": "refcnt"}
_TEXT = {
    "driver": "driver",
    "geniv": "geniv",
    "internal": "internal",
    "module": "module",
    "name": "name",
    "selftest": "selftest",
    "type": "type",
}


@dataclass
class Crypto:
    """One algorithm entry of /proc/crypto; absent numbers are None."""

    alignmask: int | None = None
    async_: bool = False
    blocksize: int | None = None
    chunksize: int | None = None
    ctxsize: int | None = None
    digestsize: int | None = None
    driver: str = ""
    geniv: str = ""
    internal: str = ""
    ivsize: int | None = None
    maxauthsize: int | None = None
    max_keysize: int | None = None
    min_keysize: int | None = None
    module: str = ""
    name: str = ""
    priority: int | None = None
    refcnt: int | None = None
    seedsize: int | None = None
    selftest: str = ""
    type: str = ""
    walksize: int | None = None


def _parse_block(block: str) -> Crypto:
    entry = Crypto()
    for line in block.split("\n"):
        if not line.strip() or line[0] == " ":
            continue
        fields = line.split(":")
        if len(fields) < 2:
            raise ValueError(f"malformed crypto line: {line!r}")
        key = fields[0].strip()
        value = fields[1].strip()

        if key == "async":
            if value in _TRUE:
                entry.async_ = True
            elif value in _FALSE:
                entry.async_ = False
        elif key in _UNSIGNED:
            setattr(entry, _UNSIGNED[key], ValueParser(value).puint64())
        elif key in _SIGNED:
            setattr(entry, _SIGNED[key], ValueParser(value).pint64())
        elif key in _TEXT:
            setattr(entry, _TEXT[key], value)
    return entry


def parse_crypto(data) -> list[Crypto]:
    """Parse the contents of /proc/crypto, one entry per blank-line separated block."""
    text = data.decode() if isinstance(data, (bytes, bytearray)) else data
    return [_parse_block(block) for block in text.split("\n\n")]


def crypto(fs: FS) -> list[Crypto]:
    """Read and parse the crypto file of the given proc filesystem."""
    path = fs.path("crypto")
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise OSError(exc.errno, f"error parsing crypto {path}: {exc.strerror}") from exc
    try:
        return parse_crypto(data)
    except ValueError as exc:
        raise ValueError(f"error parsing crypto {path}: {exc}") from exc