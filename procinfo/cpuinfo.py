"""Parsing of processor descriptions from /proc/cpuinfo."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from procinfo.fs import FS
from procinfo.util import ValueParser, read_file_no_stat


@dataclass
class CPUInfo:
    """General information about one processor."""

    processor: int = 0
    vendor_id: str = ""
    cpu_family: str = ""
    model: str = ""
    model_name: str = ""
    stepping: str = ""
    microcode: str = ""
    cpu_mhz: float = 0.0
    cache_size: str = ""
    physical_id: str = ""
    siblings: int = 0
    core_id: str = ""
    cpu_cores: int = 0
    apicid: str = ""
    initial_apicid: str = ""
    fpu: str = ""
    fpu_exception: str = ""
    cpuid_level: int = 0
    wp: str = ""
    flags: list[str] = field(default_factory=list)
    bugs: list[str] = field(default_factory=list)
    bogomips: float = 0.0
    clflush_size: int = 0
    cache_alignment: int = 0
    address_sizes: str = ""
    power_management: str = ""


def _uint32(text: str) -> int:
    parser = ValueParser(text)
    value = parser.puint64()
    if parser.error is not None:
        raise parser.error
    if value >= 1 << 32:
        raise ValueError(f"value out of range: {text!r}")
    return value


def _float(text: str) -> float:
    if text != text.strip():
        raise ValueError(f"invalid syntax: {text!r}")
    return float(text)


def _words(value: str) -> list[str]:
    return value.split()


_FIELDS: dict[str, tuple[str, Callable[[str], object]]] = {
    "vendor_id": ("vendor_id", str),
    "cpu family": ("cpu_family", str),
    "model": ("model", str),
    "model name": ("model_name", str),
    "stepping": ("stepping", str),
    "microcode": ("microcode", str),
    "cpu MHz": ("cpu_mhz", _float),
    "cache size": ("cache_size", str),
    "physical id": ("physical_id", str),
    "siblings": ("siblings", _uint32),
    "core id": ("core_id", str),
    "cpu cores": ("cpu_cores", _uint32),
    "apicid": ("apicid", str),
    "initial apicid": ("initial_apicid", str),
    "fpu": ("fpu", str),
    "fpu_exception": ("fpu_exception", str),
    "cpuid level": ("cpuid_level", _uint32),
    "wp": ("wp", str),
    "flags": ("flags", _words),
    "bugs": ("bugs", _words),
    "bogomips": ("bogomips", _float),
    "clflush size": ("clflush_size", _uint32),
    "cache_alignment": ("cache_alignment", _uint32),
    "address sizes": ("address_sizes", str),
    "power management": ("power_management", str),
}


def parse_cpu_info(data) -> list[CPUInfo]:
    """Parse the contents of /proc/cpuinfo."""
    text = data.decode() if isinstance(data, (bytes, bytearray)) else data
    cpus: list[CPUInfo] = []

    for raw in text.split("\n"):
        line = raw.rstrip("\r")
        if not line.strip():
            continue
        key, sep, value = line.partition(": ")
        key = key.strip()

        if key == "processor":
            if not sep:
                raise ValueError(f"missing value in cpuinfo line: {line!r}")
            cpus.append(CPUInfo(processor=_uint32(value)))
            continue

        target = _FIELDS.get(key)
        if target is None:
            continue
        if not sep:
            raise ValueError(f"missing value in cpuinfo line: {line!r}")
        if not cpus:
            raise ValueError(f"cpuinfo field before any processor: {line!r}")
        attribute, convert = target
        setattr(cpus[-1], attribute, convert(value))

    return cpus


def cpu_info(fs: FS) -> list[CPUInfo]:
    """Read and parse the cpuinfo file of the given proc filesystem."""
    return parse_cpu_info(read_file_no_stat(fs.path("cpuinfo")))