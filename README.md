# procinfo

Read and parse kernel statistics that Linux exposes through `/proc`, `/sys`
and configfs. Most readers have a matching `parse_*` function that takes the
file's contents (text or bytes) or a text stream, so the parsers work on
captured data as well as on a live system. The package has no dependencies
beyond the standard library.

## Installation

```
pip install procinfo
```

## Opening a filesystem

```python
from procinfo.fs import FS, default_proc_fs

proc = default_proc_fs()            # /proc
print(proc.path("net", "arp"))      # /proc/net/arp

captured = FS("/srv/captured/proc") # any directory laid out like /proc
```

Creating an `FS` raises `OSError` when the mount point cannot be read and
`NotADirectoryError` when it is not a directory. `FS.path(*parts)` joins the
parts onto the mount point and normalises the result.

## What can be read

| Module | Reads | Entry points |
| --- | --- | --- |
| `procinfo.arp` | `/proc/net/arp` | `gather_arp_entries(fs)`, `parse_arp_entries(data)` |
| `procinfo.buddyinfo` | `/proc/buddyinfo` | `buddy_info(fs)`, `parse_buddy_info(stream)` |
| `procinfo.cpuinfo` | `/proc/cpuinfo` | `cpu_info(fs)`, `parse_cpu_info(data)` |
| `procinfo.crypto` | `/proc/crypto` | `crypto(fs)`, `parse_crypto(data)` |
| `procinfo.mountinfo` | `/proc/<pid>/mountinfo` | `get_mounts()`, `get_proc_mounts(pid)`, `parse_mount_info(stream)`, `parse_mount_info_string(line)` |
| `procinfo.mountstats` | `/proc/<pid>/mountstats` | `parse_mount_stats(stream)` |
| `procinfo.ipvs` | `/proc/net/ip_vs`, `/proc/net/ip_vs_stats` | `ipvs_stats(fs)`, `ipvs_backend_status(fs)`, `parse_ip_port(text)` |
| `procinfo.mdstat` | `/proc/mdstat` | `mdstat(fs)`, `parse_mdstat(data)` |
| `procinfo.blockdevice` | `/proc/diskstats`, `/sys/block` | `BlockDeviceFS` |
| `procinfo.bcache` | `/sys/fs/bcache` | `BcacheFS`, `get_stats(uuid_path)`, `dehumanize(hbytes)` |
| `procinfo.iscsi` | configfs iSCSI targets, `/sys/devices/rbd` | `ISCSIFS`, `get_stats(iqn_path)`, `read_write_ops(iqn_path, tpgt, lun)` |

`procinfo.util` holds the shared helpers: integer list parsers,
`read_file_no_stat` (reads at most 512 KiB), `sys_read_file` (a single read of
up to 128 bytes, Linux only), `parse_bool` and `ValueParser`, which parses one
string as a signed or unsigned 64-bit integer with the base taken from its
prefix and keeps the first failure in its `error` attribute.

Results are dataclasses. Addresses in `procinfo.arp` and `procinfo.ipvs` are
`ipaddress` objects; an NFS mount's age is a `datetime.timedelta`.

## Examples

```python
from procinfo.fs import default_proc_fs
from procinfo.mdstat import mdstat
from procinfo.cpuinfo import cpu_info

proc = default_proc_fs()

for md in mdstat(proc):
    print(md.name, md.activity_state, md.blocks_synced, "/", md.blocks_total)

for cpu in cpu_info(proc):
    print(cpu.processor, cpu.model_name, cpu.cpu_mhz)
```

```python
from procinfo.blockdevice import BlockDeviceFS

block = BlockDeviceFS("/proc", "/sys")
for disk in block.proc_diskstats():
    print(disk.device_name, disk.read_ios, disk.write_ios, disk.io_stats_count)

for name in block.sys_block_devices():
    stats, count = block.sys_block_device_stat(name)
    print(name, count, stats.weighted_io_ticks)
```

```python
from procinfo.mountstats import parse_mount_stats

with open("/proc/self/mountstats") as stream:
    for mount in parse_mount_stats(stream):
        print(mount.device, mount.mount, mount.type)
        if mount.stats is not None:
            print("  NFS", mount.stats.stat_version, mount.stats.transport.protocol)
```

```python
from procinfo.iscsi import ISCSIFS, read_write_ops

iscsi = ISCSIFS()  # /sys and /sys/kernel/config
for target in iscsi.iscsi_stats():
    for group in target.tpgt:
        for lun in group.luns:
            print(target.name, group.name, lun.name, lun.backstore)
```

Malformed input raises `ValueError`; files that cannot be opened raise
`OSError`. In `procinfo.crypto`, a number that does not parse is left as
`None`. `ISCSIFS.get_rbd_match` and `ISCSIFS.get_rdmcp_path` return `None`
when nothing matches or the backstore is disabled.

## What it does not do

- There is no command-line tool; the package is a library only.
- Per-process data is limited to mount information: there are no readers for
  a process's stat, status, limits or file descriptors.
- `procinfo.mountstats` only parses text it is given; it does not locate a
  process's mountstats file itself. Statistics are parsed for `nfs` and `nfs4`
  mounts only.
- Nothing is collected over time or exported; each call reads the files once.

## Running the tests

```
pip install -e .[test]
pytest
```