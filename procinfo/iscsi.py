"""iSCSI target statistics read from configfs and sysfs."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass, field

from procinfo.fs import DEFAULT_CONFIGFS_MOUNT_POINT, DEFAULT_SYS_MOUNT_POINT, FS
from procinfo.util import read_uint_from_file

# Every IQN lives under <configfs>/target/iscsi/iqn*.
_IQN_GLOB = "target/iscsi/iqn*"
# Backstore objects live under <configfs>/target/core.
_TARGET_CORE = "target/core"
# RBD block devices live under <sysfs>/devices/rbd/[0-9]*.
_DEVICE_PATH = "devices/rbd"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


@dataclass
class LUN:
    """A logical unit of a target portal group."""

    name: str = ""
    lun_path: str = ""
    backstore: str = ""
    object_name: str = ""
    type_number: str = ""


@dataclass
class TPGT:
    """A target portal group tag."""

    name: str = ""
    tpgt_path: str = ""
    is_enable: bool = False
    luns: list[LUN] = field(default_factory=list)


@dataclass
class FILEIO:
    """A fileio backstore and the file it exports."""

    name: str = ""
    fnumber: str = ""
    object_name: str = ""
    filename: str = ""


@dataclass
class IBLOCK:
    """An iblock backstore and the block device it exports."""

    name: str = ""
    bnumber: str = ""
    object_name: str = ""
    iblock: str = ""


@dataclass
class RBD:
    """An RBD backstore with its pool and image."""

    name: str = ""
    rnumber: str = ""
    pool: str = ""
    image: str = ""


@dataclass
class RDMCP:
    """A ramdisk (rd_mcp) backstore."""

    name: str = ""
    object_name: str = ""


@dataclass
class Stats:
    """All portal groups of one iSCSI target."""

    name: str = ""
    tpgt: list[TPGT] = field(default_factory=list)
    root_path: str = ""


def _join(*parts: str) -> str:
    return os.path.normpath(os.path.join(*parts))


def _glob(base: str, pattern: str) -> list[str]:
    return sorted(glob.glob(os.path.join(glob.escape(base), pattern)))


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean syntax: {text!r}")


def _is_path_enable(path: str) -> bool:
    """Return whether the ``enable`` file inside ``path`` holds a true value."""
    enable_path = os.path.join(path, "enable")
    try:
        with open(enable_path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise OSError(exc.errno, f"iscsi: isPathEnable ReadFile error {exc}") from exc
    try:
        return _parse_bool(text.strip())
    except ValueError as exc:
        raise ValueError(f"iscsi: isPathEnable ParseBool error {exc}") from exc


def _get_lun_link_target(lun_path: str) -> LUN:
    lun = LUN(name=os.path.basename(lun_path), lun_path=lun_path)
    try:
        names = sorted(os.listdir(lun_path))
    except OSError as exc:
        raise OSError(
            exc.errno, f"getLunLinkTarget: ReadDir path {lun_path} error {exc}"
        ) from exc

    for name in names:
        entry = os.path.join(lun_path, name)
        if not os.path.islink(entry):
            continue
        try:
            target = os.readlink(entry)
        except OSError as exc:
            raise OSError(exc.errno, f"getLunLinkTarget: Readlink err {exc}") from exc
        target_dir, object_name = os.path.split(target)
        type_with_number = os.path.basename(os.path.normpath(target_dir))
        backstore, sep, number = type_with_number.rpartition("_")
        if sep:
            lun.backstore = backstore
            lun.type_number = number
        lun.object_name = object_name
        return lun

    raise ValueError("iscsi: getLunLinkTarget: Lun Link does not exist")


def get_stats(iqn_path: str) -> Stats:
    """Collect the portal groups and logical units of the target at ``iqn_path``."""
    stats = Stats(name=os.path.basename(iqn_path), root_path=os.path.dirname(iqn_path))

    for tpgt_path in _glob(iqn_path, "tpgt*"):
        try:
            enabled = _is_path_enable(tpgt_path)
        except (OSError, ValueError):
            enabled = False
        tpgt = TPGT(name=os.path.basename(tpgt_path), tpgt_path=tpgt_path, is_enable=enabled)
        if enabled:
            for lun_path in _glob(tpgt_path, "lun/lun*"):
                try:
                    tpgt.luns.append(_get_lun_link_target(lun_path))
                except (OSError, ValueError):
                    continue
        stats.tpgt.append(tpgt)

    return stats


def _read_counter(path: str, what: str) -> int:
    try:
        return read_uint_from_file(path)
    except OSError as exc:
        raise OSError(
            exc.errno, f"iscsi: ReadWriteOPS: {what} error file {path} and {exc}"
        ) from exc
    except ValueError as exc:
        raise ValueError(f"iscsi: ReadWriteOPS: {what} error file {path} and {exc}") from exc


def read_write_ops(iqn_path: str, tpgt: str, lun: str) -> tuple[int, int, int]:
    """Return (read megabytes, written megabytes, commands) of one logical unit."""
    stats_dir = _join(iqn_path, tpgt, "lun", lun, "statistics/scsi_tgt_port")
    read_mb = _read_counter(os.path.join(stats_dir, "read_mbytes"), "read_mbytes")
    write_mb = _read_counter(os.path.join(stats_dir, "write_mbytes"), "write_mbytes")
    iops = _read_counter(os.path.join(stats_dir, "in_cmds"), "in_cmds")
    return read_mb, write_mb, iops


def _read_trimmed(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read().strip()
    except OSError:
        return None


class ISCSIFS:
    """The sysfs and configfs filesystems as seen for iSCSI targets.

    Blank mount points fall back to /sys and /sys/kernel/config.
    """

    def __init__(
        self,
        sysfs_path: str = DEFAULT_SYS_MOUNT_POINT,
        configfs_mount_point: str = DEFAULT_CONFIGFS_MOUNT_POINT,
    ) -> None:
        if not sysfs_path.strip():
            sysfs_path = DEFAULT_SYS_MOUNT_POINT
        self.sysfs = FS(sysfs_path)
        if not configfs_mount_point.strip():
            configfs_mount_point = DEFAULT_CONFIGFS_MOUNT_POINT
        self.configfs = FS(configfs_mount_point)

    def path(self, *args: str) -> str:
        """Join path elements onto the configfs mount point."""
        return self.configfs.path(*args)

    def iscsi_stats(self) -> list[Stats]:
        """Return the statistics of every iSCSI target."""
        pattern = self.configfs.path(_IQN_GLOB)
        directory, base_pattern = os.path.split(pattern)
        return [get_stats(iqn_path) for iqn_path in _glob(directory, base_pattern)]

    def _udev_path(self, backstore: str, object_name: str) -> str:
        return self.configfs.path(_TARGET_CORE, backstore, object_name, "udev_path")

    def get_fileio_udev(self, fileio_number: str, object_name: str) -> FILEIO:
        """Return the fileio backstore and the file it exports."""
        fileio = FILEIO(
            name=f"fileio_{fileio_number}", fnumber=fileio_number, object_name=object_name
        )
        udev_path = self._udev_path(fileio.name, object_name)
        if not os.path.exists(udev_path):
            raise FileNotFoundError(
                f"iscsi: GetFileioUdev: fileio_{fileio_number} is missing file name"
            )
        filename = _read_trimmed(udev_path)
        if filename is None:
            raise OSError(
                f"iscsi: GetFileioUdev: Cannot read filename from udev link :{udev_path}"
            )
        fileio.filename = filename
        return fileio

    def get_iblock_udev(self, iblock_number: str, object_name: str) -> IBLOCK:
        """Return the iblock backstore and the block device it exports."""
        iblock = IBLOCK(
            name=f"iblock_{iblock_number}", bnumber=iblock_number, object_name=object_name
        )
        udev_path = self._udev_path(iblock.name, object_name)
        if not os.path.exists(udev_path):
            raise FileNotFoundError(
                f"iscsi: GetIBlockUdev: iblock_{iblock_number} is missing file name"
            )
        device = _read_trimmed(udev_path)
        if device is None:
            raise OSError(
                f"iscsi: GetIBlockUdev: Cannot read iblock from udev link :{udev_path}"
            )
        iblock.iblock = device
        return iblock

    def get_rbd_match(self, rbd_number: str, pool_image: str) -> RBD | None:
        """Find the RBD device numbered ``rbd_number`` whose ``pool-image`` matches.

        Devices are numbered by their position among the sorted sysfs entries.
        Returns None when no device matches.
        """
        rbd = RBD(name=f"rbd_{rbd_number}", rnumber=rbd_number)
        devices = _glob(self.sysfs.path(_DEVICE_PATH), "[0-9]*")

        for index, device_path in enumerate(devices):
            pool = _read_trimmed(os.path.join(device_path, "pool"))
            if pool is None:
                continue
            image = _read_trimmed(os.path.join(device_path, "name"))
            if image is None:
                continue
            if str(index) == rbd_number and f"{pool}-{image}" == pool_image:
                rbd.pool = pool
                rbd.image = image
                return rbd
        return None

    def get_rdmcp_path(self, rdmcp_number: str, object_name: str) -> RDMCP | None:
        """Return the ramdisk backstore if it is enabled, otherwise None."""
        rdmcp = RDMCP(name=f"rd_mcp_{rdmcp_number}", object_name=object_name)
        rdmcp_path = self.configfs.path(_TARGET_CORE, rdmcp.name, object_name)
        if not os.path.exists(rdmcp_path):
            raise FileNotFoundError(f"iscsi: GetRDMCPPath: {rdmcp_path} does not exist")
        try:
            enabled = _is_path_enable(rdmcp_path)
        except OSError as exc:
            raise OSError(exc.errno, f"iscsi: GetRDMCPPath: error {exc}") from exc
        except ValueError as exc:
            raise ValueError(f"iscsi: GetRDMCPPath: error {exc}") from exc
        return rdmcp if enabled else None