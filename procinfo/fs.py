"""Access to kernel pseudo-filesystems such as /proc and /sys."""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass

DEFAULT_PROC_MOUNT_POINT = "/proc"
DEFAULT_SYS_MOUNT_POINT = "/sys"
DEFAULT_CONFIGFS_MOUNT_POINT = "/sys/kernel/config"


@dataclass(frozen=True)
class FS:
    """A pseudo-filesystem mounted at ``mount_point``.

    Creating an instance checks that the mount point exists and is a directory.
    """

    mount_point: str

    def __post_init__(self) -> None:
        try:
            st = os.stat(self.mount_point)
        except OSError as exc:
            raise OSError(
                exc.errno, f"could not read {self.mount_point}: {exc.strerror}"
            ) from exc
        if not os.path.isdir(self.mount_point) or not _is_dir_mode(st.st_mode):
            raise NotADirectoryError(
                errno.ENOTDIR, f"mount point {self.mount_point} is not a directory"
            )

    def path(self, *args: str) -> str:
        """Join path elements onto the mount point and clean the result."""
        parts = [p for p in (self.mount_point, *args) if p]
        if not parts:
            return ""
        return os.path.normpath("/".join(parts))


def _is_dir_mode(mode: int) -> bool:
    import stat

    return stat.S_ISDIR(mode)


def default_proc_fs() -> FS:
    """Return the proc filesystem at its usual mount point."""
    return FS(DEFAULT_PROC_MOUNT_POINT)