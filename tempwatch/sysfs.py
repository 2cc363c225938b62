#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import functools
import pathlib

from .types import Callable, Iterable, NamedTuple, Optional, PathLike

PROC_MOUNTS_PATH = pathlib.Path("/proc/mounts")
DEFAULT_SYSFS_PATH = pathlib.Path("/sys")


class MountInfo(NamedTuple):
    dev_type: str
    mount_point: str
    fs_type: str


def iter_mounts(path: PathLike = PROC_MOUNTS_PATH) -> Iterable[MountInfo]:
    data = pathlib.Path(path).read_text()
    for line in data.splitlines():
        dev_type, mount_point, fs_type, *_ = line.split()
        yield MountInfo(dev_type, mount_point, fs_type)


@functools.cache
def sysfs_mount() -> pathlib.Path:
    """Mount point of sysfs. Falls back to /sys when /proc/mounts is not available"""
    try:
        for dev_type, mount_point, fs_type in iter_mounts():
            if dev_type == "sysfs" and fs_type == "sysfs":
                return pathlib.Path(mount_point)
    except OSError:
        pass
    return DEFAULT_SYSFS_PATH


SYSFS_PATH = sysfs_mount()
CLASS_PATH = SYSFS_PATH / "class"
THERMAL_PATH = CLASS_PATH / "thermal"


def read_text(path: PathLike) -> str:
    """Read a sysfs attribute file and strip surrounding whitespace"""
    with pathlib.Path(path).open() as f:
        return f.read().strip()


class Attr:
    def __init__(self, filename: Optional[str] = None, decode: Callable = str):
        self.filename = filename
        self.decode = decode

    def __set_name__(self, owner, name):
        if self.filename is None:
            self.filename = name

    def _path(self, obj):
        return obj.syspath / self.filename

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return self.decode(read_text(self._path(obj)))


Str = functools.partial(Attr, decode=str)


class Device:
    syspath: pathlib.Path

    def __init__(self, syspath: PathLike):
        self.syspath = pathlib.Path(syspath)

    def __repr__(self):
        return f"{type(self).__name__}({self.syspath})"
