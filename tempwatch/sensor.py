#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""Sensor records and the rules deciding what qualifies as a sensor"""

import enum
import pathlib

from .thermal import PREFIX, VALUE_FILE
from .types import Any, NamedTuple, Optional, Union, Value

PLACEHOLDER = ""


class Sensor(NamedTuple):
    id: int
    locator: Any
    label: Optional[str] = None


class Reading(NamedTuple):
    sensor: Sensor
    # None means the read failed for this tick
    value: Optional[Value] = None

    @property
    def text(self) -> str:
        return PLACEHOLDER if self.value is None else str(self.value)


class Reason(enum.Enum):
    REGULAR_FILE = "is a regular file"
    WRONG_PREFIX = "name has wrong prefix"
    BAD_ID = "id is not a non-negative integer"
    UNREADABLE = "entry metadata or name is unreadable"


class Rejection(NamedTuple):
    name: str
    reason: Reason


def sensor_name(sensor: Sensor, prefix: str = PREFIX) -> str:
    """Label of the sensor or, when it has none, a synthetic name like thermal_zone3"""
    return sensor.label if sensor.label else f"{prefix}{sensor.id}"


def parse_id(text: str) -> Optional[int]:
    text = text.strip()
    if not text.isdecimal() or not text.isascii():
        return None
    return int(text)


def validate_entry(
    name: str,
    path: Union[str, pathlib.Path],
    is_file: bool,
    prefix: str = PREFIX,
    value_file: str = VALUE_FILE,
) -> Union[Sensor, Rejection]:
    """
    Decide if a directory entry is a sensor.

    A sensor is anything but a regular file (a directory or a symlink) whose
    name is the prefix followed by a non-negative integer id. The locator of
    the sensor is the value file inside the entry.

    Args:
        name (str): entry name (ex: "thermal_zone0")
        path (str or Path): full path of the entry
        is_file (bool): True if the entry is a regular file
        prefix (str): required name prefix
        value_file (str): name of the file holding the value

    Returns:
        Sensor or Rejection: the sensor or the reason why the entry is not one
    """
    if is_file:
        return Rejection(name, Reason.REGULAR_FILE)
    if not name.startswith(prefix):
        return Rejection(name, Reason.WRONG_PREFIX)
    sensor_id = parse_id(name[len(prefix) :])
    if sensor_id is None:
        return Rejection(name, Reason.BAD_ID)
    return Sensor(sensor_id, pathlib.Path(path) / value_file)
