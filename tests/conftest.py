#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import pathlib
import time

import pytest

from tempwatch.sensor import Reading, Sensor
from tempwatch.source import SensorSource


def make_zone(root: pathlib.Path, name: str, value=None, type_=None) -> pathlib.Path:
    zone = root / name
    zone.mkdir()
    if value is not None:
        (zone / "temp").write_text(value)
    if type_ is not None:
        (zone / "type").write_text(type_ + "\n")
    return zone


class FakeSource(SensorSource):
    """In memory source. delays maps sensor id to seconds spent reading it"""

    def __init__(self, values, delays=None, failing=(), events=None):
        self.values = dict(values)
        self.delays = delays or {}
        self.failing = set(failing)
        self.events = events
        self.refreshes = 0

    def discover(self):
        return tuple(Sensor(sensor_id, f"fake{sensor_id}") for sensor_id in self.values)

    def refresh(self):
        self.refreshes += 1

    def read_value(self, sensor):
        time.sleep(self.delays.get(sensor.id, 0))
        if self.events is not None:
            self.events.append(("read", sensor.id))
        if sensor.id in self.failing:
            raise RuntimeError(f"sensor {sensor.id} exploded")
        return Reading(sensor, self.values[sensor.id])


class FakeDisplay:
    def __init__(self, events=None):
        self.events = [] if events is None else events
        self.texts = []

    def repaint(self):
        self.events.append(("repaint",))

    def write(self, text):
        self.events.append(("write",))
        self.texts.append(text)


@pytest.fixture
def thermal_root(tmp_path):
    """thermal_zone0 = 45000, thermal_zone2 = 39500 (with surrounding whitespace)"""
    make_zone(tmp_path, "thermal_zone0", "45000", type_="x86_pkg_temp")
    make_zone(tmp_path, "thermal_zone2", "  39500\n", type_="acpitz")
    return tmp_path
