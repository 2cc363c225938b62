#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""
Sensor sources.

A source knows how to discover the sensors of the machine (once) and how to
read the current value of each of them (every tick):

* [`ThermalSource`][tempwatch.source.ThermalSource] scans the linux thermal
  sysfs directory and reads one value file per thermal zone
* [`ProviderSource`][tempwatch.source.ProviderSource] asks psutil for all
  hardware temperatures at once
"""

import logging
import os
import pathlib

from .sensor import Reading, Reason, Rejection, Sensor, sensor_name, validate_entry
from .sysfs import THERMAL_PATH, read_text
from .thermal import PREFIX, VALUE_FILE, ThermalZone
from .types import Callable, Iterable, Mapping, Optional, PathLike, Sequence, Union

log = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """The sensor provider cannot be enumerated"""


class SensorSource:
    """Base class for a sensor source"""

    def discover(self) -> tuple[Sensor, ...]:
        """Mandatory override for concrete sub-class"""
        raise NotImplementedError

    def refresh(self) -> None:
        """Called once per tick, before any value is read"""

    def sensor_name(self, sensor: Sensor) -> str:
        return sensor_name(sensor)

    def read_value(self, sensor: Sensor) -> Reading:
        """Mandatory override for concrete sub-class"""
        raise NotImplementedError

    def read_all(self, sensors: Sequence[Sensor]) -> tuple[Reading, ...]:
        self.refresh()
        return tuple(self.read_value(sensor) for sensor in sensors)


def scan_entries(
    root: PathLike, prefix: str = PREFIX, value_file: str = VALUE_FILE
) -> Iterable[Union[Sensor, Rejection]]:
    """
    Validate every entry of the root directory.

    Raises:
        DiscoveryError: if the root directory cannot be listed
    """
    try:
        with os.scandir(root) as entries:
            for entry in entries:
                yield _check_entry(entry, prefix, value_file)
    except OSError as error:
        raise DiscoveryError(f"Cannot list sensors in {root}: {error.strerror or error}") from error


def _check_entry(entry: os.DirEntry, prefix: str, value_file: str) -> Union[Sensor, Rejection]:
    try:
        # fail early on names that are not valid text
        entry.name.encode()
        entry.path.encode()
        is_file = entry.is_file(follow_symlinks=False)
    except (OSError, UnicodeError):
        return Rejection(repr(entry.name), Reason.UNREADABLE)
    return validate_entry(entry.name, entry.path, is_file, prefix, value_file)


class ThermalSource(SensorSource):
    """
    Thermal zones found in sysfs (/sys/class/thermal/thermal_zone<N>/temp).

    Values are the raw text of the value file (milli-celsius for thermal
    zones) stripped of surrounding whitespace.
    """

    def __init__(
        self,
        root: PathLike = THERMAL_PATH,
        prefix: str = PREFIX,
        value_file: str = VALUE_FILE,
        with_labels: bool = False,
    ):
        self.root = pathlib.Path(root)
        self.prefix = prefix
        self.value_file = value_file
        self.with_labels = with_labels

    def __repr__(self):
        return f"{type(self).__name__}({self.root})"

    def sensor_name(self, sensor: Sensor) -> str:
        return sensor_name(sensor, self.prefix)

    def discover(self) -> tuple[Sensor, ...]:
        sensors = []
        for result in scan_entries(self.root, self.prefix, self.value_file):
            if isinstance(result, Rejection):
                log.debug("skip %s: %s", result.name, result.reason.value)
                continue
            if self.with_labels:
                result = result._replace(label=self._label(result))
            sensors.append(result)
        sensors.sort(key=lambda sensor: (sensor.id, str(sensor.locator)))
        if not sensors:
            log.warning("no sensors found in %s", self.root)
        log.info("found %d sensor(s) in %s", len(sensors), self.root)
        return tuple(sensors)

    def _label(self, sensor: Sensor) -> Optional[str]:
        try:
            return ThermalZone(sensor.locator.parent).type or None
        except (OSError, UnicodeError):
            log.debug("no type for sensor %d", sensor.id)
            return None

    def read_value(self, sensor: Sensor) -> Reading:
        try:
            return Reading(sensor, read_text(sensor.locator))
        except (OSError, UnicodeError) as error:
            log.debug("could not read %s: %r", sensor.locator, error)
            return Reading(sensor)


def _default_provider() -> Mapping:
    import psutil

    if not hasattr(psutil, "sensors_temperatures"):
        raise DiscoveryError("Hardware temperatures not supported on this platform")
    return psutil.sensors_temperatures()


class ProviderSource(SensorSource):
    """
    Hardware temperatures reported by the OS through psutil.

    The provider is a callable returning a mapping of chip name to a list of
    entries with `label` and `current` members (like
    `psutil.sensors_temperatures`). Values are degrees Celsius.
    """

    def __init__(self, provider: Callable[[], Mapping] = _default_provider):
        self.provider = provider
        self._snapshot = {}

    def __repr__(self):
        return f"{type(self).__name__}({getattr(self.provider, '__name__', self.provider)})"

    def _take_snapshot(self) -> dict:
        return {
            (chip, index): entry for chip, entries in self.provider().items() for index, entry in enumerate(entries)
        }

    def discover(self) -> tuple[Sensor, ...]:
        try:
            self._snapshot = self._take_snapshot()
        except OSError as error:
            raise DiscoveryError(f"Cannot query hardware temperatures: {error}") from error
        sensors = tuple(
            Sensor(sensor_id, locator, entry.label or f"{locator[0]}{locator[1]}")
            for sensor_id, (locator, entry) in enumerate(self._snapshot.items())
        )
        log.info("found %d sensor(s) from provider", len(sensors))
        return sensors

    def refresh(self) -> None:
        # a failed refresh must not leave last tick values behind
        self._snapshot = {}
        try:
            self._snapshot = self._take_snapshot()
        except OSError as error:
            log.debug("could not refresh provider: %r", error)

    def read_value(self, sensor: Sensor) -> Reading:
        entry = self._snapshot.get(sensor.locator)
        if entry is None:
            return Reading(sensor)
        return Reading(sensor, entry.current)


SOURCES = {
    "sysfs": ThermalSource,
    "psutil": ProviderSource,
}


def make_source(kind: str = "sysfs", **kwargs) -> SensorSource:
    """Create a sensor source by name ("sysfs" or "psutil")"""
    try:
        factory = SOURCES[kind]
    except KeyError:
        raise ValueError(f"Unknown sensor source {kind!r}") from None
    return factory(**kwargs)
