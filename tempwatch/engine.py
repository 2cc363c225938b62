#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""
Sampling engines.

An engine runs one tick: it reads every sensor of a source, waits for all of
them and assembles a single [`Report`][tempwatch.engine.Report]. The engines
only differ in how the reads are scheduled:

* [`SequentialEngine`][tempwatch.engine.SequentialEngine]: one read after the other
* [`ThreadEngine`][tempwatch.engine.ThreadEngine]: one pool task per sensor
* [`WorkerEngine`][tempwatch.engine.WorkerEngine]: a long lived worker thread
  serving one tick request at a time
* [`AsyncEngine`][tempwatch.engine.AsyncEngine]: one asyncio task per sensor

A tick is split in two: `start()` launches the reads and `result()` waits for
them. The caller may do other work (ex: repaint the screen) in between:

```python
with ThreadEngine(ThermalSource()) as engine:
    sensors = engine.discover()
    pending = engine.start(sensors)
    report = pending.result()
    print(report)
```
"""

import asyncio
import concurrent.futures
import logging
import queue
import threading
import time

from .sensor import Reading, Sensor
from .source import SensorSource
from .types import Any, Callable, Iterable, NamedTuple, Optional, Self, Sequence

log = logging.getLogger(__name__)


class TickMetrics(NamedTuple):
    start_time: float
    elapsed: float


class Report(NamedTuple):
    readings: tuple[Reading, ...]
    names: tuple[str, ...]
    metrics: TickMetrics
    text: str

    def __str__(self):
        return self.text

    def as_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.metrics.start_time,
            "elapsed": self.metrics.elapsed,
            "sensors": [
                {"id": reading.sensor.id, "name": name, "value": reading.value}
                for reading, name in zip(self.readings, self.names, strict=True)
            ],
        }


def format_lines(readings: Iterable[Reading], names: Iterable[str]) -> str:
    return "".join(f"{name}: {reading.text}\n" for reading, name in zip(readings, names, strict=True))


def format_elapsed(elapsed: float) -> str:
    # fixed point: never scientific notation
    return f"{elapsed:.9f}"


def format_report(readings: Sequence[Reading], names: Sequence[str], elapsed: float) -> str:
    """
    Text of a tick: one "<name>: <value>" line per reading followed by the
    elapsed seconds (without trailing new line)
    """
    return format_lines(readings, names) + format_elapsed(elapsed)


class PendingTick:
    """A tick whose reads have been launched"""

    def __init__(self, wait: Callable[[], "Report"]):
        self._wait = wait
        self._report = None

    def result(self) -> Report:
        """Wait for all reads to finish and return the report"""
        if self._report is None:
            self._report = self._wait()
        return self._report


class AsyncPendingTick:
    """A tick whose read tasks have been created"""

    def __init__(self, task: asyncio.Future):
        self._task = task

    async def result(self) -> Report:
        return await self._task


class BaseEngine:
    """Behavior common to synchronous and asynchronous engines"""

    def __init__(self, source: SensorSource):
        self.source = source

    def __repr__(self):
        return f"{type(self).__name__}({self.source!r})"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *_):
        self.close()

    def close(self):
        pass

    def discover(self) -> tuple[Sensor, ...]:
        return self.source.discover()

    def _refresh(self):
        try:
            self.source.refresh()
        except Exception:
            log.debug("error refreshing %r", self.source, exc_info=True)

    def _read(self, sensor: Sensor) -> Reading:
        try:
            return self.source.read_value(sensor)
        except Exception:
            log.debug("error reading sensor %d", sensor.id, exc_info=True)
            return Reading(sensor)

    def _assemble(self, readings: Iterable[Reading], start_time: float, origin: float) -> Report:
        readings = tuple(sorted(readings, key=lambda reading: reading.sensor.id))
        names = tuple(self.source.sensor_name(reading.sensor) for reading in readings)
        lines = format_lines(readings, names)
        elapsed = time.perf_counter() - origin
        text = lines + format_elapsed(elapsed)
        return Report(readings, names, TickMetrics(start_time, elapsed), text)


class SamplingEngine(BaseEngine):
    """Base class for a synchronous engine"""

    def start(self, sensors: Sequence[Sensor]) -> PendingTick:
        """Launch the reads of all sensors. Call `result()` on the returned object to get the report"""
        start_time, origin = time.time(), time.perf_counter()
        join = self._launch(tuple(sensors))
        return PendingTick(lambda: self._assemble(join(), start_time, origin))

    def tick(self, sensors: Sequence[Sensor]) -> Report:
        return self.start(sensors).result()

    def _launch(self, sensors: tuple[Sensor, ...]) -> Callable[[], Iterable[Reading]]:
        """Mandatory override for concrete sub-class"""
        raise NotImplementedError


class SequentialEngine(SamplingEngine):
    """Reads the sensors one after the other (no overlap of I/O latency)"""

    def _launch(self, sensors):
        self._refresh()
        readings = [self._read(sensor) for sensor in sensors]
        return lambda: readings


class ThreadEngine(SamplingEngine):
    """Reads each sensor in a thread pool task"""

    def __init__(self, source: SensorSource, workers: Optional[int] = None):
        super().__init__(source)
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tempwatch")

    def close(self):
        self.executor.shutdown()

    def _launch(self, sensors):
        self._refresh()
        futures = [self.executor.submit(self._read, sensor) for sensor in sensors]

        def join():
            concurrent.futures.wait(futures)
            return [future.result() for future in futures]

        return join


class WorkerEngine(SamplingEngine):
    """
    A single long lived worker thread owns the source and serves tick
    requests received on a queue. The report is sent back on a response
    queue. Only one request may be outstanding at a time.
    """

    def __init__(self, source: SensorSource):
        super().__init__(source)
        self._requests = queue.Queue(maxsize=1)
        self._responses = queue.Queue(maxsize=1)
        self._outstanding = False
        self._worker = threading.Thread(target=self._serve, name="tempwatch-worker", daemon=True)
        self._worker.start()

    def close(self):
        if self._worker.is_alive():
            self._requests.put(None)
            self._worker.join()

    def _serve(self):
        while True:
            request = self._requests.get()
            if request is None:
                break
            sensors, start_time, origin = request
            try:
                self._refresh()
                readings = [self._read(sensor) for sensor in sensors]
                response = self._assemble(readings, start_time, origin)
            except Exception as error:
                response = error
            self._responses.put(response)

    def start(self, sensors: Sequence[Sensor]) -> PendingTick:
        if self._outstanding:
            raise RuntimeError("previous tick result not consumed yet")
        if not self._worker.is_alive():
            raise RuntimeError("worker is closed")
        self._outstanding = True
        self._requests.put((tuple(sensors), time.time(), time.perf_counter()))
        return PendingTick(self._wait_response)

    def _wait_response(self) -> Report:
        response = self._responses.get()
        self._outstanding = False
        if isinstance(response, Exception):
            raise response
        return response


class AsyncEngine(BaseEngine):
    """Reads each sensor in its own asyncio task"""

    async def start(self, sensors: Sequence[Sensor]) -> AsyncPendingTick:
        start_time, origin = time.time(), time.perf_counter()
        await asyncio.to_thread(self._refresh)
        tasks = [asyncio.create_task(self._aread(sensor)) for sensor in sensors]

        async def join():
            readings = await asyncio.gather(*tasks)
            return self._assemble(readings, start_time, origin)

        pending = AsyncPendingTick(asyncio.create_task(join()))
        # give the tasks a chance to hand their reads to the threads
        await asyncio.sleep(0)
        return pending

    async def tick(self, sensors: Sequence[Sensor]) -> Report:
        pending = await self.start(sensors)
        return await pending.result()

    async def _aread(self, sensor: Sensor) -> Reading:
        return await asyncio.to_thread(self._read, sensor)


ENGINES = {
    "sequential": SequentialEngine,
    "thread": ThreadEngine,
    "worker": WorkerEngine,
    "async": AsyncEngine,
}


def make_engine(kind: str, source: SensorSource, workers: Optional[int] = None) -> BaseEngine:
    """Create an engine by name ("sequential", "thread", "worker" or "async")"""
    try:
        factory = ENGINES[kind]
    except KeyError:
        raise ValueError(f"Unknown engine {kind!r}") from None
    if factory is ThreadEngine:
        return factory(source, workers=workers)
    return factory(source)
