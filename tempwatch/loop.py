#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

"""
Display loops.

The loop discovers the sensors once and then, forever: starts a tick,
repaints the display while the reads are in flight, waits for the report,
writes it and pauses.

```python
from tempwatch.engine import ThreadEngine
from tempwatch.loop import DisplayLoop, Pacing
from tempwatch.source import ThermalSource

with ThreadEngine(ThermalSource()) as engine:
    DisplayLoop(engine, pacing=Pacing.FIXED_PERIOD).run()
```
"""

import asyncio
import enum
import logging
import threading
import time

from .display import Display, Terminal
from .engine import AsyncEngine, Report, SamplingEngine
from .sensor import Sensor
from .types import Callable, Optional

log = logging.getLogger(__name__)

DELAY = 1.0


class Pacing(enum.Enum):
    # sleep a fixed delay after each tick: cadence is tick duration + delay
    FIXED_DELAY = "delay"
    # sleep until the start of the tick + period
    FIXED_PERIOD = "period"


class Session:
    """State owned by a loop: the sensors discovered at startup and the display"""

    def __init__(self, sensors: tuple[Sensor, ...], display: Display):
        self.sensors = sensors
        self.display = display
        self.ticks = 0

    def __repr__(self):
        return f"{type(self).__name__}(sensors={len(self.sensors)}, ticks={self.ticks})"


def pause_time(pacing: Pacing, interval: float, tick_start: float, now: float) -> float:
    """Seconds to sleep before the next tick"""
    if pacing == Pacing.FIXED_PERIOD:
        return max(0.0, tick_start + interval - now)
    return interval


class _Loop:
    def __init__(
        self,
        engine,
        display: Optional[Display] = None,
        interval: float = DELAY,
        pacing: Pacing = Pacing.FIXED_DELAY,
        render: Callable[[Report], str] = str,
        overlap_repaint: bool = True,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.engine = engine
        self.display = Terminal() if display is None else display
        self.interval = interval
        self.pacing = Pacing(pacing)
        self.render = render
        self.overlap_repaint = overlap_repaint
        self.clock = clock
        self.session: Optional[Session] = None
        self._stop = threading.Event()

    def __repr__(self):
        return f"{type(self).__name__}({self.engine!r}, pacing={self.pacing.value}, interval={self.interval})"

    def stop(self):
        """Ask the loop to finish after the current tick. A pending pause ends at once"""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _open_session(self, sensors) -> Session:
        self.session = Session(sensors, self.display)
        log.info("sampling %d sensor(s) every %ss (%s)", len(sensors), self.interval, self.pacing.value)
        return self.session

    def _done(self, session: Session, max_ticks: Optional[int]) -> bool:
        return self.stopped or (max_ticks is not None and session.ticks >= max_ticks)

    def _show(self, session: Session, report: Report):
        session.display.write(self.render(report))
        session.ticks += 1

    def _pause(self, tick_start: float) -> float:
        return pause_time(self.pacing, self.interval, tick_start, self.clock())


class DisplayLoop(_Loop):
    """Drives a synchronous [`SamplingEngine`][tempwatch.engine.SamplingEngine]"""

    def __init__(self, engine: SamplingEngine, *args, sleep: Optional[Callable[[float], None]] = None, **kwargs):
        super().__init__(engine, *args, **kwargs)
        self.sleep = self._wait if sleep is None else sleep

    def _wait(self, pause: float):
        # returns early when stop() is called
        self._stop.wait(pause)

    def run(self, max_ticks: Optional[int] = None) -> Session:
        """
        Run until stopped (or until max_ticks ticks are shown).

        Raises:
            DiscoveryError: if the sensors cannot be discovered
        """
        session = self._open_session(self.engine.discover())
        while not self._done(session, max_ticks):
            tick_start = self.clock()
            self.step(session)
            if self._done(session, max_ticks):
                break
            if (pause := self._pause(tick_start)) > 0:
                self.sleep(pause)
        return session

    def step(self, session: Session) -> Report:
        if not self.overlap_repaint:
            session.display.repaint()
        pending = self.engine.start(session.sensors)
        if self.overlap_repaint:
            session.display.repaint()
        report = pending.result()
        self._show(session, report)
        return report


class AsyncDisplayLoop(_Loop):
    """Drives an [`AsyncEngine`][tempwatch.engine.AsyncEngine]"""

    def __init__(self, engine: AsyncEngine, *args, sleep: Optional[Callable] = None, **kwargs):
        super().__init__(engine, *args, **kwargs)
        self.sleep = self._wait if sleep is None else sleep

    async def _wait(self, pause: float):
        await asyncio.to_thread(self._stop.wait, pause)

    async def run(self, max_ticks: Optional[int] = None) -> Session:
        """
        Run until stopped (or until max_ticks ticks are shown).

        Raises:
            DiscoveryError: if the sensors cannot be discovered
        """
        sensors = await asyncio.to_thread(self.engine.discover)
        session = self._open_session(sensors)
        while not self._done(session, max_ticks):
            tick_start = self.clock()
            await self.step(session)
            if self._done(session, max_ticks):
                break
            if (pause := self._pause(tick_start)) > 0:
                await self.sleep(pause)
        return session

    async def step(self, session: Session) -> Report:
        if not self.overlap_repaint:
            session.display.repaint()
        pending = await self.engine.start(session.sensors)
        if self.overlap_repaint:
            session.display.repaint()
        report = await pending.result()
        self._show(session, report)
        return report
