#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import io
import re
import threading
import time
from itertools import count

import pytest

from conftest import FakeDisplay, FakeSource
from tempwatch.display import CLEAR_SCREEN, Display, Terminal
from tempwatch.engine import AsyncEngine, SequentialEngine, ThreadEngine
from tempwatch.loop import DELAY, AsyncDisplayLoop, DisplayLoop, Pacing, Session, pause_time
from tempwatch.source import DiscoveryError, ThermalSource


class Sleeper:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


class AsyncSleeper(Sleeper):
    async def __call__(self, seconds):
        self.calls.append(seconds)


def ticking_clock(step=0.25):
    """A clock that advances step seconds every time it is read"""
    counter = count()
    return lambda: next(counter) * step


def test_pause_time():
    assert pause_time(Pacing.FIXED_DELAY, 1.0, tick_start=10.0, now=10.3) == 1.0
    assert pause_time(Pacing.FIXED_PERIOD, 1.0, tick_start=10.0, now=10.3) == pytest.approx(0.7)
    # overran: next tick starts right away
    assert pause_time(Pacing.FIXED_PERIOD, 1.0, tick_start=10.0, now=11.5) == 0.0


def test_pacing_from_text():
    assert Pacing("delay") is Pacing.FIXED_DELAY
    assert Pacing("period") is Pacing.FIXED_PERIOD


def test_run_fixed_delay():
    display, sleep = FakeDisplay(), Sleeper()
    with SequentialEngine(FakeSource({0: "a", 1: "b"})) as engine:
        loop = DisplayLoop(engine, display, sleep=sleep)
        session = loop.run(max_ticks=3)
    assert session.ticks == 3
    assert len(display.texts) == 3
    assert all(re.fullmatch(r"thermal_zone0: a\nthermal_zone1: b\n\d+\.\d+", text) for text in display.texts)
    # no pause after the last tick
    assert sleep.calls == [DELAY, DELAY]
    assert display.events.count(("repaint",)) == 3


def test_run_fixed_period():
    display, sleep = FakeDisplay(), Sleeper()
    with SequentialEngine(FakeSource({0: "a"})) as engine:
        loop = DisplayLoop(engine, display, interval=2, pacing="period", sleep=sleep, clock=ticking_clock(0.5))
        loop.run(max_ticks=2)
    # tick starts at t, pause computed at t + 0.5
    assert sleep.calls == [1.5]


def test_repaint_overlaps_reads():
    events = []
    display = FakeDisplay(events)
    with SequentialEngine(FakeSource({0: "a", 1: "b"}, events=events)) as engine:
        DisplayLoop(engine, display, sleep=Sleeper()).run(max_ticks=1)
    # sequential reads run at start, repaint happens after they were launched
    assert events == [("read", 0), ("read", 1), ("repaint",), ("write",)]


def test_repaint_before_reads():
    events = []
    display = FakeDisplay(events)
    with SequentialEngine(FakeSource({0: "a", 1: "b"}, events=events)) as engine:
        DisplayLoop(engine, display, overlap_repaint=False, sleep=Sleeper()).run(max_ticks=1)
    assert events == [("repaint",), ("read", 0), ("read", 1), ("write",)]


def test_stop():
    display = FakeDisplay()
    with ThreadEngine(FakeSource({0: "a"})) as engine:
        loop = DisplayLoop(engine, display, sleep=Sleeper())
        display.write = lambda text: loop.stop()
        session = loop.run()
    assert loop.stopped
    assert session.ticks == 1


def test_stop_during_pause():
    with SequentialEngine(FakeSource({0: "a"})) as engine:
        loop = DisplayLoop(engine, FakeDisplay(), interval=5)
        timer = threading.Timer(0.1, loop.stop)
        timer.start()
        start = time.monotonic()
        session = loop.run()
        timer.join()
    assert time.monotonic() - start < 2
    assert session.ticks == 1


def test_session_keeps_discovered_sensors(thermal_root):
    with SequentialEngine(ThermalSource(thermal_root)) as engine:
        loop = DisplayLoop(engine, FakeDisplay(), sleep=Sleeper())
        session = loop.run(max_ticks=2)
    assert loop.session is session
    assert isinstance(session, Session)
    assert [sensor.id for sensor in session.sensors] == [0, 2]
    assert repr(session) == "Session(sensors=2, ticks=2)"


def test_sensor_removed_stays_degraded(thermal_root):
    display = FakeDisplay()
    with SequentialEngine(ThermalSource(thermal_root)) as engine:
        loop = DisplayLoop(engine, display, sleep=Sleeper())
        session = loop._open_session(engine.discover())
        loop.step(session)
        (thermal_root / "thermal_zone2" / "temp").unlink()
        loop.step(session)
    assert display.texts[0].startswith("thermal_zone0: 45000\nthermal_zone2: 39500\n")
    assert display.texts[1].startswith("thermal_zone0: 45000\nthermal_zone2: \n")


def test_discovery_error_is_fatal(tmp_path):
    with SequentialEngine(ThermalSource(tmp_path / "missing")) as engine:
        loop = DisplayLoop(engine, FakeDisplay(), sleep=Sleeper())
        with pytest.raises(DiscoveryError):
            loop.run(max_ticks=1)


def test_display_failure_is_fatal():
    display = FakeDisplay()

    def write(text):
        raise BrokenPipeError(32, "Broken pipe")

    display.write = write
    with SequentialEngine(FakeSource({0: "a"})) as engine:
        with pytest.raises(BrokenPipeError):
            DisplayLoop(engine, display, sleep=Sleeper()).run(max_ticks=1)


def test_custom_render():
    display = FakeDisplay()
    with SequentialEngine(FakeSource({0: "a"})) as engine:
        DisplayLoop(engine, display, render=lambda report: report.names[0], sleep=Sleeper()).run(max_ticks=1)
    assert display.texts == ["thermal_zone0"]


@pytest.mark.asyncio
async def test_async_run():
    events = []
    display, sleep = FakeDisplay(events), AsyncSleeper()
    engine = AsyncEngine(FakeSource({1: "b", 0: "a"}, delays={0: 0.05}))
    loop = AsyncDisplayLoop(engine, display, interval=0.5, sleep=sleep)
    session = await loop.run(max_ticks=2)
    assert session.ticks == 2
    assert sleep.calls == [0.5]
    assert all(text.startswith("thermal_zone0: a\nthermal_zone1: b\n") for text in display.texts)
    # each tick repaints before it writes
    assert [event for event in events if event[0] != "read"] == [("repaint",), ("write",)] * 2


@pytest.mark.asyncio
async def test_async_stop():
    display = FakeDisplay()
    loop = AsyncDisplayLoop(AsyncEngine(FakeSource({0: "a"})), display, sleep=AsyncSleeper())
    display.write = lambda text: loop.stop()
    session = await loop.run()
    assert session.ticks == 1


@pytest.mark.asyncio
async def test_async_stop_during_pause():
    loop = AsyncDisplayLoop(AsyncEngine(FakeSource({0: "a"})), FakeDisplay(), interval=5)
    timer = threading.Timer(0.1, loop.stop)
    timer.start()
    start = time.monotonic()
    session = await loop.run()
    timer.join()
    assert time.monotonic() - start < 2
    assert session.ticks == 1


def test_display():
    stream = io.StringIO()
    display = Display(stream)
    display.repaint()
    display.write("thermal_zone0: 1\n0.1")
    assert stream.getvalue() == "thermal_zone0: 1\n0.1\n"


def test_terminal():
    stream = io.StringIO()
    terminal = Terminal(stream)
    terminal.repaint()
    terminal.write("x")
    terminal.repaint()
    assert stream.getvalue() == f"{CLEAR_SCREEN}x\n{CLEAR_SCREEN}"


def test_display_defaults_to_stdout(capsys):
    Display().write("hello")
    assert capsys.readouterr().out == "hello\n"
