#
# This file is part of the tempwatch project
#
# Copyright (c) 2026 Tiago Coutinho
# Distributed under the GPLv3 license. See LICENSE for more info.

import argparse
import asyncio
import json
import logging
import sys

from .display import Display, Terminal
from .engine import ENGINES, AsyncEngine, make_engine
from .loop import DELAY, AsyncDisplayLoop, DisplayLoop, Pacing
from .source import SOURCES, DiscoveryError, ThermalSource, make_source
from .thermal import ThermalZone

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def positive_float(text):
    value = float(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0 (got {text})")
    return value


def positive_int(text):
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 (got {text})")
    return value


def source_from_args(args):
    if args.source == "sysfs":
        kwargs = {"with_labels": args.labels}
        if args.root is not None:
            kwargs["root"] = args.root
        return make_source("sysfs", **kwargs)
    return make_source(args.source)


def render_json(report) -> str:
    return json.dumps(report.as_dict())


def ls(args):
    source = source_from_args(args)
    sensors = source.discover()
    readings = source.read_all(sensors)
    print(f"{'#':>3} {'Name':24} {'Type':20} {'Value':>10} {'Locator'}")
    for reading in readings:
        sensor = reading.sensor
        stype = "-"
        if isinstance(source, ThermalSource):
            try:
                stype = ThermalZone(sensor.locator.parent).type
            except OSError:
                pass
        print(f"{sensor.id:>3} {source.sensor_name(sensor):24} {stype:20} {reading.text or '-':>10} {sensor.locator}")


def watch(args):
    source = source_from_args(args)
    display = Display() if args.no_clear else Terminal()
    render = render_json if args.format == "json" else str
    options = {
        "display": display,
        "interval": args.interval,
        "pacing": Pacing(args.pacing),
        "render": render,
    }
    with make_engine(args.engine, source, workers=args.workers) as engine:
        if isinstance(engine, AsyncEngine):
            asyncio.run(AsyncDisplayLoop(engine, **options).run(max_ticks=args.count))
        else:
            DisplayLoop(engine, **options).run(max_ticks=args.count)


def cli():
    parser = argparse.ArgumentParser(prog="tempwatch", description="live hardware temperatures")
    parser.add_argument("--log-level", choices=["debug", "info", "warning", "error"], default="warning")
    parser.add_argument("--source", choices=sorted(SOURCES), default="sysfs", help="where temperatures come from")
    parser.add_argument("--root", default=None, help="thermal sysfs directory (sysfs source only)")
    parser.add_argument("--labels", action="store_true", help="name thermal zones by their type")
    sub_parsers = parser.add_subparsers(
        title="sub-commands", description="valid sub-commands", help="select one command", dest="command"
    )
    watch = sub_parsers.add_parser("watch", help="show temperatures, refreshing in place (default)")
    watch.add_argument("--interval", type=positive_float, default=DELAY, help="seconds between ticks")
    watch.add_argument("--pacing", choices=[pacing.value for pacing in Pacing], default=Pacing.FIXED_DELAY.value)
    watch.add_argument("--engine", choices=list(ENGINES), default="async")
    watch.add_argument("--workers", type=positive_int, default=None, help="thread pool size (thread engine)")
    watch.add_argument("--format", choices=["text", "json"], default="text")
    watch.add_argument("--count", type=positive_int, default=None, help="stop after this many ticks")
    watch.add_argument("--no-clear", action="store_true", help="append reports instead of repainting")
    sub_parsers.add_parser("ls", help="list sensors")
    return parser


def run(args):
    if args.command == "ls":
        ls(args)
    else:
        watch(args)


def main(args=None):
    argv = sys.argv[1:] if args is None else list(args)
    parser = cli()
    args = parser.parse_args(args=argv)
    if args.command is None:
        # watch is the default command
        args = parser.parse_args(args=[*argv, "watch"])
    logging.basicConfig(level=args.log_level.upper(), format=LOG_FORMAT)
    try:
        run(args)
    except DiscoveryError as error:
        log.debug("discovery failed", exc_info=True)
        print(f"tempwatch: {error}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\rCtrl-C pressed. Bailing out")
    return 0


if __name__ == "__main__":
    sys.exit(main())
