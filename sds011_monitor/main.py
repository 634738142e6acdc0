#!/usr/bin/env python3
"""
SDS-011 Monitor - CLI Entry Point

Usage:
    sds011-monitor -f -d                  # firmware date and device id
    sds011-monitor -q -w 10 -l 0          # query every 10 s, endless
    sds011-monitor -M w -P 5              # wake up, measure every 5 minutes
    python -m sds011_monitor.main -v      # debug output incl. TX/RX bytes
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from .libs.sds011_protocol import (
    SDS011Error,
    WorkMode,
    parse_device_id,
)
from .monitor import MonitorAborted, SDS011Monitor

logger = logging.getLogger(__name__)

RED = "\033[1;31m"
GREEN = "\033[1;92m"
YELLOW = "\033[1;93m"
BLUE = "\033[1;34m"
RESET = "\033[00m"

LEVEL_COLORS = {
    "error": RED,
    "success": GREEN,
    "warning": YELLOW,
    "info": BLUE,
}


class ConsolePrinter:
    """Colored console output, plain when color is disabled."""

    def __init__(self, color: bool = True, stream=None):
        self.color = color
        self.stream = stream or sys.stdout

    def __call__(self, level: str, message: str) -> None:
        color = LEVEL_COLORS.get(level) if self.color else None
        if color:
            message = f"{color}{message}{RESET}"
        print(message, file=self.stream, flush=True)


def _work_mode(value: str) -> WorkMode:
    if value[:1].lower() == "s":
        return WorkMode.SLEEP
    if value[:1].lower() == "w":
        return WorkMode.WORK
    raise argparse.ArgumentTypeError(f"invalid working mode {value} [ s or w ]")


def _working_period(value: str) -> int:
    try:
        period = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid working period {value}") from None
    if not 0 <= period <= 30:
        raise argparse.ArgumentTypeError(f"invalid working period {period} minutes. [ 0 - 30 ]")
    return period


def _device_id(value: str) -> int:
    if not value.lower().startswith("0x"):
        raise argparse.ArgumentTypeError(f"Invalid Device Id {value}, use 0xaabb")
    try:
        return parse_device_id(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def _delay(value: str) -> int:
    try:
        delay = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay {value}") from None
    if delay < 3:
        raise argparse.ArgumentTypeError(f"Delay of {delay} is less than 3 seconds")
    return delay


def _loop(value: str) -> int:
    try:
        loop = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid loop count {value}") from None
    if not 0 <= loop <= 999:
        raise argparse.ArgumentTypeError(f"Loop amount out of range {value}")
    return loop


def _humidity(value: str) -> float:
    try:
        humidity = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid Humidity : {value}") from None
    if not 0 <= humidity <= 100:
        raise argparse.ArgumentTypeError(f"Invalid Humidity : {value} [0 - 100%]")
    return humidity


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sds011-monitor",
        description=f"{SDS011Monitor.description} (version {SDS011Monitor.version})",
    )

    g = p.add_argument_group("SDS-011 display options")
    g.add_argument("-m", dest="show_work_mode", action="store_true", help="get current working mode")
    g.add_argument("-p", dest="show_working_period", action="store_true", help="get current working period")
    g.add_argument("-r", dest="show_reporting_mode", action="store_true", help="get current reporting mode")
    g.add_argument("-d", dest="show_device_id", action="store_true", help="get Device ID")
    g.add_argument("-f", dest="show_firmware", action="store_true", help="get firmware version")
    g.add_argument("-q", dest="query_mode", action="store_true",
                   help="use query reporting mode (default: continuous)")

    s = p.add_argument_group("SDS-011 settings")
    s.add_argument("-M", dest="work_mode", type=_work_mode, metavar="S|W",
                   help="set working mode (sleep or work)")
    s.add_argument("-P", dest="working_period", type=_working_period, metavar="0-30",
                   help="set working period (minutes)")
    s.add_argument("-D", dest="new_device_id", type=_device_id, metavar="0xaabb",
                   help="set new device ID")

    o = p.add_argument_group("program settings")
    o.add_argument("-l", dest="loop", type=_loop, default=10,
                   help="loop x times, 0 = endless (default: %(default)s)")
    o.add_argument("-w", dest="delay", type=_delay, default=5,
                   help="x seconds between query data (default: %(default)s)")
    o.add_argument("-H", dest="humidity", type=_humidity, default=0.0,
                   help="set correction for humidity (e.g. 33.5 for 33.5%%)")
    o.add_argument("-u", dest="port", default="/dev/ttyUSB0",
                   help="serial device (default: %(default)s)")
    o.add_argument("-b", dest="no_color", action="store_true", help="no color output")
    o.add_argument("-v", dest="verbose", action="store_true", help="verbose / debug info")
    return p


def install_signal_handlers(monitor: SDS011Monitor) -> None:
    """Stop the monitor cleanly on SIGINT / SIGTERM."""
    def handler(signum, frame):
        logger.debug(f"Signal {signum} received")
        monitor.abort()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    printer = ConsolePrinter(color=not args.no_color)
    if args.humidity >= 100:
        printer("warning", "Humidity of 100% saturates the correction, PM2.5 will read inf")
    parameters = {
        key: getattr(args, key)
        for key in (
            "show_firmware", "show_device_id", "show_work_mode",
            "show_working_period", "show_reporting_mode", "query_mode",
            "work_mode", "working_period", "new_device_id",
            "loop", "delay", "humidity",
        )
    }
    monitor = SDS011Monitor(
        parameters=parameters,
        hardware_config={"port": args.port},
        printer=printer,
    )
    install_signal_handlers(monitor)

    try:
        monitor.setup()
        monitor.run()
    except MonitorAborted:
        printer("warning", "\nStopping SDS-011 monitor")
    except SDS011Error as e:
        printer("error", f"Error: {e}")
        return 1
    finally:
        monitor.teardown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
