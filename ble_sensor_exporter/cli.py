"""Command line entry point: ``scan``, ``poll`` and ``cli`` modes.

``scan`` lists nearby sensors whose advertised name starts with a prefix,
``poll`` reads every device from the YAML configuration on its own timer and
serves the readings as Prometheus metrics, and ``cli`` opens a raw command
console against a single device.

Usage: ble-sensor-exporter [--verbose] {scan,poll,cli} ...
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .acquisition import AcquisitionCycle, AcquisitionResult, AcquisitionTiming
from .config import ConfigError, DeviceConfig, load_config
from .console import InteractiveSession, StdinLineReader
from .const import (
    COMMAND_PACING,
    DEFAULT_CONFIG_PATH,
    DEFAULT_METRICS_PORT,
    DEFAULT_NAME_PREFIX,
    RESPONSE_WINDOW,
)
from .metrics import MetricsSink
from .runtime import DeviceFleet
from .scanner import DiscoveredDevice, DiscoveryScanner, ensure_adapter
from .uartsensor import DEFAULT_CONNECT_TIMEOUT

USAGE_HINT = "Command must be one of: scan, cli, or poll"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ble-sensor-exporter",
        description="Poll BLE UART sensors and export their readings as Prometheus metrics",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    scan = subparsers.add_parser("scan", help="List nearby sensors by advertised name")
    scan.add_argument(
        "--prefix",
        type=str,
        default=DEFAULT_NAME_PREFIX,
        help=f"Device name prefix to filter on (default: {DEFAULT_NAME_PREFIX!r})",
    )
    scan.set_defaults(handler=run_scan)

    poll = subparsers.add_parser("poll", help="Poll configured sensors and serve metrics")
    poll.add_argument(
        "--config",
        dest="config_path",
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the device configuration (default: {DEFAULT_CONFIG_PATH})",
    )
    poll.add_argument(
        "--port",
        type=int,
        default=DEFAULT_METRICS_PORT,
        help=f"Port for the /metrics endpoint (default: {DEFAULT_METRICS_PORT})",
    )
    poll.add_argument(
        "--response-window",
        type=float,
        default=RESPONSE_WINDOW,
        help=f"Seconds to collect replies after the last command (default: {RESPONSE_WINDOW})",
    )
    poll.add_argument(
        "--command-pacing",
        type=float,
        default=COMMAND_PACING,
        help=f"Seconds between request commands (default: {COMMAND_PACING})",
    )
    poll.add_argument(
        "--connect-timeout",
        type=float,
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f"Connection timeout in seconds (default: {DEFAULT_CONNECT_TIMEOUT:g})",
    )
    poll.set_defaults(handler=run_poll)

    console = subparsers.add_parser("cli", help="Send raw line commands to one sensor")
    console.add_argument("address", type=str, help="Device address to connect to")
    console.add_argument(
        "--connect-timeout",
        type=float,
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f"Connection timeout in seconds (default: {DEFAULT_CONNECT_TIMEOUT:g})",
    )
    console.set_defaults(handler=run_cli)
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def format_result(device: DeviceConfig, result: AcquisitionResult) -> str:
    """Render the one-line console summary for a finished cycle."""
    if not result.ok:
        return f"[E] poll {device.name}: {result.error}"
    stamp = result.completed_at.strftime("%Y-%m-%d %H:%M:%S") if result.completed_at else "-"
    temperature = f"{result.temperature_f:.2f}" if result.temperature_f is not None else "n/a"
    battery = f"{result.battery_mv}" if result.battery_mv is not None else "n/a"
    return f"[{stamp}] {device.name}   Temp: {temperature} F  Battery: {battery} mV"


def print_result(device: DeviceConfig, result: AcquisitionResult) -> None:
    print(format_result(device, result), flush=True)


def print_match(found: DiscoveredDevice) -> None:
    print(f"found device: {found.address} {found.rssi} {found.name}", flush=True)


async def run_scan(args: argparse.Namespace) -> None:
    print("scanning")
    print("Press ctrl+c to exit")
    scanner = DiscoveryScanner(args.prefix, on_match=print_match)
    await scanner.run()


async def run_poll(args: argparse.Namespace) -> None:
    devices = load_config(args.config_path).require_devices()

    sink = MetricsSink()
    sink.serve(args.port)
    print(f"Serving http at :{args.port}")

    await ensure_adapter()

    timing = AcquisitionTiming(
        connect_timeout=args.connect_timeout,
        command_pacing=args.command_pacing,
        response_window=args.response_window,
    )
    fleet = DeviceFleet(devices, AcquisitionCycle(sink, timing=timing), on_result=print_result)
    await fleet.run_forever()


async def run_cli(args: argparse.Namespace) -> None:
    session = InteractiveSession(args.address, connect_timeout=args.connect_timeout)
    await session.run(StdinLineReader())


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if args.command is None:
        print(USAGE_HINT)
        return 2

    configure_logging(args.verbose)
    try:
        asyncio.run(args.handler(args))
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\n[I] Caught Ctrl+C, stopping…")
    except (ConfigError, FileNotFoundError) as exc:
        print(f"[E] Configuration error: {exc}")
        return 1
    except Exception as exc:
        print(f"[E] {args.command} failed: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
