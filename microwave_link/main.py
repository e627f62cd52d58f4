"""Command-line front end for the microwave keypad controller.

Opens the port, performs one action, closes the port. Usage:

    python run.py --port /dev/ttyACM0 run 01:30 --power 50
    python run.py --port COM3 stop
    python run.py --port COM3 send "hold 1"
    python run.py --simulate status

Settings not given on the command line come from the JSON config file
(``--save-config`` writes the effective ones back).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from microwave_link import api
from microwave_link.core import configio
from microwave_link.core.logger import APP_LOGGER, configure_file_logging, set_verbose
from microwave_link.core.status import Status, describe_status
from microwave_link.core.version import APP_VERSION
from microwave_link.drivers.arduino_driver import SerialLink
from microwave_link.drivers.sim_device import SIM_PORT, SimulatedMicrowave


def simulated_link_factory(**kwargs) -> SerialLink:
    """SerialLink wired to an in-memory device; no reset wait needed."""
    return SerialLink(serial_factory=SimulatedMicrowave, reset_settle_s=0.0, **kwargs)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="microwave-link", description="Drive a microwave keypad through the Arduino keypad emulator.")
    parser.add_argument("--port", help="Serial port (e.g. COM3 or /dev/ttyACM0)")
    parser.add_argument("--baud", type=int, help=f"Baud rate (default: {configio.DEFAULT_SETTINGS['baud_rate']})")
    parser.add_argument("--ack-timeout", type=float, help="Seconds to wait for each command's acknowledgment")
    parser.add_argument("--config", type=Path, default=configio.DEFAULT_PATH, help="Settings file (JSON)")
    parser.add_argument("--save-config", action="store_true", help="Persist the effective port/baud/timeout settings")
    parser.add_argument("--log-file", type=Path, help="Also write a debug log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every command exchange")
    parser.add_argument("--simulate", action="store_true", help="Talk to a simulated device instead of a serial port")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    sub = parser.add_subparsers(dest="command", required=True)
    run_p = sub.add_parser("run", help="Enter cook time and power level")
    run_p.add_argument("time", help="Cook time as MM:SS (e.g. 01:30)")
    run_p.add_argument("--power", type=int, default=100, help="Power percent, 10..100 in steps of 10 (default: 100)")
    sub.add_parser("stop", help="Press the stop key")
    send_p = sub.add_parser("send", help="Send a raw command line (e.g. 'press start')")
    send_p.add_argument("text")
    sub.add_parser("status", help="Print the firmware status line")
    return parser


def _report(status: Status, action: str) -> bool:
    if status == Status.SUCCESS:
        print(f"[SUCCESS] {action}")
        return True
    print(f"[FAILED]  {action} - Error: {describe_status(status)} ({int(status)})", file=sys.stderr)
    return False


def _load_settings(args) -> dict:
    cfg = configio.load_config(args.config) if args.config.exists() else None
    cfg = dict(cfg or {})
    # Command-line values win, and go through the same checks as the file
    if args.port:
        cfg["port"] = args.port
    if args.baud is not None:
        cfg["baud_rate"] = args.baud
    if args.ack_timeout is not None:
        cfg["ack_timeout_s"] = args.ack_timeout
    return configio.resolve_settings(cfg)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_verbose(True)
    if args.log_file:
        configure_file_logging(args.log_file)

    settings = _load_settings(args)
    if args.simulate:
        port, link_factory = SIM_PORT, simulated_link_factory
    else:
        port, link_factory = settings["port"], SerialLink
        if not port:
            parser.error("--port is required (or set \"port\" in the config file)")
        if args.save_config:
            saved = configio.save_config(settings, args.config)
            if saved:
                APP_LOGGER.info(f"Saved settings to {saved}")

    handle = api.open_controller(port, settings["baud_rate"], settings["ack_timeout_s"], link_factory=link_factory)
    if not handle:
        print(f"[FATAL] Failed to open microwave controller on {port}", file=sys.stderr)
        return 1

    try:
        if args.command == "run":
            ok = _report(api.run_microwave(handle, args.time, args.power), f"run({args.time!r}, {args.power})")
        elif args.command == "stop":
            ok = _report(api.stop_microwave(handle), "stop")
        elif args.command == "send":
            ok = _report(api.send_command(handle, args.text), f"send({args.text!r})")
        else:
            status, line = api.query_status(handle)
            ok = _report(status, "status")
            if ok and line:
                print(line)
    finally:
        api.close_controller(handle)

    return 0 if ok else 1


if __name__ == "__main__":  # pragma: no cover - manual entrypoint
    raise SystemExit(main())
