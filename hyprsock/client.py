"""The ``hyprsock`` command line tool."""

import argparse
import sys
from logging import Logger

import shtab

from .command import Command, HyprctlSocket
from .events import EventSocket
from .logging_setup import get_logger, init_logger
from .models import ConfigurationError, CtlFlag, ExitCode

__all__ = ["get_parser", "main", "run_client"]


def get_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="hyprsock", description="Send commands to Hyprland or watch its events")
    shtab.add_argument_to(parser, ["--print-completion"])
    parser.add_argument("-j", "--json", action="store_true", help="request a JSON response")
    parser.add_argument("-f", "--flag", action="append", default=[], help="raw flag text to prefix the command with")
    parser.add_argument("-s", "--socket", help="socket path, overrides the environment discovery").complete = shtab.FILE
    parser.add_argument("-e", "--events", action="store_true", help="print events instead of sending a command")
    parser.add_argument("-n", "--count", type=int, default=0, help="stop after COUNT events")
    parser.add_argument("--raw", action="store_true", help="print event lines unparsed")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    parser.add_argument("words", nargs="*", help="command words (eg: dispatch exec kitty)")
    return parser


def _send_command(args: argparse.Namespace, log: Logger) -> ExitCode:
    flags = [CtlFlag.JSON] if args.json else []
    flags.extend(CtlFlag.custom(text) for text in args.flag)
    command = Command.build(flags, args.words)
    ctl = HyprctlSocket.new_from_path(args.socket, log) if args.socket else HyprctlSocket.new_from_env(log)
    with ctl:
        response = ctl.run_hyprctl(command)
    print(response.decode("utf-8", errors="replace").rstrip("\n"))
    return ExitCode.SUCCESS


def _watch_events(args: argparse.Namespace, log: Logger) -> ExitCode:
    events = EventSocket.new_from_path(args.socket, log) if args.socket else EventSocket.new_from_env(log)
    with events:
        for count, record in enumerate(events, 1):
            if args.raw:
                print(record.data.decode("utf-8", errors="replace"), flush=True)
            elif parsed := record.try_parse():
                name, payload = parsed
                print(f"{name}: {payload}", flush=True)
            else:
                log.warning("Skipping unparseable event %r", record.data)
            if count == args.count:
                return ExitCode.SUCCESS
    log.warning("Event stream closed by the compositor")
    return ExitCode.STREAM_ENDED


def run_client(argv: list[str] | None = None) -> ExitCode:
    """Run the CLI, return the exit code."""
    parser = get_parser()
    args = parser.parse_args(argv)
    init_logger(force_debug=args.debug)
    log = get_logger("client")

    if not args.events and not args.words:
        parser.print_usage(sys.stderr)
        return ExitCode.USAGE_ERROR

    try:
        if args.events:
            return _watch_events(args, log)
        return _send_command(args, log)
    except ConfigurationError as e:
        log.critical("%s", e)
        return ExitCode.ENV_ERROR
    except OSError as e:
        log.critical("Cannot talk to Hyprland: %s", e)
        return ExitCode.CONNECTION_ERROR


def main() -> None:
    """Entry point of the ``hyprsock`` script."""
    sys.exit(run_client())
