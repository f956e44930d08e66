"""
Command-line interface for compatproc.

This module provides the `compatproc` entry point: launching a process
(optionally following its output and waiting for its exit status), listing
owned and compatibility-layer processes, signalling them, and computing
CPU affinity masks.
"""

import argparse
import logging
import sys
import threading
import tomllib
from pathlib import Path
from typing import List, Optional

from ..config import get_config, set_config_path
from ..executor import DebugStreamBroadcaster, ProcessLauncher
from ..models import UNKNOWN_PID, AppConfig, SignalKind
from ..system import (
    ProcessEnumerator,
    SignalController,
    apply_affinity_mask,
    mask_from_list,
    mask_from_range,
)
from ..validation import ValidationError, handle_cli_error

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog="compatproc",
        description="Launch, find and signal compatibility-layer processes.",
    )
    parser.add_argument("--config", type=Path, help="Path to a config.toml file.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the log level from the configuration.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    launch = commands.add_parser("launch", help="Start a process.")
    launch.add_argument("cmdline", help="Command string, e.g. 'wine explorer /desktop'.")
    launch.add_argument("--cwd", type=Path, help="Working directory of the process.")
    launch.add_argument(
        "--env", action="append", default=[], metavar="KEY=VALUE",
        help="Environment override; may be repeated.",
    )
    launch.add_argument(
        "--follow", action="store_true",
        help="Print the process output and wait for it to exit.",
    )
    launch.add_argument(
        "--wait", action="store_true",
        help="Wait for the process to exit and return its exit status.",
    )

    commands.add_parser("ps", help="List processes owned by the current user.")
    commands.add_parser("compat-pids", help="List compatibility-layer pids.")

    signal_cmd = commands.add_parser("signal", help="Signal one process or the compatibility layer.")
    signal_cmd.add_argument("kind", choices=[kind.name.lower() for kind in SignalKind])
    target = signal_cmd.add_mutually_exclusive_group(required=True)
    target.add_argument("pid", nargs="?", type=int, help="Target pid.")
    target.add_argument(
        "--all", action="store_true", help="Signal every compatibility-layer process."
    )

    mask = commands.add_parser("mask", help="Compute a CPU affinity mask.")
    source = mask.add_mutually_exclusive_group(required=True)
    source.add_argument("cpus", nargs="?", help="Comma separated CPU indices, e.g. '0,2,3'.")
    source.add_argument(
        "--range", nargs=2, type=int, metavar=("FROM", "TO"),
        help="Select CPUs in the half-open range [FROM, TO).",
    )
    mask.add_argument("--hex", action="store_true", help="Print the mask in hexadecimal.")
    mask.add_argument("--apply", type=int, metavar="PID", help="Pin PID to the selected CPUs.")

    return parser


def _launch(args: argparse.Namespace, config: AppConfig) -> int:
    broadcaster = DebugStreamBroadcaster()
    if args.follow:
        broadcaster.add_listener(lambda line: print(line, flush=True))

    wait = args.wait or args.follow
    exited = threading.Event()
    status_holder: List[int] = []

    def on_terminate(status: int) -> None:
        status_holder.append(status)
        exited.set()

    launcher = ProcessLauncher(broadcaster, config.launcher)
    handle = launcher.start(
        args.cmdline,
        env=args.env or None,
        working_dir=args.cwd,
        on_terminate=on_terminate if wait else None,
    )
    if handle.pid == UNKNOWN_PID:
        launcher.shutdown(wait=False)
        return 1

    print(handle.pid, flush=True)
    if not wait:
        # The process outlives this command; only the pool is torn down.
        launcher.shutdown(wait=False, cancel_launches=True, kill_processes=False)
        return 0

    try:
        exited.wait()
        handle.join(timeout=config.launcher.shutdown_timeout)
    except KeyboardInterrupt:
        logger.warning(f"Interrupted, terminating PID {handle.pid}")
        SignalController().terminate(handle.pid)
        launcher.shutdown(wait=True, cancel_launches=True, kill_processes=True)
        return 130

    launcher.shutdown(wait=True, cancel_launches=False)
    status = status_holder[0]
    return status if 0 <= status < 256 else 1


def _list_owned(config: AppConfig) -> int:
    records = ProcessEnumerator(config.process).list_owned_processes()
    print(f"{'PID':>7} {'PPID':>7}  NAME")
    for record in records:
        print(f"{record.pid:>7} {record.ppid:>7}  {record.name}")
    return 0


def _list_compat(config: AppConfig) -> int:
    for pid in ProcessEnumerator(config.process).list_compat_layer_pids():
        print(pid)
    return 0


def _signal(args: argparse.Namespace, config: AppConfig) -> int:
    kind = SignalKind[args.kind.upper()]
    controller = SignalController(ProcessEnumerator(config.process))
    if args.all:
        results = controller.send_all(kind)
        for pid, delivered in sorted(results.items()):
            print(f"{pid} {'ok' if delivered else 'failed'}")
        return 0 if all(results.values()) else 1
    return 0 if controller.send(args.pid, kind) else 1


def _mask(args: argparse.Namespace, config: AppConfig) -> int:
    bits = config.affinity.mask_bits
    try:
        if args.range:
            value = mask_from_range(args.range[0], args.range[1], bits)
        else:
            value = mask_from_list(args.cpus, bits)
    except ValidationError as e:
        handle_cli_error(error=e, context="affinity mask", exit_code=2, logger=logger)

    print(format(value, "x") if args.hex else value)
    if args.apply is not None:
        return 0 if apply_affinity_mask(args.apply, value) else 1
    return 0


def main_cli(argv: Optional[List[str]] = None) -> int:
    """
    Main command-line interface for compatproc.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        if args.config:
            set_config_path(args.config)
        config = get_config()
    except (OSError, ValidationError, tomllib.TOMLDecodeError) as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
        handle_cli_error(error=e, context="configuration loading", exit_code=1, logger=logger)

    logging.basicConfig(
        level=getattr(logging, args.log_level or config.logging.level),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    if args.command == "launch":
        return _launch(args, config)
    if args.command == "ps":
        return _list_owned(config)
    if args.command == "compat-pids":
        return _list_compat(config)
    if args.command == "signal":
        return _signal(args, config)
    return _mask(args, config)


if __name__ == "__main__":
    sys.exit(main_cli())
