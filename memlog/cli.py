#!/usr/bin/env python3
"""
memlog - demo driver for the in-memory log console.

This module implements the command-line interface for memlog. It produces
a steady stream of sample log records at every level so the stores and the
dashboard can be exercised without embedding them in a real application.

Responsibilities:
    - Run a live dashboard over a background producer (demo)
    - Print a merged timeline to stdout without a terminal UI (dump)

Usage:
    python -m memlog <command> [options]

Examples:
    python -m memlog demo --capacity 2048
    python -m memlog dump --count 60 --levels warning,error
"""

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

from .config import LogConfig, load_dotenv
from .handler import install, uninstall
from .model import Level
from .tui.backend import TerminalInitError
from .tui.views import Dashboard
from .utils.trace import TraceCapture

logger = logging.getLogger("memlog.demo")

# ============================================================
# Sample producer
# ============================================================

# Delay between producer ticks in the live demo
TICK_INTERVAL = 0.035


def produce_tick(counter: int) -> None:
    """
    Emit the sample records for one producer tick.

    Every tick logs at DEBUG; every 11th also at INFO, every 21st at
    WARNING and every 51st at ERROR.
    """
    logger.debug("This is debug %d", counter)
    if counter % 11 == 0:
        logger.info("This is info %d", counter)
    if counter % 21 == 0:
        logger.warning("This is warning %d", counter)
    if counter % 51 == 0:
        logger.error("This is error %d", counter)


def run_producer(stop: threading.Event, interval: float = TICK_INTERVAL) -> None:
    """Background thread: produce ticks until `stop` is set."""
    counter = 1
    while not stop.wait(interval):
        produce_tick(counter)
        counter += 1


# ============================================================
# Commands
# ============================================================

def run_demo(config: LogConfig) -> int:
    """
    Open the dashboard over a live sample producer.

    Returns:
        int: Exit status, 1 if the terminal could not be initialised.
    """
    handler = install(config)
    stop = threading.Event()
    producer = threading.Thread(
        target=run_producer, args=(stop,), name="memlog-demo-producer", daemon=True
    )
    producer.start()

    dashboard = Dashboard(
        handler.stores,
        app_name=config.app_name,
        poll_interval=config.poll_interval,
        trace=TraceCapture(config.trace_dir),
    )
    try:
        dashboard.start()
    except TerminalInitError as exc:
        print(f"[memlog] {exc}", file=sys.stderr)
        return 1
    finally:
        stop.set()
        producer.join()
        uninstall(handler)

    return 0


def format_entry(entry) -> str:
    """Render one merged entry as a plain text line."""
    return f"{entry.clock} {entry.level.name:<7} {entry.location:<20} {entry.message}"


def run_dump(config: LogConfig, count: int, levels: List[Level]) -> int:
    """
    Produce `count` ticks synchronously and print the merged timeline.

    Returns:
        int: Exit status (always 0).
    """
    handler = install(config)
    try:
        for counter in range(1, count + 1):
            produce_tick(counter)
    finally:
        uninstall(handler)

    for entry in handler.stores.merge(levels):
        print(format_entry(entry))
    return 0


# ============================================================
# Command-Line Argument Parsing
# ============================================================

def parse_levels(value: str) -> List[Level]:
    """argparse type for a comma-separated list of level names."""
    try:
        return [Level.parse(name) for name in value.split(",") if name.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    """
    Build and configure the top-level argument parser.

    Options left unset fall back to the MEMLOG_* environment variables,
    then to the LogConfig defaults.

    Returns:
        argparse.ArgumentParser: Configured parser ready to parse sys.argv.
    """
    # Store options shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--capacity", type=int,
                        help="Entries kept per level (env: MEMLOG_CAPACITY)")
    common.add_argument("--level", type=Level.parse,
                        help="Lowest level captured (env: MEMLOG_LEVEL)")

    parser = argparse.ArgumentParser(
        prog="memlog",
        description="In-memory log console demo",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
    )

    # --- demo: live dashboard ---
    demo_parser = subparsers.add_parser(
        "demo",
        parents=[common],
        help="Open the live log dashboard over a sample producer",
    )
    demo_parser.add_argument("--app-name",
                             help="Title bar caption (env: MEMLOG_APP_NAME)")
    demo_parser.add_argument("--trace-dir", type=Path,
                             help="Directory for Ctrl+T capture files")

    # --- dump: plain text timeline ---
    dump_parser = subparsers.add_parser(
        "dump",
        parents=[common],
        help="Produce sample records and print the merged timeline",
    )
    dump_parser.add_argument("--count", type=int, default=100,
                             help="Producer ticks to run (default: 100)")
    dump_parser.add_argument(
        "--levels",
        type=parse_levels,
        default=list(Level),
        help="Comma-separated levels to include (default: all)",
    )

    return parser


def resolve_config(args) -> LogConfig:
    """Merge environment settings with command-line overrides."""
    config = LogConfig.from_env()
    if args.capacity is not None:
        config.capacity = args.capacity
    if args.level is not None:
        config.level = args.level
    if getattr(args, "app_name", None):
        config.app_name = args.app_name
    if getattr(args, "trace_dir", None):
        config.trace_dir = args.trace_dir
    return config


# ============================================================
# Entry Point
# ============================================================

def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the memlog CLI.

    Exit Codes:
        0: Success
        1: Configuration or terminal error
    """
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except ValueError as exc:
        print(f"[memlog] {exc}", file=sys.stderr)
        sys.exit(1)

    if args.command == "demo":
        sys.exit(run_demo(config))

    if args.command == "dump":
        sys.exit(run_dump(config, args.count, args.levels))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
