"""
memlog - In-memory log console.

This package buffers recent log records per severity level in bounded
memory and renders them live in a curses terminal dashboard that merges
the enabled levels into one chronological view.

Purpose:
    Long-running processes often need a quick look at what they have been
    logging without writing to disk or shipping logs anywhere. memlog keeps
    the last N records of each level in memory and shows them on demand.

Package Structure:
    - model.py: Severity levels and the log entry record
    - store.py: Bounded per-level stores and the level table
    - merger.py: Chronological k-way merge across stores
    - handler.py: logging.Handler feeding the stores
    - config.py: Settings object and environment loading
    - tui/: Terminal dashboard, layout helpers and curses backend
    - utils/: Allocation capture toggle
    - cli.py: Demo driver and entry point

Usage:
    Run as a module: python -m memlog <command>

Example:
    >>> handler = install(LogConfig(capacity=2048))
    >>> Dashboard(handler.stores).start()
"""

from .config import LogConfig
from .handler import MemoryLogHandler, install, uninstall
from .merger import merge_chains
from .model import Level, LogEntry, parse_location
from .store import BoundedLogStore, LevelStores
from .tui.backend import TerminalInitError
from .tui.views import Dashboard

__all__ = [
    "BoundedLogStore",
    "Dashboard",
    "Level",
    "LevelStores",
    "LogConfig",
    "LogEntry",
    "MemoryLogHandler",
    "TerminalInitError",
    "install",
    "merge_chains",
    "parse_location",
    "uninstall",
]
