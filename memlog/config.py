"""
Configuration for the in-memory log console.

This module defines the settings object passed explicitly to whatever
creates the stores and the dashboard, plus the environment loading used
by the CLI.

Purpose:
    Capacity, capture level and console options are decided once at
    process start. Passing them as one object keeps producers and the
    dashboard free of hidden module-level state.

Environment Variables:
    MEMLOG_CAPACITY: Entries kept per level (default 1024)
    MEMLOG_LEVEL: Lowest level captured (default debug)
    MEMLOG_APP_NAME: Title bar caption prefix (default memlog)
    MEMLOG_POLL_INTERVAL: Seconds between dashboard checks (default 0.075)
    MEMLOG_TRACE_DIR: Directory for Ctrl+T capture files (default .)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .model import Level


@dataclass
class LogConfig:
    """
    Settings for the stores and the dashboard.

    Attributes:
        capacity: Maximum entries retained per level.
        level: Lowest severity captured by the logging handler.
        app_name: Shown in the dashboard title bar.
        poll_interval: Seconds between dashboard checks for new entries.
        trace_dir: Directory where capture files are written.
    """
    capacity: int = 1024
    level: Level = Level.DEBUG
    app_name: str = "memlog"
    poll_interval: float = 0.075
    trace_dir: Path = field(default_factory=lambda: Path("."))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LogConfig":
        """
        Build a configuration from MEMLOG_* environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Variables to read, os.environ by default.

        Raises:
            ValueError: If a variable is set to an unusable value. The
                        message names the variable.
        """
        env = os.environ if environ is None else environ
        config = cls()

        if env.get("MEMLOG_CAPACITY"):
            try:
                config.capacity = int(env["MEMLOG_CAPACITY"])
            except ValueError:
                raise ValueError(
                    f"MEMLOG_CAPACITY must be an integer, got {env['MEMLOG_CAPACITY']!r}"
                ) from None

        if env.get("MEMLOG_LEVEL"):
            try:
                config.level = Level.parse(env["MEMLOG_LEVEL"])
            except ValueError as exc:
                raise ValueError(f"MEMLOG_LEVEL: {exc}") from None

        if env.get("MEMLOG_APP_NAME"):
            config.app_name = env["MEMLOG_APP_NAME"]

        if env.get("MEMLOG_POLL_INTERVAL"):
            try:
                config.poll_interval = float(env["MEMLOG_POLL_INTERVAL"])
            except ValueError:
                raise ValueError(
                    "MEMLOG_POLL_INTERVAL must be a number of seconds, "
                    f"got {env['MEMLOG_POLL_INTERVAL']!r}"
                ) from None
            if config.poll_interval <= 0:
                raise ValueError("MEMLOG_POLL_INTERVAL must be positive")

        if env.get("MEMLOG_TRACE_DIR"):
            config.trace_dir = Path(env["MEMLOG_TRACE_DIR"]).expanduser()

        return config


def load_dotenv(path: Path = Path(".env")) -> None:
    """
    Load a .env file into os.environ if present.

    Lines are KEY=VALUE; blank lines and lines starting with # are skipped.
    Variables already set in the environment win over the file.

    Args:
        path: The file to read; a missing file is ignored.
    """
    if not path.exists():
        return

    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            # Skip empty lines and comments
            if not line or line.startswith("#"):
                continue
            # Skip malformed lines (no = sign)
            if "=" not in line:
                continue
            # Split on first = only (value might contain =)
            key, value = line.split("=", 1)
            os.environ.setdefault(key.strip(), value.strip())
