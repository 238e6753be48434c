"""
Data models for the in-memory log stores.

This module defines the severity levels and the log entry record shared by
the stores, the merge engine and the dashboard.

Purpose:
    Log entries from different severity levels need a common representation
    for merging, sorting, and display. This module defines that structure
    and the rule that turns a raw formatted line into an entry.

Design Decisions:
    - Entries are frozen dataclasses; a store never edits an entry in place
    - Levels are an IntEnum so they sort in severity order
    - Location parsing is a best-effort heuristic and never rejects input
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Tuple


# Placeholder location for lines without a "file:line:" prefix
NO_LOCATION = "-"


class Level(enum.IntEnum):
    """
    Severity levels, one bounded store per level.

    The integer value doubles as the display order: the dashboard and the
    level table iterate levels from DEBUG to ERROR.
    """
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @property
    def short(self) -> str:
        """One-letter name used by the status bar indicators."""
        return self.name[0]

    @property
    def logging_level(self) -> int:
        """The matching stdlib logging level number."""
        return _LOGGING_LEVELS[self]

    @classmethod
    def from_logging(cls, levelno: int) -> "Level":
        """
        Fold a stdlib logging level number into one of the four levels.

        Anything at or above ERROR (CRITICAL included) lands in ERROR,
        anything below INFO lands in DEBUG.
        """
        if levelno < logging.INFO:
            return cls.DEBUG
        if levelno < logging.WARNING:
            return cls.INFO
        if levelno < logging.ERROR:
            return cls.WARNING
        return cls.ERROR

    @classmethod
    def parse(cls, name: str) -> "Level":
        """
        Look up a level by name ("warning") or short letter ("W").

        Raises:
            ValueError: If the name matches no level.
        """
        key = name.strip().upper()
        if key == "WARN":
            key = "WARNING"
        for level in cls:
            if key in (level.name, level.short):
                return level
        raise ValueError(f"Unknown log level: {name!r}")


_LOGGING_LEVELS = {
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


def parse_location(raw_text: str) -> Tuple[str, str]:
    """
    Split a raw log line into its location and message.

    Lines written as "file:line: message" carry their origin in the first
    two colon-separated fields. When at least three fields exist the first
    two become the location and the rest, rejoined with ":", the message.
    Anything else keeps the whole text as message with location "-".

    Args:
        raw_text: The formatted log line.

    Returns:
        Tuple of (location, message).

    Example:
        >>> parse_location("main.go:57: hello:world")
        ('main.go:57', 'hello:world')
        >>> parse_location("hello")
        ('-', 'hello')

    Note:
        The line field is not checked for being numeric, so "a:b:c" parses
        as location "a:b".
    """
    text = raw_text.rstrip("\r\n")
    fields = text.split(":")
    if len(fields) < 3:
        return NO_LOCATION, text

    location = f"{fields[0]}:{fields[1]}"
    message = ":".join(fields[2:])
    # Drop the separator space written after "file:line:"
    if message.startswith(" "):
        message = message[1:]
    return location, message


@dataclass(frozen=True)
class LogEntry:
    """
    Represents a single buffered log line.

    Attributes:
        timestamp: Epoch seconds when the owning store accepted the line.
        location: "file:line" parsed from the line, or "-".
        message: The text after the location prefix.
        level: Severity of the store the entry belongs to.
    """
    timestamp: float
    location: str
    message: str
    level: Level

    @property
    def clock(self) -> str:
        """Local wall-clock time as HH:MM:SS."""
        return time.strftime("%H:%M:%S", time.localtime(self.timestamp))
