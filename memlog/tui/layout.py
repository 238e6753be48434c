"""
Text layout helpers for the log dashboard.

These functions turn a log entry into the fixed-width physical lines the
dashboard paints, independent of any terminal library.
"""

from typing import List

from ..model import LogEntry

# Width reserved for the location column, longer locations push the text
LOCATION_WIDTH = 20

# C0 and C1 control characters and DEL; curses rejects NUL and the others
# move the cursor or switch terminal modes
_CONTROL_CHARS = {code: " " for code in [*range(0x20), *range(0x7f, 0xa0)]}


def split_and_pad_lines(message: str, width: int) -> List[str]:
    """
    Split a message into chunks of exactly `width` characters.

    The final chunk is padded with spaces. An empty message still takes one
    (blank) line, and a message whose length is an exact multiple of the
    width gets no trailing empty chunk.

    Args:
        message: The text to lay out.
        width: Characters per chunk, at least 1.

    Returns:
        List[str]: ceil(len(message) / width) chunks, or one for "".

    Raises:
        ValueError: If width is below 1.

    Example:
        >>> split_and_pad_lines("abcdefghijk", 5)
        ['abcde', 'fghij', 'k    ']
    """
    if width < 1:
        raise ValueError(f"Line width must be at least 1, got {width}")

    if not message:
        return [" " * width]

    chunks = [message[i:i + width] for i in range(0, len(message), width)]
    chunks[-1] = chunks[-1].ljust(width)
    return chunks


def format_prefix(entry: LogEntry) -> str:
    """Render the "HH:MM:SS  location " column for an entry's first line."""
    location = printable(entry.location)
    return f"{entry.clock:>8}  {location:<{LOCATION_WIDTH}} "


def printable(message: str) -> str:
    """
    Make a message safe to paint on one row.

    Line breaks, tabs and every other control character become spaces,
    so the text stays on its own rows and never reaches the terminal as
    an escape sequence or an embedded NUL.
    """
    return " ".join(message.splitlines()).translate(_CONTROL_CHARS)
