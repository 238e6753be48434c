"""
Curses terminal backend for the log dashboard.

The dashboard only needs a drawing surface and an input source. This module
defines that surface (styles, events, errors) and implements it on top of
the standard curses library.

Purpose:
    Keeping curses behind a small object lets the dashboard be driven by a
    fake backend in tests and keeps every curses call in one place.

Design Decisions:
    - Raw mode so Ctrl+C and the other control keys arrive as key codes
    - Non-blocking getch polled under the backend lock, so a redraw from
      the poller thread is never flushed half-finished by the input read
    - interrupt() wakes a blocked poll_event() from any thread
"""

import curses
import enum
import os
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, NamedTuple, Optional, Tuple


class TerminalInitError(RuntimeError):
    """Raised when the terminal cannot be put into dashboard mode."""


class Style(NamedTuple):
    """Foreground/background colour names plus a bold flag."""
    fg: str = "default"
    bg: str = "default"
    bold: bool = False


class EventKind(enum.Enum):
    KEY = "key"
    RESIZE = "resize"
    INTERRUPT = "interrupt"


class Event(NamedTuple):
    """An input event; `key` is the key code for KEY events."""
    kind: EventKind
    key: Optional[int] = None


# Colour names understood by Style, mapped to curses colour numbers.
# -1 is the terminal's own default colour (needs use_default_colors()).
COLORS: Dict[str, int] = {
    "default": -1,
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
}


class CursesBackend:
    """
    Drawing surface and input source backed by curses.

    Attributes:
        poll_timeout: Seconds between key reads while waiting for input.

    Example:
        >>> backend = CursesBackend()
        >>> backend.init()
        >>> with backend.frame():
        ...     backend.draw_text(0, 0, "hello", Style("yellow", "blue", True))
        >>> backend.restore()
    """

    def __init__(self, poll_timeout: float = 0.02):
        self.poll_timeout = poll_timeout
        self._screen = None
        self._lock = threading.RLock()
        self._interrupted = threading.Event()
        self._colors = False
        # Style -> curses colour pair number, allocated on first use
        self._pairs: Dict[Tuple[str, str], int] = {}

    def init(self) -> None:
        """
        Put the terminal into dashboard mode.

        Raises:
            TerminalInitError: If curses cannot initialise the terminal.
                               The terminal is restored before raising.
        """
        # Esc would otherwise wait a full second for a follow-up sequence
        os.environ.setdefault("ESCDELAY", "25")
        try:
            screen = curses.initscr()
        except curses.error as exc:
            raise TerminalInitError(f"Unable to initialise terminal: {exc}") from exc

        try:
            curses.noecho()
            curses.raw()
            screen.keypad(True)
            screen.nodelay(True)
            self._colors = curses.has_colors()
            if self._colors:
                curses.start_color()
                curses.use_default_colors()
        except curses.error as exc:
            curses.endwin()
            raise TerminalInitError(f"Unable to configure terminal: {exc}") from exc

        try:
            curses.curs_set(0)
        except curses.error:
            # Some terminals cannot hide the cursor; drawing still works
            pass

        self._pairs.clear()
        self._interrupted.clear()
        self._screen = screen

    def restore(self) -> None:
        """Return the terminal to its normal state."""
        with self._lock:
            if self._screen is None:
                return
            self._screen.keypad(False)
            curses.noraw()
            curses.echo()
            curses.endwin()
            self._screen = None

    def size(self) -> Tuple[int, int]:
        """Return the terminal size as (width, height)."""
        with self._lock:
            height, width = self._screen.getmaxyx()
            return width, height

    def clear(self) -> None:
        with self._lock:
            self._screen.erase()

    def flush(self) -> None:
        with self._lock:
            self._screen.noutrefresh()
            curses.doupdate()

    @contextmanager
    def frame(self) -> Iterator[None]:
        """
        Draw one complete frame: clear on entry, flush on exit.

        The backend lock is held throughout, so poll_event() cannot refresh
        the screen while the frame is only partly drawn.
        """
        with self._lock:
            self.clear()
            yield
            self.flush()

    def _attr(self, style: Style) -> int:
        attr = curses.A_BOLD if style.bold else curses.A_NORMAL
        if not self._colors:
            return attr

        key = (style.fg, style.bg)
        pair = self._pairs.get(key)
        if pair is None:
            pair = len(self._pairs) + 1
            if pair >= curses.COLOR_PAIRS:
                return attr
            curses.init_pair(pair, COLORS[style.fg], COLORS[style.bg])
            self._pairs[key] = pair
        return attr | curses.color_pair(pair)

    def draw_text(self, x: int, y: int, text: str, style: Style) -> None:
        """
        Draw text starting at cell (x, y), clipped at the right edge.

        Cells outside the screen are skipped, and text curses refuses to
        draw is dropped, so a frame never fails part way through.

        Args:
            x: Column of the first character.
            y: Row to draw on.
            text: Characters to draw.
            style: Colours and weight to draw with.
        """
        with self._lock:
            height, width = self._screen.getmaxyx()
            if not (0 <= y < height and 0 <= x < width):
                return
            try:
                self._screen.addnstr(y, x, text, width - x, self._attr(style))
            except curses.error:
                # Writing the bottom-right cell moves the cursor off-screen;
                # curses reports it as an error after drawing the text.
                pass
            except ValueError:
                # Embedded NUL; the row is left as it was
                pass

    def poll_event(self) -> Event:
        """
        Block until the next key, resize or interrupt.

        Returns:
            Event: The input event that ended the wait.
        """
        while True:
            if self._interrupted.is_set():
                self._interrupted.clear()
                return Event(EventKind.INTERRUPT)

            with self._lock:
                ch = self._screen.getch()

            if ch == curses.KEY_RESIZE:
                return Event(EventKind.RESIZE)
            if ch != -1:
                return Event(EventKind.KEY, ch)

            self._interrupted.wait(self.poll_timeout)

    def interrupt(self) -> None:
        """Make a pending or the next poll_event() return INTERRUPT."""
        self._interrupted.set()
