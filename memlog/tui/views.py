"""
Curses-based log dashboard.

This module contains the live console that renders the in-memory log
stores. It merges the enabled levels into one timeline, newest at the
bottom, and lets the operator switch levels on and off while it runs.

Purpose:
    Long-running processes keep their recent logs in memory. This view
    shows them in the terminal without any disk or network involvement.

Architecture:
    - Background thread: polls store counters and redraws on new data
    - Calling thread: blocks on terminal input, toggles levels, redraws
    - Both paths draw through draw(), serialised by the dashboard lock
"""

import logging
import threading
from collections.abc import Mapping
from typing import Dict, Iterable, Optional, Union

from ..model import Level
from ..store import BoundedLogStore
from ..utils.trace import TraceCapture
from .backend import CursesBackend, EventKind, Style
from .layout import format_prefix, printable, split_and_pad_lines

logger = logging.getLogger(__name__)

# Seconds between store counter checks
POLL_INTERVAL = 0.075


def _ctrl(letter: str) -> int:
    """Key code of Ctrl+<letter>."""
    return ord(letter.upper()) - ord("@")


# Esc, Ctrl+C, Ctrl+X and q leave the dashboard
QUIT_KEYS = frozenset({27, _ctrl("c"), _ctrl("x"), ord("q"), ord("Q")})

# Ctrl+I is the same key code as Tab
TOGGLE_KEYS: Dict[int, Level] = {
    _ctrl("d"): Level.DEBUG,
    _ctrl("i"): Level.INFO,
    _ctrl("w"): Level.WARNING,
    _ctrl("e"): Level.ERROR,
    ord("d"): Level.DEBUG,
    ord("i"): Level.INFO,
    ord("w"): Level.WARNING,
    ord("e"): Level.ERROR,
}

TRACE_KEYS = frozenset({_ctrl("t"), ord("t")})

# --- Colours ---
TITLE_STYLE = Style("yellow", "blue", bold=True)
STATUS_STYLE = Style("yellow", "blue")
DISABLED_STYLE = Style("blue", "black")

LEVEL_STYLES: Dict[Level, Style] = {
    Level.DEBUG: Style("white"),
    Level.INFO: Style("blue", bold=True),
    Level.WARNING: Style("yellow", bold=True),
    Level.ERROR: Style("red", bold=True),
}

# Status bar indicator cells, right to left
INDICATOR_STYLES: Dict[Level, Style] = {
    Level.ERROR: Style("white", "red"),
    Level.WARNING: Style("black", "yellow"),
    Level.INFO: Style("black", "cyan"),
    Level.DEBUG: Style("black", "white"),
}
TRACE_INDICATOR_STYLE = Style("yellow", "red")
INDICATOR_WIDTH = 5


StoreSource = Union[Mapping, Iterable[BoundedLogStore]]


class Dashboard:
    """
    Live terminal view over one bounded store per severity level.

    Attributes:
        app_name: Shown in the title bar as "<app_name> logs".
        poll_interval: Seconds between checks for new entries.

    Example:
        >>> stores = LevelStores(1024)
        >>> Dashboard(stores, app_name="worker").start()
    """

    def __init__(
        self,
        stores: StoreSource,
        backend=None,
        app_name: str = "memlog",
        poll_interval: float = POLL_INTERVAL,
        trace: Optional[TraceCapture] = None,
    ):
        """
        Initialize the dashboard with every level enabled.

        Args:
            stores: One store per level, as a Level-keyed mapping or any
                    iterable of stores (keyed by each store's own level).
            backend: Terminal backend, a CursesBackend by default.
            app_name: Caption for the title bar.
            poll_interval: Seconds between store counter checks.
            trace: Capture toggled by Ctrl+T; a TraceCapture in the working
                   directory by default.

        Raises:
            ValueError: If a level has no store or more than one.
        """
        if isinstance(stores, Mapping):
            stores = stores.values()

        by_level: Dict[Level, BoundedLogStore] = {}
        for store in stores:
            if store.level in by_level:
                raise ValueError(f"More than one store for level {store.level.name}")
            by_level[store.level] = store

        missing = [level.name for level in Level if level not in by_level]
        if missing:
            raise ValueError(f"No store for level(s): {', '.join(missing)}")

        self._stores: Dict[Level, BoundedLogStore] = {
            level: by_level[level] for level in Level
        }
        self._enabled: Dict[Level, bool] = {level: True for level in Level}
        self._last_seen: Dict[Level, int] = {level: 0 for level in Level}
        self._backend = backend if backend is not None else CursesBackend()
        self._trace = trace if trace is not None else TraceCapture()
        self._lock = threading.Lock()
        self.app_name = app_name
        self.poll_interval = poll_interval

    # ============================================================
    # Run loop
    # ============================================================

    def start(self) -> None:
        """
        Take over the terminal until the user quits.

        Blocks the calling thread. Returns after a quit key, an interrupt
        from stop(), or Ctrl+C delivered as a signal.

        Raises:
            TerminalInitError: If the terminal cannot be initialised.
                               Nothing has been drawn in that case.
        """
        self._backend.init()
        try:
            self.draw()

            quit_event = threading.Event()
            poller = threading.Thread(
                target=self._poll_loop,
                args=(quit_event,),
                name="memlog-dashboard-poller",
                daemon=True,
            )
            poller.start()
            try:
                self._input_loop()
            finally:
                quit_event.set()
                poller.join()
        finally:
            with self._lock:
                self._trace.stop()
            self._backend.restore()

    def stop(self) -> None:
        """Ask a running start() to return. Safe from any thread."""
        self._backend.interrupt()

    def _poll_loop(self, quit_event: threading.Event) -> None:
        """Background thread: redraw whenever any store received entries."""
        while True:
            redraw = False
            for level, store in self._stores.items():
                count = store.count()
                if count > self._last_seen[level]:
                    self._last_seen[level] = count
                    redraw = True

            if quit_event.wait(self.poll_interval):
                return
            if redraw:
                self.draw()

    def _input_loop(self) -> None:
        try:
            while True:
                event = self._backend.poll_event()
                if event.kind is EventKind.INTERRUPT:
                    return

                if event.kind is EventKind.KEY:
                    if event.key in QUIT_KEYS:
                        return
                    if event.key in TOGGLE_KEYS:
                        self.toggle(TOGGLE_KEYS[event.key])
                    elif event.key in TRACE_KEYS:
                        self.toggle_trace()

                # Resizes and unknown keys redraw as well
                self.draw()
        except KeyboardInterrupt:
            logger.debug("Dashboard interrupted")

    # ============================================================
    # State
    # ============================================================

    def toggle(self, level: Level) -> bool:
        """
        Flip whether a level is shown.

        Returns:
            bool: The level's new enabled state.
        """
        level = Level(level)
        with self._lock:
            self._enabled[level] = not self._enabled[level]
            return self._enabled[level]

    def is_enabled(self, level: Level) -> bool:
        with self._lock:
            return self._enabled[Level(level)]

    def toggle_trace(self) -> bool:
        """Start or stop the capture. Returns True if one is now running."""
        with self._lock:
            return self._trace.toggle()

    # ============================================================
    # Rendering
    # ============================================================

    def draw(self) -> None:
        """Repaint the whole screen from the current store contents."""
        with self._lock:
            width, height = self._backend.size()
            with self._backend.frame():
                self._draw_title_bar(width)
                self._draw_status_bar(width, height)
                self._draw_logs(width, height)

    def _draw_title_bar(self, width: int) -> None:
        caption = f"{self.app_name} logs"
        self._backend.draw_text(0, 0, caption.center(width), TITLE_STYLE)

    def _draw_status_bar(self, width: int, height: int) -> None:
        row = height - 1
        counts = {level: store.count() for level, store in self._stores.items()}
        help_text = (
            "Ctrl+D, I, W, E: Toggle levels "
            f"(E:{counts[Level.ERROR]}/W:{counts[Level.WARNING]}/"
            f"I:{counts[Level.INFO]}/D:{counts[Level.DEBUG]}), "
            "Ctrl+T: Toggle trace"
        )
        self._backend.draw_text(0, row, " " * width, STATUS_STYLE)
        self._backend.draw_text(1, row, help_text, STATUS_STYLE)

        # Indicators fill the right edge: E, W, I, D, then T furthest left
        for pos, level in enumerate(INDICATOR_STYLES, start=1):
            self._draw_indicator(
                width, row, pos, level.short,
                self._enabled[level], INDICATOR_STYLES[level],
            )
        self._draw_indicator(
            width, row, len(INDICATOR_STYLES) + 1, "T",
            self._trace.active, TRACE_INDICATOR_STYLE,
        )

    def _draw_indicator(
        self, width: int, row: int, pos: int, name: str, enabled: bool, style: Style
    ) -> None:
        x = width - pos * INDICATOR_WIDTH
        if x < 0:
            return
        self._backend.draw_text(
            x, row, f"  {name}  ", style if enabled else DISABLED_STYLE
        )

    def _draw_logs(self, width: int, height: int) -> None:
        enabled = [
            store for level, store in self._stores.items() if self._enabled[level]
        ]
        if not enabled:
            return

        entries = enabled[0].merge(*enabled[1:])

        # Body rows run from just above the status bar up to row 1
        row = height - 2
        index = len(entries) - 1
        while row > 0 and index >= 0:
            entry = entries[index]
            index -= 1

            prefix = format_prefix(entry)
            lines = split_and_pad_lines(
                printable(entry.message), max(1, width - len(prefix))
            )
            style = LEVEL_STYLES[entry.level]

            # Continuation lines sit below the first line, so draw them first
            indent = " " * len(prefix)
            for line in reversed(lines[1:]):
                if row <= 0:
                    return
                self._backend.draw_text(0, row, indent + line, style)
                row -= 1

            if row <= 0:
                return
            self._backend.draw_text(0, row, prefix + lines[0], style)
            row -= 1
