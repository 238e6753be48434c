"""Shared fixtures: a deterministic clock and an in-memory terminal."""

import queue
import threading
from contextlib import contextmanager

import pytest

from memlog.tui.backend import Event, EventKind, TerminalInitError


class FakeClock:
    """Clock returning start, start + step, start + 2 * step, ..."""

    def __init__(self, start=1_700_000_000.0, step=1.0):
        self.now = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            value = self.now
            self.now += self.step
            return value


class FakeBackend:
    """Character grid standing in for curses, fed by a queue of events."""

    def __init__(self, width=60, height=8, fail_init=False):
        self.width = width
        self.height = height
        self.fail_init = fail_init
        self.events = queue.Queue()
        self.init_calls = 0
        self.restore_calls = 0
        self.flushes = 0
        # Style of the last draw_text call per (x, y)
        self.styles = {}
        # Rows of the last flushed frame
        self.screen = []
        self._rows = []

    def init(self):
        self.init_calls += 1
        if self.fail_init:
            raise TerminalInitError("Unable to initialise terminal: no tty")

    def restore(self):
        self.restore_calls += 1

    def size(self):
        return self.width, self.height

    def clear(self):
        self._rows = [[" "] * self.width for _ in range(self.height)]
        self.styles = {}

    def flush(self):
        self.screen = ["".join(row) for row in self._rows]
        self.flushes += 1

    @contextmanager
    def frame(self):
        self.clear()
        yield
        self.flush()

    def draw_text(self, x, y, text, style):
        if not 0 <= y < self.height:
            return
        self.styles[(x, y)] = style
        for i, ch in enumerate(text):
            if x + i >= self.width:
                break
            self._rows[y][x + i] = ch

    def poll_event(self):
        # Fail the test rather than hang forever on a missing event
        return self.events.get(timeout=5)

    def interrupt(self):
        self.events.put(Event(EventKind.INTERRUPT))

    # --- test helpers ---

    def press(self, key):
        self.events.put(Event(EventKind.KEY, key))

    def resize(self):
        self.events.put(Event(EventKind.RESIZE))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeBackend()
