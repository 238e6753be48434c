"""Tests for the dashboard run loop, toggles and screen layout."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from memlog.model import Level
from memlog.store import BoundedLogStore, LevelStores
from memlog.tui.backend import TerminalInitError
from memlog.tui.layout import format_prefix
from memlog.tui.views import (
    DISABLED_STYLE,
    INDICATOR_STYLES,
    LEVEL_STYLES,
    TITLE_STYLE,
    TRACE_INDICATOR_STYLE,
    Dashboard,
)

from conftest import FakeBackend

ESC = 27
CTRL_D = 4
CTRL_T = 20


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_trace(active=False):
    trace = MagicMock()
    trace.active = active
    return trace


def make_dashboard(stores, backend, **kwargs):
    kwargs.setdefault("trace", make_trace())
    return Dashboard(stores, backend=backend, **kwargs)


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


@pytest.fixture
def stores(clock):
    return LevelStores(10, clock=clock)


# ---------------------------------------------------------------------------
# Construction and toggles
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_all_levels_enabled_by_default(self, stores, backend):
        dashboard = make_dashboard(stores, backend)
        assert all(dashboard.is_enabled(level) for level in Level)

    def test_accepts_iterable_of_stores(self, backend):
        stores = [BoundedLogStore(5, level) for level in reversed(Level)]
        dashboard = make_dashboard(stores, backend)
        assert dashboard.is_enabled(Level.DEBUG)

    def test_missing_level_rejected(self, backend):
        stores = [BoundedLogStore(5, level) for level in (Level.DEBUG, Level.INFO)]
        with pytest.raises(ValueError, match="WARNING, ERROR"):
            make_dashboard(stores, backend)

    def test_duplicate_level_rejected(self, backend):
        stores = [BoundedLogStore(5, level) for level in Level]
        stores.append(BoundedLogStore(5, Level.INFO))
        with pytest.raises(ValueError, match="INFO"):
            make_dashboard(stores, backend)


class TestToggle:
    def test_toggle_twice_restores_state(self, stores, backend):
        dashboard = make_dashboard(stores, backend)
        assert dashboard.toggle(Level.WARNING) is False
        assert not dashboard.is_enabled(Level.WARNING)
        assert dashboard.toggle(Level.WARNING) is True
        assert dashboard.is_enabled(Level.WARNING)

    def test_toggle_only_affects_one_level(self, stores, backend):
        dashboard = make_dashboard(stores, backend)
        dashboard.toggle(Level.ERROR)
        assert [dashboard.is_enabled(level) for level in Level] == [True, True, True, False]

    def test_toggle_trace_delegates(self, stores, backend):
        trace = make_trace()
        trace.toggle.return_value = True
        dashboard = make_dashboard(stores, backend, trace=trace)
        assert dashboard.toggle_trace() is True
        trace.toggle.assert_called_once_with()


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

class TestDraw:
    def test_layout(self, stores):
        backend = FakeBackend(width=40, height=6)
        info = stores[Level.INFO].append("app.py:10: hello")
        error = stores[Level.ERROR].append("db.py:20: abcdefghijkl")
        make_dashboard(stores, backend).draw()

        screen = backend.screen
        prefix_width = len(format_prefix(error))
        chunk = 40 - prefix_width

        assert screen[0] == "memlog logs".center(40)
        assert backend.styles[(0, 0)] == TITLE_STYLE

        # Newest entry at the bottom, its continuation line below its prefix
        assert screen[4] == " " * prefix_width + "jkl".ljust(chunk)
        assert screen[3] == format_prefix(error) + "abcdefghi"[:chunk]
        assert screen[2] == format_prefix(info) + "hello".ljust(chunk)
        assert screen[1] == " " * 40

        assert backend.styles[(0, 4)] == LEVEL_STYLES[Level.ERROR]
        assert backend.styles[(0, 3)] == LEVEL_STYLES[Level.ERROR]
        assert backend.styles[(0, 2)] == LEVEL_STYLES[Level.INFO]

    def test_status_bar(self, stores):
        backend = FakeBackend(width=120, height=6)
        stores[Level.ERROR].append("boom")
        stores[Level.DEBUG].append("one")
        stores[Level.DEBUG].append("two")
        dashboard = make_dashboard(stores, backend)
        dashboard.toggle(Level.WARNING)
        dashboard.draw()

        status = backend.screen[5]
        assert "(E:1/W:0/I:0/D:2)" in status
        assert "Ctrl+T: Toggle trace" in status
        assert status.endswith("  T    D    I    W    E  ")

        assert backend.styles[(115, 5)] == INDICATOR_STYLES[Level.ERROR]
        assert backend.styles[(110, 5)] == DISABLED_STYLE
        assert backend.styles[(105, 5)] == INDICATOR_STYLES[Level.INFO]
        assert backend.styles[(100, 5)] == INDICATOR_STYLES[Level.DEBUG]
        assert backend.styles[(95, 5)] == DISABLED_STYLE

    def test_trace_indicator_when_active(self, stores):
        backend = FakeBackend(width=120, height=6)
        make_dashboard(stores, backend, trace=make_trace(active=True)).draw()
        assert backend.styles[(95, 5)] == TRACE_INDICATOR_STYLE

    def test_only_enabled_levels_rendered(self, stores):
        backend = FakeBackend(width=60, height=6)
        info = stores[Level.INFO].append("app.py:1: visible")
        stores[Level.ERROR].append("app.py:2: hidden")
        dashboard = make_dashboard(stores, backend)
        dashboard.toggle(Level.ERROR)
        dashboard.draw()

        body = backend.screen[1:5]
        assert body[3].startswith(format_prefix(info) + "visible")
        assert not any("hidden" in row for row in body)

    def test_nothing_enabled_leaves_body_blank(self, stores):
        backend = FakeBackend(width=60, height=6)
        stores[Level.INFO].append("app.py:1: text")
        dashboard = make_dashboard(stores, backend)
        for level in Level:
            dashboard.toggle(level)
        dashboard.draw()

        assert all(row == " " * 60 for row in backend.screen[1:5])

    def test_newest_entries_fill_the_body(self, stores):
        backend = FakeBackend(width=60, height=6)
        for i in range(10):
            stores[Level.DEBUG].append(f"loop.py:{i}: message {i}")
        make_dashboard(stores, backend).draw()

        body = backend.screen[1:5]
        assert "message 6" in body[0]
        assert "message 9" in body[3]
        assert not any("message 5" in row for row in body)

    def test_long_entry_never_overwrites_title(self, stores):
        backend = FakeBackend(width=40, height=6)
        stores[Level.WARNING].append("app.py:1: " + "x" * 200)
        make_dashboard(stores, backend).draw()

        assert backend.screen[0] == "memlog logs".center(40)
        assert all(row.strip() for row in backend.screen[1:5])

    def test_multiline_message_is_folded(self, stores):
        backend = FakeBackend(width=80, height=6)
        stores[Level.ERROR].append("app.py:1: first\nsecond")
        make_dashboard(stores, backend).draw()
        assert "first second" in backend.screen[4]

    def test_control_characters_are_blanked(self, stores):
        backend = FakeBackend(width=80, height=6)
        stores[Level.INFO].append("app.py:1: bad\x00byte \x1b[2J")
        make_dashboard(stores, backend).draw()
        assert "bad byte  [2J" in backend.screen[4]
        assert not any("\x00" in row or "\x1b" in row for row in backend.screen)


# ---------------------------------------------------------------------------
# Run loop
# ---------------------------------------------------------------------------

class TestStart:
    def test_init_failure_propagates_before_drawing(self, stores):
        backend = FakeBackend(fail_init=True)
        dashboard = make_dashboard(stores, backend)
        with pytest.raises(TerminalInitError):
            dashboard.start()
        assert backend.flushes == 0
        assert backend.restore_calls == 0

    def test_quit_key_returns(self, stores, backend):
        backend.press(ESC)
        make_dashboard(stores, backend).start()
        assert backend.init_calls == 1
        assert backend.restore_calls == 1
        assert backend.flushes == 1

    @pytest.mark.parametrize("key", [3, 24, ord("q")])
    def test_other_quit_keys(self, stores, backend, key):
        backend.press(key)
        make_dashboard(stores, backend).start()
        assert backend.restore_calls == 1

    def test_toggle_key_redraws(self, stores, backend):
        backend.press(CTRL_D)
        backend.press(ESC)
        dashboard = make_dashboard(stores, backend)
        dashboard.start()
        assert not dashboard.is_enabled(Level.DEBUG)
        assert backend.flushes == 2

    def test_unknown_keys_and_resize_redraw(self, stores, backend):
        backend.press(ord("z"))
        backend.resize()
        backend.press(ESC)
        make_dashboard(stores, backend).start()
        assert backend.flushes == 3

    def test_trace_key_toggles_and_capture_stops_on_exit(self, stores, backend):
        trace = make_trace()
        backend.press(CTRL_T)
        backend.press(ESC)
        make_dashboard(stores, backend, trace=trace).start()
        trace.toggle.assert_called_once_with()
        trace.stop.assert_called_once_with()

    def test_interrupt_returns(self, stores, backend):
        dashboard = make_dashboard(stores, backend)
        dashboard.stop()
        dashboard.start()
        assert backend.restore_calls == 1

    def test_keyboard_interrupt_restores_terminal(self, stores):
        backend = FakeBackend()
        backend.poll_event = MagicMock(side_effect=KeyboardInterrupt)
        make_dashboard(stores, backend).start()
        assert backend.restore_calls == 1

    def test_poller_redraws_on_new_entries(self, stores, backend):
        dashboard = make_dashboard(stores, backend, poll_interval=0.01)
        runner = threading.Thread(target=dashboard.start)
        runner.start()
        try:
            assert wait_for(lambda: backend.flushes >= 1)
            stores[Level.WARNING].append("app.py:7: fresh entry")
            assert wait_for(lambda: any("fresh entry" in row for row in backend.screen))
        finally:
            dashboard.stop()
            runner.join(timeout=5)

        assert not runner.is_alive()
        assert not any(
            t.name == "memlog-dashboard-poller" for t in threading.enumerate()
        )
