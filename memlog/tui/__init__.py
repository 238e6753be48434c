"""
TUI (Text User Interface) components for memlog.

This subpackage provides the curses-based live log console.

Modules:
    - views: Dashboard run loop, level toggles and screen layout
    - layout: Fixed-width line splitting and entry prefixes
    - backend: Curses drawing surface and input source

Architecture:
    1. A poller thread watches store counters for new entries
    2. The input loop blocks on key presses and toggles levels
    3. Both redraw through Dashboard.draw(), which merges enabled stores
"""
