"""
Bounded, thread-safe log stores.

This module provides the per-level in-memory store that buffers the most
recent log lines, and the level table that groups one store per level.

Purpose:
    Long-running processes want their recent logs at hand without writing
    to disk. Each store keeps at most `capacity` entries and silently drops
    the oldest one when a new line arrives on a full store.

Design Decisions:
    - Fixed-size ring buffer; append and eviction are O(1)
    - One lock per store, held only for slot bookkeeping, never for I/O
    - Readers get copies, so no caller holds references into live slots
    - A running total of appends lets pollers detect new data cheaply
    - Merges lock stores in creation order, whatever order they are passed in
"""

import itertools
import threading
import time
from collections.abc import Mapping
from contextlib import ExitStack
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .merger import merge_chains
from .model import Level, LogEntry, parse_location

# Creation sequence; merges acquire store locks in this order
_store_ids = itertools.count()


class BoundedLogStore:
    """
    Fixed-capacity append-only log for a single severity level.

    Attributes:
        capacity: Maximum number of retained entries (at least 1).
        level: The severity every entry in this store is tagged with.

    Example:
        >>> store = BoundedLogStore(10, Level.INFO)
        >>> entry = store.append("main.py:12: started")
        >>> store.entries()[0].location
        'main.py:12'
    """

    def __init__(
        self,
        capacity: int,
        level: Level,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize an empty store.

        Args:
            capacity: Maximum entries to keep. Values below 1 are raised
                      to 1.
            level: Severity tag for entries appended to this store.
            clock: Source of entry timestamps, in epoch seconds.
        """
        self.capacity = max(1, int(capacity))
        self.level = Level(level)
        self._clock = clock
        self._lock = threading.Lock()
        self._order = next(_store_ids)

        # Ring buffer: _head is the slot of the oldest entry, _size the
        # number of occupied slots following it (modulo capacity).
        self._slots: List[Optional[LogEntry]] = [None] * self.capacity
        self._head = 0
        self._size = 0
        # Every append ever made, including evicted ones
        self._total = 0
        # Timestamps never go backwards within one store
        self._last_timestamp = 0.0

    def __repr__(self) -> str:
        return (
            f"BoundedLogStore(level={self.level.name}, "
            f"capacity={self.capacity}, size={len(self)})"
        )

    def __len__(self) -> int:
        """Number of entries currently retained."""
        with self._lock:
            return self._size

    def append(self, raw_text: str) -> LogEntry:
        """
        Parse a raw log line and add it as the newest entry.

        When the store is full the oldest entry is overwritten. This never
        fails and never blocks on anything but the store's own lock.

        Args:
            raw_text: Formatted log line, optionally "file:line: message".

        Returns:
            LogEntry: The entry that was stored.
        """
        location, message = parse_location(raw_text)

        with self._lock:
            timestamp = max(self._clock(), self._last_timestamp)
            self._last_timestamp = timestamp
            entry = LogEntry(
                timestamp=timestamp,
                location=location,
                message=message,
                level=self.level,
            )

            tail = (self._head + self._size) % self.capacity
            self._slots[tail] = entry
            if self._size == self.capacity:
                # The tail slot was the oldest entry; it is gone now
                self._head = (self._head + 1) % self.capacity
            else:
                self._size += 1
            self._total += 1

        return entry

    def _snapshot(self) -> List[LogEntry]:
        """Copy the retained entries oldest first. Caller holds the lock."""
        return [
            self._slots[(self._head + i) % self.capacity]
            for i in range(self._size)
        ]

    def entries(self) -> List[LogEntry]:
        """
        Return a snapshot of all retained entries, oldest first.

        Returns:
            List[LogEntry]: A new list; later appends do not affect it.
        """
        with self._lock:
            return self._snapshot()

    def count(self) -> int:
        """
        Return the total number of appends ever made to this store.

        This keeps growing after the store is full, so pollers can detect
        new data without copying entries.
        """
        with self._lock:
            return self._total

    def merge(self, *peers: "BoundedLogStore") -> List[LogEntry]:
        """
        Merge this store with peer stores into one chronological list.

        All involved locks are held while the chains are copied, so the
        result is one consistent point-in-time view. Locks are always taken
        in store creation order, so concurrent a.merge(b) and b.merge(a)
        calls cannot deadlock. Equal timestamps resolve to this store first,
        then peers as given. A store passed more than once (or this store
        passed as its own peer) is only read once.

        Args:
            *peers: Other stores to interleave with this one.

        Returns:
            List[LogEntry]: Entries of all stores ordered by timestamp.
        """
        stores = [self]
        for peer in peers:
            if not any(peer is seen for seen in stores):
                stores.append(peer)

        with ExitStack() as stack:
            for store in sorted(stores, key=lambda s: s._order):
                stack.enter_context(store._lock)
            chains = [store._snapshot() for store in stores]

        return merge_chains(chains)


class LevelStores(Mapping):
    """
    Ordered table holding one BoundedLogStore per severity level.

    Iteration yields levels from DEBUG to ERROR, so the level-to-store
    correspondence never depends on list positions.

    Example:
        >>> stores = LevelStores(1024)
        >>> entry = stores[Level.ERROR].append("db.py:40: connection lost")
        >>> timeline = stores.merge([Level.WARNING, Level.ERROR])
    """

    def __init__(self, capacity: int, clock: Callable[[], float] = time.time):
        """
        Create one empty store per level.

        Args:
            capacity: Capacity of every store.
            clock: Timestamp source shared by all stores.
        """
        self._stores: Dict[Level, BoundedLogStore] = {
            level: BoundedLogStore(capacity, level, clock=clock)
            for level in Level
        }

    def __getitem__(self, level: Level) -> BoundedLogStore:
        return self._stores[Level(level)]

    def __iter__(self) -> Iterator[Level]:
        return iter(self._stores)

    def __len__(self) -> int:
        return len(self._stores)

    def merge(self, levels: Optional[Iterable[Level]] = None) -> List[LogEntry]:
        """
        Merge the stores of the given levels (all levels by default).

        Stores are merged in level order regardless of the order of
        `levels`, so equal timestamps list the lower level first.

        Returns:
            List[LogEntry]: Chronological entries; empty if no levels.
        """
        wanted = set(Level) if levels is None else {Level(level) for level in levels}
        selected = [store for level, store in self._stores.items() if level in wanted]
        if not selected:
            return []
        return selected[0].merge(*selected[1:])
