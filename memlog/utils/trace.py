"""
On/off allocation capture for the log dashboard.

This module provides the capture toggle bound to Ctrl+T in the dashboard.
While a capture is active, tracemalloc records allocations across every
thread; stopping the capture writes the snapshot to a timestamped file.

Purpose:
    When a long-running process misbehaves, operators can start a capture
    from the log console, reproduce the problem and stop it again, without
    restarting the process.

Design Decisions:
    - The file is opened when the capture starts, so a bad directory is
      reported immediately rather than after the capture
    - Files are pickled tracemalloc snapshots, loadable with
      tracemalloc.Snapshot.load()
    - Failures are logged, never raised; a console key press must not
      take down the dashboard
"""

from __future__ import annotations

import datetime
import logging
import pickle
import tracemalloc
from pathlib import Path
from typing import BinaryIO, Optional


def trace_file_name(now: Optional[datetime.datetime] = None) -> str:
    """
    Build the capture file name for a given moment.

    Returns:
        str: Name in the form "trace_2024-01-15T120000.trace".
    """
    now = now or datetime.datetime.now()
    return now.strftime("trace_%Y-%m-%dT%H%M%S.trace")


class TraceCapture:
    """
    Toggleable tracemalloc capture writing to a file per session.

    Attributes:
        directory: Where capture files are created.
        path: File of the running capture, None when inactive.

    Example:
        >>> capture = TraceCapture(Path("/tmp"))
        >>> capture.toggle()   # starts
        True
        >>> capture.toggle()   # stops and writes the snapshot
        False
    """

    def __init__(
        self,
        directory: Path = Path("."),
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Args:
            directory: Where capture files are created.
            logger: Receives start, stop and failure messages. Defaults to
                    this module's logger, which only reaches the stores
                    when the handler is installed on the root logger; pass
                    the logger the handler sits on otherwise.
        """
        self.directory = Path(directory)
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self.path: Optional[Path] = None
        self._handle: Optional[BinaryIO] = None
        # Whether tracemalloc was started by us and must be stopped by us
        self._owns_tracing = False

    @property
    def active(self) -> bool:
        return self._handle is not None

    def toggle(self) -> bool:
        """
        Start a capture if none is running, otherwise stop it.

        Returns:
            bool: True if a capture is running after the call.
        """
        if self.active:
            self.stop()
        else:
            self.start()
        return self.active

    def start(self) -> None:
        """Open a new capture file and begin tracing allocations."""
        if self.active:
            return

        path = self.directory / trace_file_name()
        try:
            handle = path.open("wb")
        except OSError as exc:
            self._logger.error("Unable to create trace file '%s': %s", path, exc)
            return

        self._owns_tracing = not tracemalloc.is_tracing()
        if self._owns_tracing:
            tracemalloc.start()

        self._handle = handle
        self.path = path
        self._logger.info("Trace started. Trace file name is %s", path)

    def stop(self) -> None:
        """Write the allocation snapshot, close the file and stop tracing."""
        if not self.active:
            return

        handle, path = self._handle, self.path
        self._handle = None
        self.path = None

        try:
            snapshot = tracemalloc.take_snapshot()
            pickle.dump(snapshot, handle, pickle.HIGHEST_PROTOCOL)
        except (OSError, RuntimeError) as exc:
            self._logger.error("Unable to write trace file '%s': %s", path, exc)
        finally:
            handle.close()
            if self._owns_tracing:
                tracemalloc.stop()
                self._owns_tracing = False

        self._logger.info("Trace is completed")
