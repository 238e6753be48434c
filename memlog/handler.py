"""
Logging facade that feeds the in-memory stores.

Application code keeps using the standard logging module. The handler in
this module formats each record as "file:line: message" and appends it to
the store of the record's level.

Usage:
    >>> handler = install(LogConfig(capacity=512))
    >>> logging.getLogger("app").warning("disk at %d%%", 91)
    >>> handler.stores[Level.WARNING].entries()[-1].message
    'disk at 91%'
"""

import logging
from typing import Optional

from .config import LogConfig
from .model import Level
from .store import LevelStores

# Produces the "file:line: message" prefix the stores parse locations from
LOCATION_FORMAT = "%(filename)s:%(lineno)d: %(message)s"


class MemoryLogHandler(logging.Handler):
    """Logging handler that routes records to one bounded store per level."""

    def __init__(self, stores: LevelStores, level: int = logging.NOTSET):
        """
        Args:
            stores: The level table records are appended to.
            level: Minimum stdlib level this handler accepts.
        """
        super().__init__(level)
        self.stores = stores
        self.setFormatter(logging.Formatter(LOCATION_FORMAT))

    def emit(self, record: logging.LogRecord) -> None:
        """Append a formatted record to the store for its level."""
        try:
            store = self.stores[Level.from_logging(record.levelno)]
            store.append(self.format(record))
        except Exception:
            self.handleError(record)


def install(
    config: LogConfig, logger: Optional[logging.Logger] = None
) -> MemoryLogHandler:
    """
    Create the stores for a configuration and start capturing records.

    The handler is attached to `logger` (the root logger by default). If
    the logger's own level would filter out records the configuration asks
    for, the logger level is lowered to match. memlog's own messages (for
    example from TraceCapture) reach the stores only when the handler sits
    on the root logger or on the "memlog" logger.

    Args:
        config: Capacity and minimum level to capture.
        logger: Logger to attach to.

    Returns:
        MemoryLogHandler: The attached handler; its `stores` attribute
                          holds the level table for the dashboard.
    """
    logger = logger if logger is not None else logging.getLogger()
    handler = MemoryLogHandler(
        LevelStores(config.capacity), level=config.level.logging_level
    )
    logger.addHandler(handler)
    if logger.getEffectiveLevel() > config.level.logging_level:
        logger.setLevel(config.level.logging_level)
    return handler


def uninstall(handler: MemoryLogHandler, logger: Optional[logging.Logger] = None) -> None:
    """Detach a handler previously attached with install()."""
    logger = logger if logger is not None else logging.getLogger()
    logger.removeHandler(handler)
