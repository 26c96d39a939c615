"""Logging utilities for jadetree.

This module provides a custom RESCORE log level and a handle for
enabling/disabling jadetree logging with loguru.

Note:
    Importing this module removes loguru's default stderr handler (ID 0) to
    prevent duplicate output when ``enable_logging()`` adds its own handler.
    If your application configures loguru handlers *before* importing jadetree,
    handler 0 may no longer be the default; in that case the removal is a
    no-op (the ``ValueError`` is suppressed).
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final

from loguru import logger

from jadetree.config import LogFormat, LogLevel, TreeSettings

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

# Leaf rescans are chattier than INFO but more useful than raw DEBUG output.
RESCORE_LEVEL: Final[str] = "RESCORE"
RESCORE_LEVEL_NUMBER: Final[int] = 15  # Between DEBUG (10) and INFO (20)


def _register_rescore_level() -> None:
    """Register the RESCORE custom log level with loguru.

    If the level already exists with a different numeric value, emits a
    UserWarning because loguru does not permit changing the numeric value of
    an existing level.
    """
    try:
        existing_level = logger.level(RESCORE_LEVEL)
    except ValueError:
        logger.level(RESCORE_LEVEL, no=RESCORE_LEVEL_NUMBER, icon="♻")
    else:
        if existing_level.no != RESCORE_LEVEL_NUMBER:
            msg = (
                f"RESCORE level already registered with numeric value {existing_level.no},"
                f" expected {RESCORE_LEVEL_NUMBER}"
            )
            warnings.warn(msg, stacklevel=2)


_register_rescore_level()

_FORMATS: Final[dict[str, str]] = {
    "short": (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
        "<cyan>{function}</cyan> - "
        "<level>{message}</level> {extra}"
    ),
    "full": (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level> {extra}"
    ),
}


class LoggingHandle:
    """Handle for managing jadetree logging lifecycle.

    Stores the handler ID from logger.add() and provides cleanup via disable()
    or automatic cleanup through context manager protocol.

    Examples:
        >>> with enable_logging(level="DEBUG"):  # doctest: +SKIP
        ...     tree.insert({"age": 31})
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        """Initialize the logging handle.

        Args:
            handler_id (int): The loguru handler ID from logger.add().
        """
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove the handler associated with this logging handle.

        When this is the last active handle, ``logger.disable("jadetree")`` is
        called to suppress jadetree log messages again.
        """
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        """Enter context manager.

        Returns:
            LoggingHandle: This handle instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and disable logging."""
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return the number of currently active logging handles.

        Returns:
            int: Count of active handles that have not been disabled.
        """
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel | None = None,
    log_format: LogFormat | None = None,
) -> LoggingHandle:
    """Enable jadetree logging to stderr.

    Each call returns an independent handle that manages its own handler; use
    the handle's disable() method or context manager protocol to clean up.

    Args:
        level (LogLevel | None): Minimum log level to display. Use "RESCORE" to
            see every leaf rescan, "DEBUG" to also see cache invalidations.
            Defaults to `TreeSettings().log_level`.
        log_format (LogFormat | None): "short" shows the function name only,
            "full" shows module:function:line. Defaults to
            `TreeSettings().log_format`.

    Returns:
        LoggingHandle: Independent handle for managing the logging handler.
    """
    if level is None or log_format is None:
        settings = TreeSettings()
        level = level or settings.log_level
        log_format = log_format or settings.log_format

    logger.enable(PACKAGE_NAME)

    handler_id = logger.add(
        sys.stderr,
        level=level,
        filter=_is_jadetree_record,
        format=_FORMATS[log_format],
    )

    return LoggingHandle(handler_id)


def _is_jadetree_record(record: Record) -> bool:
    """Filter to pass all jadetree module records.

    Args:
        record (Record): The loguru Record object to filter.

    Returns:
        bool: True if the record is from the jadetree package, False otherwise.
    """
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
