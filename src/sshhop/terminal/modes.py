"""
Terminal mode management utilities.

Provides terminal size queries and scoped raw mode for Unix terminals
(Linux, macOS) via termios.
"""

from __future__ import annotations

import os
import sys
from typing import Any, NamedTuple

from sshhop.exceptions import RawModeError, TerminalSizeError
from sshhop.logging import get_logger

logger = get_logger(__name__)


class TerminalSize(NamedTuple):
    """Terminal dimensions in character cells."""

    cols: int
    rows: int

    def __str__(self) -> str:
        return f"{self.cols}x{self.rows}"


def is_tty(fd: int | None = None) -> bool:
    """Check if fd (stdin by default) is a TTY."""
    if fd is None:
        return sys.stdin.isatty()
    return os.isatty(fd)


def get_terminal_size(fd: int) -> TerminalSize:
    """
    Get current terminal size for a file descriptor.

    Raises:
        TerminalSizeError: fd is not a terminal or the query failed.
    """
    try:
        size = os.get_terminal_size(fd)
    except (OSError, ValueError) as e:
        raise TerminalSizeError(cause=e) from e
    return TerminalSize(size.columns, size.lines)


class RawMode:
    """
    Scoped raw mode for a terminal file descriptor.

    The terminal attributes are captured on entry and restored exactly
    once on exit. If entering raw mode fails nothing was captured, so
    nothing is restored.

    Usage:
        >>> with RawMode(sys.stdin.fileno()):
        ...     data = os.read(fd, 1)
    """

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self.snapshot: Any | None = None
        self.restore_count = 0

    @property
    def is_raw(self) -> bool:
        return self.snapshot is not None

    def __enter__(self) -> RawMode:
        self.enter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.restore()

    def enter(self) -> None:
        """
        Switch to raw mode (no echo, no line buffering, no signal keys).

        Raises:
            RawModeError: termios unavailable or the fd is not a terminal.
        """
        if self.snapshot is not None:
            return

        try:
            import termios
            import tty
        except ImportError as e:
            raise RawModeError(cause=e) from e

        try:
            snapshot = termios.tcgetattr(self.fd)
            tty.setraw(self.fd)
        except (OSError, termios.error) as e:
            raise RawModeError(cause=e) from e

        self.snapshot = snapshot
        logger.debug(f"Entered raw mode on fd {self.fd}")

    def restore(self) -> bool:
        """
        Restore the captured attributes.

        Returns:
            True if attributes were restored, False if nothing was captured.
        """
        if self.snapshot is None:
            return False

        import termios

        snapshot, self.snapshot = self.snapshot, None
        self.restore_count += 1
        try:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, snapshot)
        except (OSError, termios.error) as e:
            logger.error(f"Failed to restore terminal attributes: {e}")
            return False

        logger.debug(f"Restored terminal attributes on fd {self.fd}")
        return True


__all__ = ["TerminalSize", "is_tty", "get_terminal_size", "RawMode"]
