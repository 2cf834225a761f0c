"""
Local terminal handling and the interactive session controller.

Usage:
    >>> from sshhop.terminal import ConsoleTerminal, TerminalController
    >>> controller = TerminalController(session, ConsoleTerminal())
    >>> await controller.run()
"""

from sshhop.terminal.controller import (
    SessionState,
    TerminalController,
    default_exit_message,
)
from sshhop.terminal.local import ConsoleTerminal, StdinReader, WindowChangeEvents
from sshhop.terminal.modes import RawMode, TerminalSize, get_terminal_size, is_tty
from sshhop.terminal.resize import ResizeWatcher

__all__ = [
    # Controller
    "SessionState",
    "TerminalController",
    "default_exit_message",
    # Local console
    "ConsoleTerminal",
    "StdinReader",
    "WindowChangeEvents",
    # Modes
    "RawMode",
    "TerminalSize",
    "get_terminal_size",
    "is_tty",
    # Resize
    "ResizeWatcher",
]
