"""
Local console access for the terminal controller.

ConsoleTerminal bundles everything the controller needs from the
process's own terminal: size queries, raw mode, a non-blocking stdin
reader, binary stdout/stderr and a queue of window-change events.
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from contextlib import AbstractContextManager
from typing import Any, BinaryIO, Callable, Protocol

from sshhop.exceptions import TerminalSizeError
from sshhop.logging import get_logger
from sshhop.terminal.modes import RawMode, TerminalSize, get_terminal_size

logger = get_logger(__name__)


class LocalInput(Protocol):
    async def read(self, n: int) -> bytes: ...

    def close(self) -> None: ...


class SizeEvents(Protocol):
    def start(self) -> None: ...

    def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


class LocalTerminal(Protocol):
    """What the controller uses from the local side."""

    stdout: BinaryIO
    stderr: BinaryIO

    def size(self) -> TerminalSize: ...

    def raw_mode(self) -> AbstractContextManager[Any]: ...

    def open_input(self) -> LocalInput: ...

    def window_changes(self) -> SizeEvents: ...


class StdinReader:
    """
    Event-loop reader for a terminal fd.

    Waits for readability with loop.add_reader, so no thread is left
    blocked in read(). close() completes a pending read with b"".
    """

    def __init__(self, fd: int) -> None:
        self._fd = fd
        self._waiter: asyncio.Future[bytes] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, n: int) -> bytes:
        if self._closed:
            return b""

        loop = asyncio.get_running_loop()
        waiter: asyncio.Future[bytes] = loop.create_future()
        self._waiter = waiter
        loop.add_reader(self._fd, self._on_readable, waiter, n)
        try:
            return await waiter
        finally:
            loop.remove_reader(self._fd)
            self._waiter = None

    def _on_readable(self, waiter: asyncio.Future[bytes], n: int) -> None:
        if waiter.done():
            return
        try:
            data = os.read(self._fd, n)
        except BlockingIOError:
            return
        except OSError as e:
            waiter.set_exception(e)
            return
        waiter.set_result(data)

    def close(self) -> None:
        self._closed = True
        waiter = self._waiter
        if waiter is not None and not waiter.done():
            waiter.set_result(b"")


class WindowChangeEvents:
    """
    Async iterator of terminal sizes.

    start() hooks SIGWINCH into the running loop; every signal re-reads
    the terminal size and queues it. notify() queues a size directly.
    close() unhooks the signal and ends iteration.
    """

    def __init__(self, size_reader: Callable[[], TerminalSize] | None = None) -> None:
        self._size_reader = size_reader
        self._queue: asyncio.Queue[TerminalSize | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None

    def start(self) -> None:
        if self._size_reader is None or self._loop is not None:
            return
        sigwinch = getattr(signal, "SIGWINCH", None)
        if sigwinch is None:
            logger.debug("SIGWINCH not available, resize tracking disabled")
            return

        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(sigwinch, self._on_signal)
        except (NotImplementedError, RuntimeError, ValueError) as e:
            logger.warning(f"Cannot watch window size changes: {e}")
            return
        self._loop = loop

    def _on_signal(self) -> None:
        assert self._size_reader is not None
        try:
            size = self._size_reader()
        except TerminalSizeError as e:
            logger.warning(str(e))
            return
        self.notify(size)

    def notify(self, size: TerminalSize) -> None:
        self._queue.put_nowait(size)

    def close(self) -> None:
        if self._loop is not None:
            self._loop.remove_signal_handler(signal.SIGWINCH)
            self._loop = None
        self._queue.put_nowait(None)

    def __aiter__(self) -> WindowChangeEvents:
        return self

    async def __anext__(self) -> TerminalSize:
        size = await self._queue.get()
        if size is None:
            raise StopAsyncIteration
        return size


class ConsoleTerminal:
    """The process's controlling terminal."""

    def __init__(
        self,
        fd: int | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ) -> None:
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.stdout = stdout or sys.stdout.buffer
        self.stderr = stderr or sys.stderr.buffer

    def size(self) -> TerminalSize:
        return get_terminal_size(self.fd)

    def raw_mode(self) -> RawMode:
        return RawMode(self.fd)

    def open_input(self) -> StdinReader:
        return StdinReader(self.fd)

    def window_changes(self) -> WindowChangeEvents:
        return WindowChangeEvents(self.size)


__all__ = [
    "LocalInput",
    "SizeEvents",
    "LocalTerminal",
    "StdinReader",
    "WindowChangeEvents",
    "ConsoleTerminal",
]
