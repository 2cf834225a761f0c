"""
Fakes for terminal controller tests.

FakeSession and FakeTerminal let tests inject remote output, local
input, window-change events and failures at every stage.
"""

from __future__ import annotations

import asyncio
import io

import pytest

from sshhop.config import Settings
from sshhop.exceptions import RawModeError, TerminalSizeError
from sshhop.terminal.local import WindowChangeEvents
from sshhop.terminal.modes import TerminalSize
from sshhop.transport.base import BaseSession, SessionStreams


class FakeRemoteInput:
    """Remote stdin that records writes."""

    def __init__(self, error: Exception | None = None) -> None:
        self.data = bytearray()
        self.closed = False
        self.error = error

    async def write(self, data: bytes) -> None:
        if self.error is not None:
            raise self.error
        self.data.extend(data)

    def close(self) -> None:
        self.closed = True


class FakeSession(BaseSession):
    """In-memory session with injectable failures."""

    def __init__(
        self,
        output: bytes | None = b"",
        errors: bytes = b"",
        pty_error: Exception | None = None,
        stream_error: Exception | None = None,
        shell_error: Exception | None = None,
        wait_error: Exception | None = None,
        stdin_error: Exception | None = None,
        window_error: Exception | None = None,
    ) -> None:
        # output=None keeps the remote side open until finish() is called
        self.output = output
        self.errors = errors
        self.pty_error = pty_error
        self.stream_error = stream_error
        self.shell_error = shell_error
        self.wait_error = wait_error
        self.window_error = window_error

        self.calls: list[str] = []
        self.pty: tuple[str, int, int] | None = None
        self.window_changes: list[tuple[int, int]] = []
        self.close_count = 0
        self.shell_started = asyncio.Event()

        self.stdin = FakeRemoteInput(stdin_error)
        self.stdout: asyncio.StreamReader | None = None
        self.stderr: asyncio.StreamReader | None = None

    async def request_pty(self, term_type: str, rows: int, cols: int) -> None:
        self.calls.append("request_pty")
        self.pty = (term_type, rows, cols)
        if self.pty_error is not None:
            raise self.pty_error

    async def window_change(self, rows: int, cols: int) -> None:
        self.calls.append("window_change")
        if self.window_error is not None:
            raise self.window_error
        self.window_changes.append((cols, rows))

    def open_streams(self) -> SessionStreams:
        self.calls.append("open_streams")
        if self.stream_error is not None:
            raise self.stream_error
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        return SessionStreams(stdin=self.stdin, stdout=self.stdout, stderr=self.stderr)

    async def shell(self) -> None:
        self.calls.append("shell")
        if self.shell_error is not None:
            raise self.shell_error
        self.shell_started.set()
        if self.output is not None:
            self.finish(self.output, self.errors)

    def finish(self, output: bytes = b"", errors: bytes = b"") -> None:
        """Emit final output and end both remote streams."""
        assert self.stdout is not None and self.stderr is not None
        if output:
            self.stdout.feed_data(output)
        if errors:
            self.stderr.feed_data(errors)
        self.stdout.feed_eof()
        self.stderr.feed_eof()

    async def wait(self) -> None:
        self.calls.append("wait")
        if self.wait_error is not None:
            raise self.wait_error

    async def close(self) -> None:
        self.close_count += 1
        for reader in (self.stdout, self.stderr):
            if reader is not None and not reader.at_eof():
                reader.feed_eof()


class FakeRawMode:
    """Raw mode that counts captures and restores."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.snapshot: str | None = None
        self.enter_count = 0
        self.restore_count = 0

    def __enter__(self) -> FakeRawMode:
        if self.fail:
            raise RawModeError(cause=OSError(25, "Inappropriate ioctl for device"))
        self.snapshot = "saved"
        self.enter_count += 1
        return self

    def __exit__(self, *exc_info) -> None:
        if self.snapshot is not None:
            self.snapshot = None
            self.restore_count += 1


class FakeLocalInput:
    """Local keyboard input fed by the test."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | Exception] = asyncio.Queue()
        self.closed = False

    def feed(self, data: bytes | Exception) -> None:
        self._queue.put_nowait(data)

    async def read(self, n: int) -> bytes:
        if self.closed:
            return b""
        item = await self._queue.get()
        if isinstance(item, Exception):
            raise item
        return item[:n]

    def close(self) -> None:
        self.closed = True
        self._queue.put_nowait(b"")


class BrokenOutput(io.BytesIO):
    """Local output whose writes fail like a closed pipe."""

    def write(self, data) -> int:
        raise BrokenPipeError(32, "Broken pipe")


class FakeTerminal:
    """Local terminal stand-in."""

    def __init__(
        self,
        size: TerminalSize = TerminalSize(80, 24),
        size_error: bool = False,
        raw_fail: bool = False,
    ) -> None:
        self._size = size
        self._size_error = size_error
        self.raw = FakeRawMode(fail=raw_fail)
        self.input = FakeLocalInput()
        self.events = WindowChangeEvents()
        self.stdout: io.BytesIO = io.BytesIO()
        self.stderr: io.BytesIO = io.BytesIO()

    def size(self) -> TerminalSize:
        if self._size_error:
            raise TerminalSizeError(cause=OSError(25, "Inappropriate ioctl for device"))
        return self._size

    def raw_mode(self) -> FakeRawMode:
        return self.raw

    def open_input(self) -> FakeLocalInput:
        return self.input

    def window_changes(self) -> WindowChangeEvents:
        return self.events


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def make_session():
    """Factory for FakeSession."""
    return FakeSession


@pytest.fixture
def make_terminal():
    """Factory for FakeTerminal."""
    return FakeTerminal


@pytest.fixture
def broken_output():
    """Factory for a local output that fails on write."""
    return BrokenOutput


@pytest.fixture
def wait_until():
    """Yield to the event loop until a condition holds."""

    async def _wait_until(predicate, attempts: int = 200) -> None:
        for _ in range(attempts):
            if predicate():
                return
            await asyncio.sleep(0)
        raise AssertionError("condition not reached")

    return _wait_until
