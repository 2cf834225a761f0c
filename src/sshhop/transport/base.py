"""
Session contract shared by the transport and the terminal controller.

A session is one remote command channel: it can allocate a PTY, resize
it, expose three byte streams, start a shell and report how the remote
command ended.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol


class InputStream(Protocol):
    """Byte sink feeding the remote side's stdin."""

    async def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class OutputStream(Protocol):
    """Byte source from the remote side. read() returns b"" at EOF."""

    async def read(self, n: int = -1) -> bytes: ...


@dataclass
class SessionStreams:
    """The three independent byte streams of a session."""

    stdin: InputStream
    stdout: OutputStream
    stderr: OutputStream


class BaseSession(ABC):
    """
    Abstract remote command session.

    Call order:
        request_pty() -> open_streams() -> shell() -> wait() -> close()

    close() must be safe to call more than once and from any state.
    """

    @abstractmethod
    async def request_pty(self, term_type: str, rows: int, cols: int) -> None:
        """Request a pseudo-terminal. Raises PtyRequestError."""

    @abstractmethod
    async def window_change(self, rows: int, cols: int) -> None:
        """Resize the allocated PTY. Raises WindowChangeError."""

    @abstractmethod
    def open_streams(self) -> SessionStreams:
        """Open stdin/stdout/stderr. Raises StreamOpenError."""

    @abstractmethod
    async def shell(self) -> None:
        """Start the remote login shell. Raises ShellStartError."""

    @abstractmethod
    async def wait(self) -> None:
        """Block until the remote command ends. Raises RemoteExitError."""

    @abstractmethod
    async def close(self) -> None:
        """Release the channel and the underlying connection."""


__all__ = ["InputStream", "OutputStream", "SessionStreams", "BaseSession"]
