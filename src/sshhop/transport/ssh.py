"""
SSH transport built on asyncssh.

Provides:
- build_auth_options(): authentication kwargs for a Target
- connect(): dial and authenticate, returning an SSHSession
- SSHSession: BaseSession adapter over one asyncssh session channel

asyncssh opens the channel, sends the pty-req and starts the shell in a
single exchange (create_session). SSHSession therefore records the PTY
parameters in request_pty() and sends them from shell(); on the wire
the order stays pty-req before shell.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

import asyncssh

from sshhop.config import Settings, get_settings
from sshhop.exceptions import (
    ConnectionLostError,
    DialError,
    PrivateKeyError,
    PtyRequestError,
    RemoteExitError,
    SessionError,
    ShellStartError,
    StreamOpenError,
    WindowChangeError,
)
from sshhop.logging import get_logger
from sshhop.models import AuthKind, Target
from sshhop.transport.base import BaseSession, SessionStreams

logger = get_logger(__name__)


# =============================================================================
# Authentication
# =============================================================================


def expand_key_path(path: str) -> str:
    """Resolve a leading ~ against the current process user's home."""
    if path.startswith("~"):
        return str(Path.home()) + path[1:]
    return path


def load_private_key(path: str) -> asyncssh.SSHKey:
    """
    Read and parse a private key file.

    Raises:
        PrivateKeyError: File is unreadable or not a valid private key.
    """
    key_path = expand_key_path(path)
    try:
        with open(key_path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise PrivateKeyError(key_path, e.strerror or str(e), cause=e) from e

    try:
        return asyncssh.import_private_key(data)
    except (asyncssh.KeyImportError, ValueError) as e:
        raise PrivateKeyError(key_path, str(e), cause=e) from e


def build_auth_options(target: Target) -> dict[str, Any]:
    """
    Build asyncssh authentication kwargs for a target.

    Only the configured method is enabled. With no key and no password
    every client method is switched off, leaving the outcome to the
    server (a rejection surfaces as DialError from connect()).
    """
    options: dict[str, Any] = {
        "client_keys": None,
        "password": None,
        "agent_path": None,
        "kbdint_auth": False,
        "gss_host": None,
    }

    if target.auth_kind is AuthKind.KEY:
        options["client_keys"] = [load_private_key(target.private_key or "")]
        logger.debug(f"Using public key auth for {target.alias}")
    elif target.password:
        options["password"] = target.password
        logger.debug(f"Using password auth for {target.alias}")
    else:
        logger.debug(f"No auth method configured for {target.alias}")

    return options


# =============================================================================
# Streams
# =============================================================================


class _ChannelInput:
    """Writer for the remote stdin. Writes before shell() are buffered."""

    def __init__(self) -> None:
        self._chan: asyncssh.SSHClientChannel | None = None
        self._pending: list[bytes] = []
        self._closed = False

    def bind(self, chan: asyncssh.SSHClientChannel) -> None:
        self._chan = chan
        pending, self._pending = self._pending, []
        for data in pending:
            chan.write(data)

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise BrokenPipeError("remote stdin is closed")
        if self._chan is None:
            self._pending.append(data)
            return
        self._chan.write(data)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._chan is not None and not self._chan.is_closing():
            try:
                self._chan.write_eof()
            except (OSError, asyncssh.Error) as e:
                logger.debug(f"write_eof failed: {e}")


class _RelaySession(asyncssh.SSHClientSession):
    """
    Feeds channel data into stdout/stderr readers.

    A connection lost before EOF is kept in `error` instead of being set
    on the readers, so output already received is still relayed.
    """

    def __init__(self, stdout: asyncio.StreamReader, stderr: asyncio.StreamReader) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._eof = False
        self.error: Exception | None = None

    def data_received(self, data: bytes, datatype: Any) -> None:
        if datatype == asyncssh.EXTENDED_DATA_STDERR:
            self._stderr.feed_data(data)
        else:
            self._stdout.feed_data(data)

    def eof_received(self) -> bool:
        self._eof = True
        self._stdout.feed_eof()
        self._stderr.feed_eof()
        return False

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None and not self._eof:
            self.error = exc
        self._stdout.feed_eof()
        self._stderr.feed_eof()


# =============================================================================
# Session
# =============================================================================


class SSHSession(BaseSession):
    """One interactive session on an authenticated asyncssh connection."""

    def __init__(self, conn: asyncssh.SSHClientConnection, target: Target) -> None:
        self._conn = conn
        self._target = target
        self._chan: asyncssh.SSHClientChannel | None = None
        self._relay: _RelaySession | None = None

        self._term_type: str | None = None
        self._term_size: tuple[int, int] = (0, 0)  # (cols, rows)

        self._stdin: _ChannelInput | None = None
        self._stdout: asyncio.StreamReader | None = None
        self._stderr: asyncio.StreamReader | None = None
        self._closed = False

    @property
    def channel(self) -> asyncssh.SSHClientChannel | None:
        return self._chan

    async def request_pty(self, term_type: str, rows: int, cols: int) -> None:
        if self._chan is not None:
            raise PtyRequestError("shell already started")
        self._term_type = term_type
        self._term_size = (cols, rows)
        logger.debug(f"PTY requested: {term_type} {cols}x{rows}")

    async def window_change(self, rows: int, cols: int) -> None:
        if self._chan is None:
            self._term_size = (cols, rows)
            return
        try:
            self._chan.change_terminal_size(cols, rows)
        except (OSError, asyncssh.Error) as e:
            raise WindowChangeError(cols, rows, cause=e) from e

    def open_streams(self) -> SessionStreams:
        if self._closed:
            raise StreamOpenError("session is closed")
        if self._stdout is not None:
            raise StreamOpenError("streams already open")

        self._stdin = _ChannelInput()
        self._stdout = asyncio.StreamReader()
        self._stderr = asyncio.StreamReader()
        return SessionStreams(stdin=self._stdin, stdout=self._stdout, stderr=self._stderr)

    async def shell(self) -> None:
        if self._stdout is None or self._stderr is None or self._stdin is None:
            raise ShellStartError("streams not open")
        if self._chan is not None:
            raise ShellStartError("shell already started")

        stdout, stderr = self._stdout, self._stderr
        kwargs: dict[str, Any] = {"encoding": None}
        if self._term_type is not None:
            cols, rows = self._term_size
            kwargs.update(term_type=self._term_type, term_size=(cols, rows))

        try:
            chan, relay = await self._conn.create_session(
                lambda: _RelaySession(stdout, stderr), **kwargs
            )
        except asyncssh.ChannelOpenError as e:
            if e.code == asyncssh.OPEN_REQUEST_PTY_FAILED:
                raise PtyRequestError(e.reason, cause=e) from e
            if e.code == asyncssh.OPEN_REQUEST_SESSION_FAILED:
                raise ShellStartError(e.reason, cause=e) from e
            raise SessionError(self._target.endpoint, e.reason, cause=e) from e
        except (OSError, asyncssh.Error) as e:
            raise SessionError(self._target.endpoint, str(e), cause=e) from e

        self._chan = chan
        self._relay = relay
        self._stdin.bind(chan)
        logger.debug(f"Shell started on {self._target.endpoint}")

    async def wait(self) -> None:
        if self._chan is None:
            raise ShellStartError("shell not started")

        await self._chan.wait_closed()
        relay = self._relay
        if relay is not None and relay.error is not None:
            raise ConnectionLostError(self._target.endpoint, cause=relay.error)

        exit_signal = self._chan.get_exit_signal()
        exit_status = self._chan.get_exit_status()
        logger.debug(f"Remote exit: status={exit_status} signal={exit_signal}")

        if exit_signal is not None:
            raise RemoteExitError(exit_status, exit_signal[0])
        if exit_status != 0:
            raise RemoteExitError(exit_status)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        if self._stdin is not None:
            self._stdin.close()
        if self._chan is not None:
            self._chan.close()
        for reader in (self._stdout, self._stderr):
            if reader is not None and not reader.at_eof():
                reader.feed_eof()

        self._conn.close()
        await self._conn.wait_closed()
        logger.debug(f"Connection to {self._target.endpoint} closed")


# =============================================================================
# Connector
# =============================================================================


async def connect(target: Target, settings: Settings | None = None) -> SSHSession:
    """
    Dial and authenticate to a target.

    Key problems are reported before any network activity.

    Raises:
        PrivateKeyError: Key file unreadable or unparsable.
        DialError: Network, handshake, authentication or timeout failure.
    """
    settings = settings or get_settings()
    options = build_auth_options(target)

    known_hosts: str | None = None
    if settings.known_hosts:
        known_hosts = os.path.expanduser(settings.known_hosts)

    logger.info(f"Dialing {target.user}@{target.endpoint}")
    try:
        conn = await asyncio.wait_for(
            asyncssh.connect(
                target.address,
                port=target.port,
                username=target.user,
                known_hosts=known_hosts,
                **options,
            ),
            timeout=settings.connect_timeout,
        )
    except asyncio.TimeoutError as e:
        raise DialError(
            target.endpoint, TimeoutError(f"timed out after {settings.connect_timeout}s")
        ) from e
    except (OSError, asyncssh.Error) as e:
        raise DialError(target.endpoint, cause=e) from e

    return SSHSession(conn, target)


__all__ = [
    "expand_key_path",
    "load_private_key",
    "build_auth_options",
    "SSHSession",
    "connect",
]
