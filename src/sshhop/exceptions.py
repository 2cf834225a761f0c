"""
sshhop exceptions.

All errors derive from SSHHopError so the CLI can report any failure
as a single one-line cause.
"""

from __future__ import annotations


class SSHHopError(Exception):
    """Base class for all sshhop errors."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Inventory / Selection
# =============================================================================


class InventoryError(SSHHopError):
    """Inventory file is missing, unreadable or invalid."""

    def __init__(
        self,
        path: str,
        reason: str,
        cause: BaseException | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to load inventory {path}: {reason}", cause=cause)


class TargetNotFoundError(SSHHopError):
    """No inventory entry matches the selector."""

    def __init__(self, selector: str | None = None, empty_inventory: bool = False) -> None:
        self.selector = selector
        if empty_inventory:
            message = "no servers configured in inventory"
        elif selector:
            message = f"no server found matching '{selector}'"
        else:
            message = "no server selected"
        super().__init__(message)


# =============================================================================
# Transport
# =============================================================================


class ConnectError(SSHHopError):
    """Base for failures while establishing the remote connection."""


class PrivateKeyError(ConnectError):
    """Private key file is unreadable or cannot be parsed."""

    def __init__(
        self,
        path: str,
        reason: str,
        cause: BaseException | None = None,
    ) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"failed to read private key {path}: {reason}", cause=cause)


class DialError(ConnectError):
    """Network connection or SSH handshake/authentication failed."""

    def __init__(self, address: str, cause: BaseException | None = None) -> None:
        self.address = address
        if cause is None:
            detail = "unknown error"
        else:
            detail = str(cause) or type(cause).__name__
        super().__init__(f"failed to connect to server {address}: {detail}", cause=cause)


class SessionError(ConnectError):
    """Remote side refused to open a session channel."""

    def __init__(
        self,
        address: str,
        reason: str,
        cause: BaseException | None = None,
    ) -> None:
        self.address = address
        self.reason = reason
        super().__init__(
            f"failed to create session on server {address}: {reason}", cause=cause
        )


class ConnectionLostError(ConnectError):
    """Connection dropped before the remote side closed the session."""

    def __init__(self, address: str, cause: BaseException | None = None) -> None:
        self.address = address
        detail = (str(cause) or type(cause).__name__) if cause is not None else "unknown error"
        super().__init__(f"connection to server {address} lost: {detail}", cause=cause)


# =============================================================================
# Local terminal
# =============================================================================


class TerminalError(SSHHopError):
    """Base for local terminal failures."""


class TerminalSizeError(TerminalError):
    """Cannot read the local terminal size."""

    def __init__(self, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"unable to read terminal size{detail}", cause=cause)


class RawModeError(TerminalError):
    """Cannot put the local terminal into raw mode."""

    def __init__(self, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"unable to enter raw mode{detail}", cause=cause)


class SessionInterruptedError(TerminalError):
    """Session ended because this process received a termination signal."""

    def __init__(self, signum: int, signal_name: str) -> None:
        self.signum = signum
        self.signal_name = signal_name
        super().__init__(f"session interrupted by {signal_name}")


# =============================================================================
# Remote protocol
# =============================================================================


class ProtocolError(SSHHopError):
    """Base for requests rejected by the remote side."""


class PtyRequestError(ProtocolError):
    """Remote side rejected the PTY allocation."""

    def __init__(self, reason: str = "", cause: BaseException | None = None) -> None:
        message = "pty request failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause=cause)


class WindowChangeError(ProtocolError):
    """Remote side rejected a window-change request."""

    def __init__(self, cols: int, rows: int, cause: BaseException | None = None) -> None:
        self.cols = cols
        self.rows = rows
        super().__init__(
            f"unable to send window-change request ({cols}x{rows})", cause=cause
        )


class StreamOpenError(ProtocolError):
    """Session streams could not be opened."""

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        super().__init__(f"unable to open session streams: {reason}", cause=cause)


class ShellStartError(ProtocolError):
    """Remote side refused to start the shell."""

    def __init__(self, reason: str = "", cause: BaseException | None = None) -> None:
        message = "unable to start remote shell"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, cause=cause)


class RemoteExitError(SSHHopError):
    """Remote command ended with a non-zero status or a signal."""

    def __init__(
        self,
        exit_status: int | None,
        exit_signal: str | None = None,
    ) -> None:
        self.exit_status = exit_status
        self.exit_signal = exit_signal
        if exit_signal:
            message = f"remote command terminated by signal {exit_signal}"
        elif exit_status is None or exit_status < 0:
            message = "remote command exited without exit status or exit signal"
        else:
            message = f"remote command exited with status {exit_status}"
        super().__init__(message)


__all__ = [
    "SSHHopError",
    "InventoryError",
    "TargetNotFoundError",
    "ConnectError",
    "PrivateKeyError",
    "DialError",
    "SessionError",
    "ConnectionLostError",
    "TerminalError",
    "TerminalSizeError",
    "RawModeError",
    "SessionInterruptedError",
    "ProtocolError",
    "PtyRequestError",
    "WindowChangeError",
    "StreamOpenError",
    "ShellStartError",
    "RemoteExitError",
]
