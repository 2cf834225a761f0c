"""
Interactive remote terminal session.

TerminalController drives one Session from PTY negotiation to teardown:

    INIT -> PTY_REQUESTED -> STREAMING -> DRAINING -> CLOSED

CLOSED is reachable from every state, including on SIGTERM or SIGHUP.
Whatever the exit path, teardown runs in this order:
1. close local input and remote stdin (unblocks the input relay)
2. stop window-change events
3. cancel and collect remaining relay/watcher tasks
4. close the session
5. restore the local terminal (exactly once, only if raw mode was entered)

Usage:
    >>> session = await connect(target)
    >>> controller = TerminalController(session, ConsoleTerminal())
    >>> await controller.run()
    >>> print(controller.exit_message)
"""

from __future__ import annotations

import asyncio
import os
import signal
from contextlib import AsyncExitStack
from datetime import datetime
from enum import Enum
from typing import Any, BinaryIO, Coroutine

from sshhop.config import Settings, get_settings
from sshhop.exceptions import SessionInterruptedError
from sshhop.logging import get_logger
from sshhop.terminal.local import LocalInput, LocalTerminal, SizeEvents
from sshhop.terminal.modes import TerminalSize
from sshhop.terminal.relay import copy_to_local, copy_to_remote
from sshhop.terminal.resize import ResizeWatcher
from sshhop.transport.base import BaseSession, InputStream, OutputStream, SessionStreams

logger = get_logger(__name__)

# RFC 822 layout: 02 Jan 06 15:04 MST
RFC822_FORMAT = "%d %b %y %H:%M %Z"

TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class SessionState(str, Enum):
    INIT = "init"
    PTY_REQUESTED = "pty_requested"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"


def default_exit_message(now: datetime | None = None) -> str:
    """Message used when no relay recorded how the session ended."""
    now = now or datetime.now().astimezone()
    return f"the connection was closed on the remote side on {now.strftime(RFC822_FORMAT)}"


class TerminalController:
    """
    Runs an interactive shell over a Session on the local terminal.

    The controller owns the session for its lifetime and closes it on
    every exit path. relay_result is written first-writer-wins by the
    relay tasks; all tasks share one event loop, so no lock is needed.
    """

    def __init__(
        self,
        session: BaseSession,
        terminal: LocalTerminal,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._session = session
        self._terminal = terminal
        self._default_term = settings.default_term
        self._input_chunk_size = settings.input_chunk_size
        self._output_chunk_size = settings.output_chunk_size

        self.state = SessionState.INIT
        self.history: list[SessionState] = [SessionState.INIT]
        self.relay_result: str | None = None
        self.exit_message: str | None = None
        self.watcher: ResizeWatcher | None = None

        self._streams: SessionStreams | None = None
        self._input: LocalInput | None = None
        self._events: SizeEvents | None = None
        self._tasks: list[asyncio.Task[Any]] = []
        self._torn_down = False

        self.received_signal: signal.Signals | None = None
        self._signals: list[signal.Signals] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    # =========================================================================
    # Public
    # =========================================================================

    async def run(self) -> None:
        """
        Run the session until the remote side finishes.

        SIGTERM and SIGHUP cancel the session, so teardown and terminal
        restore still run before the process exits.

        Raises:
            TerminalSizeError, RawModeError: Local terminal unusable.
            PtyRequestError, StreamOpenError, ShellStartError: Negotiation
                rejected.
            RemoteExitError: Remote command failed or was killed.
            SessionInterruptedError: A termination signal was received.
        """
        self._watch_signals()
        try:
            size = self._terminal.size()
            term_type = os.environ.get("TERM") or self._default_term

            async with AsyncExitStack() as stack:
                # Unwinds in reverse: teardown first, terminal restore last
                stack.enter_context(self._terminal.raw_mode())
                stack.push_async_callback(self._teardown)

                await self._request_pty(term_type, size)
                await self._stream(size)
                await self._drain()
        except asyncio.CancelledError:
            if self.received_signal is None:
                raise
        finally:
            self._unwatch_signals()
            await self._teardown()
            self._set_state(SessionState.CLOSED)
            self.exit_message = self.relay_result or default_exit_message()

        if self.received_signal is not None:
            sig = self.received_signal
            raise SessionInterruptedError(int(sig), sig.name)

    @property
    def started(self) -> bool:
        """True once PTY negotiation was attempted."""
        return SessionState.PTY_REQUESTED in self.history

    def record_result(self, message: str) -> None:
        """Record how the session ended; only the first message is kept."""
        if self.relay_result is None:
            self.relay_result = message

    # =========================================================================
    # States
    # =========================================================================

    async def _request_pty(self, term_type: str, size: TerminalSize) -> None:
        self._set_state(SessionState.PTY_REQUESTED)
        logger.debug(f"Requesting PTY {term_type} {size}")
        await self._session.request_pty(term_type, size.rows, size.cols)

    async def _stream(self, size: TerminalSize) -> None:
        streams = self._session.open_streams()
        self._streams = streams

        self._events = self._terminal.window_changes()
        self._events.start()
        self.watcher = ResizeWatcher(self._session, size)
        self._spawn(self.watcher.run(self._events), "resize-watcher")

        stderr_task = self._spawn(
            self._relay_output(streams.stderr, self._terminal.stderr, "stderr"),
            "stderr-relay",
        )
        stdout_task = self._spawn(
            self._relay_output(streams.stdout, self._terminal.stdout, "stdout"),
            "stdout-relay",
        )

        self._input = self._terminal.open_input()
        self._spawn(self._relay_input(self._input, streams.stdin), "stdin-relay")

        await self._session.shell()
        self._set_state(SessionState.STREAMING)

        await asyncio.gather(stdout_task, stderr_task)

    async def _drain(self) -> None:
        self._set_state(SessionState.DRAINING)
        self._close_input()
        await self._session.wait()

    # =========================================================================
    # Relays
    # =========================================================================

    async def _relay_output(self, source: OutputStream, sink: BinaryIO, name: str) -> None:
        try:
            copied = await copy_to_local(source, sink, self._output_chunk_size)
        except Exception as e:
            logger.warning(f"{name} relay stopped: {e}")
            self.record_result(str(e) or type(e).__name__)
            return
        logger.debug(f"{name} relay finished after {copied} bytes")

    async def _relay_input(self, source: LocalInput, sink: InputStream) -> None:
        try:
            copied = await copy_to_remote(source, sink, self._input_chunk_size)
        except Exception as e:
            logger.warning(f"stdin relay stopped: {e}")
            self.record_result(str(e) or type(e).__name__)
            return
        logger.debug(f"stdin relay finished after {copied} bytes")

    # =========================================================================
    # Teardown
    # =========================================================================

    def _close_input(self) -> None:
        if self._input is not None:
            self._input.close()
        if self._streams is not None:
            self._streams.stdin.close()

    async def _teardown(self) -> None:
        if self._torn_down:
            return
        self._torn_down = True

        self._close_input()
        if self._events is not None:
            self._events.close()

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        try:
            await self._session.close()
        except Exception as e:
            logger.warning(f"Error closing session: {e}")

        logger.debug("Session torn down")

    # =========================================================================
    # Termination signals
    # =========================================================================

    def _watch_signals(self) -> None:
        task = asyncio.current_task()
        if task is None:
            return
        loop = asyncio.get_running_loop()
        for sig in TERMINATION_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig, task)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                logger.warning(f"Cannot handle {sig.name}: {e}")
                continue
            self._signals.append(sig)
        self._loop = loop

    def _unwatch_signals(self) -> None:
        if self._loop is None:
            return
        for sig in self._signals:
            self._loop.remove_signal_handler(sig)
        self._signals.clear()
        self._loop = None

    def _on_signal(self, sig: signal.Signals, task: asyncio.Task[Any]) -> None:
        logger.warning(f"Received {sig.name}, closing session")
        if self.received_signal is not None:
            return
        self.received_signal = sig
        # Teardown already running: let it finish rather than interrupt it
        if not self._torn_down:
            task.cancel()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _set_state(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)
        logger.debug(f"Session state: {state.value}")

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.append(task)
        return task


__all__ = ["SessionState", "TerminalController", "default_exit_message", "RFC822_FORMAT"]
