"""
Forward local window size changes to the remote PTY.
"""

from __future__ import annotations

from typing import AsyncIterable

from sshhop.exceptions import SSHHopError
from sshhop.logging import get_logger
from sshhop.terminal.modes import TerminalSize
from sshhop.transport.base import BaseSession

logger = get_logger(__name__)


class ResizeWatcher:
    """
    Sends a window-change request for every size that differs from the
    last one the remote side accepted.

    last_size is only touched by run(), so it needs no locking.
    """

    def __init__(self, session: BaseSession, initial_size: TerminalSize) -> None:
        self._session = session
        self.last_size = initial_size
        self.requests_sent = 0

    async def handle(self, size: TerminalSize) -> bool:
        """
        Process one notification.

        Returns:
            True if a resize request was sent.
        """
        if size == self.last_size:
            return False

        try:
            await self._session.window_change(size.rows, size.cols)
        except SSHHopError as e:
            logger.warning(f"Unable to send window-change request: {e}")
            return False

        self.requests_sent += 1
        logger.debug(f"Remote PTY resized {self.last_size} -> {size}")
        self.last_size = size
        return True

    async def run(self, events: AsyncIterable[TerminalSize]) -> None:
        """Consume size events until the source ends."""
        async for size in events:
            await self.handle(size)


__all__ = ["ResizeWatcher"]
