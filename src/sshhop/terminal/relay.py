"""
Byte relays between local and remote streams.
"""

from __future__ import annotations

from typing import BinaryIO

from sshhop.terminal.local import LocalInput
from sshhop.transport.base import InputStream, OutputStream


async def copy_to_local(source: OutputStream, sink: BinaryIO, chunk_size: int) -> int:
    """
    Copy a remote stream to a local binary file until EOF.

    Returns:
        Number of bytes copied.

    Raises:
        OSError: Writing to the local sink failed.
    """
    total = 0
    while True:
        data = await source.read(chunk_size)
        if not data:
            return total
        sink.write(data)
        sink.flush()
        total += len(data)


async def copy_to_remote(source: LocalInput, sink: InputStream, chunk_size: int) -> int:
    """
    Copy local input to the remote stdin until the input is closed.

    Returns:
        Number of bytes copied.

    Raises:
        OSError: Reading local input or writing the remote stream failed.
    """
    total = 0
    while True:
        data = await source.read(chunk_size)
        if not data:
            return total
        await sink.write(data)
        total += len(data)


__all__ = ["copy_to_local", "copy_to_remote"]
