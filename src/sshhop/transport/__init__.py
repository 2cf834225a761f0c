"""
Remote transport: the Session contract and its asyncssh implementation.
"""

from sshhop.transport.base import BaseSession, SessionStreams
from sshhop.transport.ssh import SSHSession, build_auth_options, connect, load_private_key

__all__ = [
    "BaseSession",
    "SessionStreams",
    "SSHSession",
    "build_auth_options",
    "connect",
    "load_private_key",
]
