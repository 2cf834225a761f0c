"""
sshhop - pick a server from a JSON inventory and open an interactive SSH terminal.

Usage:
    >>> import asyncio
    >>> from sshhop import ConsoleTerminal, TargetResolver, TerminalController, connect, load_inventory
    >>>
    >>> target = TargetResolver(load_inventory("config.json")).select(alias="db1")
    >>> async def main():
    ...     session = await connect(target)
    ...     controller = TerminalController(session, ConsoleTerminal())
    ...     await controller.run()
    ...     print(controller.exit_message)
    >>> asyncio.run(main())
"""

from sshhop.config import Settings, configure_settings, get_settings, reset_settings
from sshhop.exceptions import SSHHopError
from sshhop.inventory import TargetResolver, load_inventory
from sshhop.models import AuthKind, Inventory, Target
from sshhop.terminal import ConsoleTerminal, TerminalController
from sshhop.transport import connect

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Settings",
    "configure_settings",
    "get_settings",
    "reset_settings",
    "SSHHopError",
    "TargetResolver",
    "load_inventory",
    "AuthKind",
    "Inventory",
    "Target",
    "ConsoleTerminal",
    "TerminalController",
    "connect",
]
