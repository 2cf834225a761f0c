"""
Inventory loading and target selection.

Usage:
    >>> inventory = load_inventory("config.json")
    >>> resolver = TargetResolver(inventory)
    >>> target = resolver.select(alias="db1")
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from pydantic import ValidationError
from rich.console import Console

from sshhop.exceptions import InventoryError, TargetNotFoundError
from sshhop.logging import get_logger
from sshhop.models import Inventory, Target

logger = get_logger(__name__)

Chooser = Callable[[Sequence[Target]], str]


def load_inventory(path: str | Path) -> Inventory:
    """
    Load and validate the JSON inventory file.

    Raises:
        InventoryError: File is missing, unreadable or malformed.
    """
    path = Path(path).expanduser()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InventoryError(str(path), e.strerror or str(e), cause=e) from e

    try:
        inventory = Inventory.model_validate_json(raw)
    except ValidationError as e:
        reason = e.errors()[0].get("msg", "invalid inventory") if e.errors() else str(e)
        raise InventoryError(str(path), reason, cause=e) from e

    logger.debug(f"Loaded {len(inventory.servers)} servers from {path}")
    return inventory


def prompt_for_target(targets: Sequence[Target], console: Console | None = None) -> str:
    """Print a numbered server list and read one line of operator input."""
    console = console or Console()
    console.print("Please select a server to connect to:")
    for i, target in enumerate(targets, start=1):
        console.print(f"{i}. [cyan]{target.alias}[/cyan] ({target.endpoint})", highlight=False)
    try:
        return console.input("> ")
    except EOFError:
        return ""


class TargetResolver:
    """Find a single Target in an inventory."""

    def __init__(self, inventory: Inventory, fallback_to_first: bool = True) -> None:
        self._targets = list(inventory.servers)
        self._fallback_to_first = fallback_to_first

    def list_all(self) -> list[Target]:
        return list(self._targets)

    def by_alias(self, name: str) -> Target | None:
        """Case-insensitive alias match."""
        wanted = name.strip().casefold()
        for target in self._targets:
            if target.alias.casefold() == wanted:
                return target
        return None

    def by_address(self, address: str) -> Target | None:
        wanted = address.strip()
        for target in self._targets:
            if target.address == wanted:
                return target
        return None

    def match_choice(self, choice: str) -> Target | None:
        """Match interactive input as an alias, a list number, or an address."""
        choice = choice.strip()
        if not choice:
            return None

        target = self.by_alias(choice)
        if target is not None:
            return target

        if choice.isdigit():
            index = int(choice)
            if 1 <= index <= len(self._targets):
                return self._targets[index - 1]

        return self.by_address(choice)

    def select(
        self,
        alias: str | None = None,
        address: str | None = None,
        chooser: Chooser | None = None,
    ) -> Target:
        """
        Pick exactly one target.

        Tries alias, then address. When neither is given or neither
        matches, asks the chooser for one line of input. If that still
        does not match, the first configured target is returned unless
        fallback_to_first is disabled.

        Raises:
            TargetNotFoundError: Inventory is empty, or nothing matched
                and fallback is disabled.
        """
        if not self._targets:
            raise TargetNotFoundError(empty_inventory=True)

        target: Target | None = None
        if alias:
            target = self.by_alias(alias)
        elif address:
            target = self.by_address(address)

        if target is not None:
            logger.debug(f"Selected {target.alias} from command line")
            return target

        choice = (chooser or prompt_for_target)(self._targets)
        target = self.match_choice(choice)
        if target is not None:
            logger.debug(f"Selected {target.alias} interactively")
            return target

        if not self._fallback_to_first:
            raise TargetNotFoundError(choice.strip() or alias or address)

        target = self._targets[0]
        logger.info(f"No match, defaulting to first server {target.alias}")
        return target


__all__ = ["load_inventory", "prompt_for_target", "TargetResolver"]
