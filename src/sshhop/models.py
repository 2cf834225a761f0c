"""
Inventory models.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class AuthKind(str, Enum):
    """How a target authenticates."""

    KEY = "key"
    PASSWORD = "password"


class Target(BaseModel):
    """A remote host entry from the inventory."""

    alias: str
    address: str
    port: int = Field(default=22, ge=1, le=65535)
    user: str
    use_key: bool = False
    private_key: str | None = None
    password: str | None = None

    @property
    def auth_kind(self) -> AuthKind:
        """Key auth wins whenever use_key is set; the password is then ignored."""
        return AuthKind.KEY if self.use_key else AuthKind.PASSWORD

    @property
    def endpoint(self) -> str:
        """address:port string used for dialing and messages."""
        return f"{self.address}:{self.port}"

    def __str__(self) -> str:
        return f"{self.alias} ({self.endpoint})"


class Inventory(BaseModel):
    """Parsed inventory file."""

    servers: list[Target] = Field(default_factory=list)


__all__ = ["AuthKind", "Target", "Inventory"]
