"""
sshhop configuration.

Settings are read from environment variables with the SSHHOP_ prefix:

    SSHHOP_INVENTORY_PATH=~/servers.json
    SSHHOP_CONNECT_TIMEOUT=15
    SSHHOP_KNOWN_HOSTS=~/.ssh/known_hosts
    SSHHOP_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TERM = "xterm-256color"


class Settings(BaseSettings):
    """Runtime settings for sshhop."""

    model_config = SettingsConfigDict(
        env_prefix="SSHHOP_",
        extra="ignore",
    )

    # Inventory
    inventory_path: str = "config.json"
    fallback_to_first: bool = True

    # Connection
    connect_timeout: float = Field(default=10.0, ge=1.0, le=120.0)
    known_hosts: str | None = None  # None disables host key verification

    # Terminal
    default_term: str = DEFAULT_TERM
    input_chunk_size: int = Field(default=128, ge=1, le=65536)
    output_chunk_size: int = Field(default=4096, ge=1, le=1024 * 1024)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_json: bool = False
    log_file: str | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings singleton, creating it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_settings(**overrides: Any) -> Settings:
    """Replace the settings singleton with one built from overrides."""
    global _settings
    _settings = Settings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the settings singleton (next get_settings() re-reads env)."""
    global _settings
    _settings = None


__all__ = [
    "DEFAULT_TERM",
    "Settings",
    "get_settings",
    "configure_settings",
    "reset_settings",
]
