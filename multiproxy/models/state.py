"""Pydantic models for the persisted application state.

The whole document ``{proxies, settings}`` is stored under one key and always
read and written wholesale. ``ProxyEntry.id`` is derived (``host:port``) and is
never persisted.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

_MIN_PORT = 1
_MAX_PORT = 65535


class ProxyMode(str, Enum):
    """Routing policy."""

    GLOBAL = "global"
    DOMAIN_BASED = "domain-based"


class ProxyEntry(BaseModel):
    """One configured upstream proxy."""

    name: str = ""
    host: str = ""
    port: str = ""  # numeric text, validated lazily via port_number
    login: str = ""
    password: str = ""
    active: bool = False
    domains: list[str] = Field(default_factory=list)
    priority: int = 0  # Lower = checked first

    @property
    def id(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def port_number(self) -> int | None:
        """The port as an int, or None when it is not a valid TCP port."""
        text = self.port.strip()
        # isdigit alone accepts non-ASCII digits that int() rejects
        if not (text.isascii() and text.isdigit()):
            return None
        value = int(text)
        if value < _MIN_PORT or value > _MAX_PORT:
            return None
        return value

    @property
    def is_usable(self) -> bool:
        """Active with a host and a valid port. Unusable entries never route."""
        return self.active and bool(self.host.strip()) and self.port_number is not None

    @property
    def has_credentials(self) -> bool:
        return bool(self.login) and bool(self.password)

    @property
    def display_name(self) -> str:
        return self.name or self.id


class ProxySettings(BaseModel):
    """Global routing settings."""

    mode: ProxyMode = ProxyMode.GLOBAL


class AppState(BaseModel):
    """Aggregate root owned by the state store."""

    proxies: list[ProxyEntry] = Field(default_factory=list)
    settings: ProxySettings = Field(default_factory=ProxySettings)
