"""Network configuration sink and authentication listener registry.

These stand in for the external network stack: the sink receives the
generated proxy configuration, the registry routes auth challenges to the
registered listener.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from multiproxy.routing.auth import AuthChallenge, AuthResponse
from multiproxy.routing.pac import ClearConfig, FixedServersConfig, PacScriptConfig

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50

InstalledConfig = ClearConfig | FixedServersConfig | PacScriptConfig
AuthListener = Callable[[AuthChallenge], AuthResponse]


class NetworkConfigSink(Protocol):
    """Where generated proxy configurations are installed."""

    async def apply(self, config: FixedServersConfig | PacScriptConfig) -> None: ...

    async def clear(self) -> None: ...

    async def set_indicator(self, active: bool) -> None: ...


class RecordingNetworkSink:
    """Keeps the installed configuration in memory.

    When ``pac_output_path`` is set, every installed PAC script is also
    written there so a system proxy can point at the file. Only the last
    ``history_size`` installs are kept in ``history``.
    """

    def __init__(
        self,
        pac_output_path: str | Path | None = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ) -> None:
        self._pac_output_path = Path(pac_output_path) if pac_output_path else None
        self.current: InstalledConfig = ClearConfig()
        self.history: deque[InstalledConfig] = deque(maxlen=history_size)
        self.indicator: bool = False

    async def apply(self, config: FixedServersConfig | PacScriptConfig) -> None:
        self.current = config
        self.history.append(config)
        if isinstance(config, PacScriptConfig) and self._pac_output_path is not None:
            self._pac_output_path.parent.mkdir(parents=True, exist_ok=True)
            self._pac_output_path.write_text(config.data, encoding="utf-8")
            logger.debug("PAC script written to %s", self._pac_output_path)

    async def clear(self) -> None:
        self.current = ClearConfig()
        self.history.append(self.current)

    async def set_indicator(self, active: bool) -> None:
        self.indicator = active


class AuthListenerRegistry:
    """Holds at most one auth listener per identity.

    Adding a listener that is already registered, or removing one that is
    not, does nothing.
    """

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def add(self, listener: AuthListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def has(self, listener: AuthListener) -> bool:
        return listener in self._listeners

    def __len__(self) -> int:
        return len(self._listeners)

    def dispatch(self, challenge: AuthChallenge) -> AuthResponse:
        """Ask the registered listener; empty response when none is registered."""
        if not self._listeners:
            return AuthResponse()
        return self._listeners[0](challenge)
