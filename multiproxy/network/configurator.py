"""Installs generated proxy configurations whenever the state changes.

The configurator is the only writer of the network sink and the only code
that (de)registers the auth listener. The listener is registered while at
least one usable active proxy has credentials.
"""

from __future__ import annotations

import logging

from multiproxy.models.state import AppState
from multiproxy.network.sink import AuthListener, AuthListenerRegistry, NetworkConfigSink
from multiproxy.routing.pac import ClearConfig, generate
from multiproxy.routing.resolver import active_proxies

logger = logging.getLogger(__name__)


class ProxyConfigurator:
    """Keeps the network sink in step with committed state.

    Args:
        sink: Network stack receiving configs.
        registry: Auth listener registry.
        auth_listener: Callable answering auth challenges.
    """

    def __init__(
        self,
        sink: NetworkConfigSink,
        registry: AuthListenerRegistry,
        auth_listener: AuthListener,
    ) -> None:
        self._sink = sink
        self._registry = registry
        self._auth_listener = auth_listener
        self._indicator: bool | None = None
        self._applied: int = 0

    async def on_state_change(self, state: AppState) -> None:
        """State store listener: regenerate and install."""
        await self.apply(state)

    async def apply(self, state: AppState) -> None:
        config = generate(state.proxies, state.settings)
        active = active_proxies(state.proxies)

        if isinstance(config, ClearConfig):
            await self._sink.clear()
        else:
            await self._sink.apply(config)
        self._applied += 1

        proxying = bool(active)
        if proxying != self._indicator:
            await self._sink.set_indicator(proxying)
            self._indicator = proxying
            logger.info(
                "Proxying %s",
                "enabled" if proxying else "disabled",
                extra={"mode": state.settings.mode.value},
            )

        if any(proxy.has_credentials for proxy in active):
            self._registry.add(self._auth_listener)
        else:
            self._registry.remove(self._auth_listener)

        logger.debug(
            "Installed %s config for %d active proxies",
            config.kind,
            len(active),
            extra={"mode": state.settings.mode.value},
        )

    def get_stats(self) -> dict:
        return {
            "applied": self._applied,
            "proxying": bool(self._indicator),
            "auth_listener_registered": self._registry.has(self._auth_listener),
        }
