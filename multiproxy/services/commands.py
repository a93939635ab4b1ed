"""Command channel handling and state-changing operations.

``CommandService`` answers the overlay messages (see
``multiproxy.models.messages``) and exposes the proxy management operations as
state store transactions. It also owns the per-tab overlay visibility flags.
"""

from __future__ import annotations

import logging
from typing import Any

from multiproxy.models.messages import (
    AssignDomainToProxy,
    GetAvailableProxies,
    GetCurrentDomains,
    HideOverlay,
    Message,
    ShowOverlay,
)
from multiproxy.models.state import AppState, ProxyMode
from multiproxy.services import proxy_admin
from multiproxy.services.proxy_admin import DomainConflict, ProxyUpdate
from multiproxy.store.state_store import StateStore
from multiproxy.tracking.domain_tracker import DomainTracker
from multiproxy.tracking.enrichment import available_proxies, enrich_domains

logger = logging.getLogger(__name__)


class CommandService:
    """Glue between the state store, the domain tracker and the channel."""

    def __init__(self, store: StateStore, tracker: DomainTracker) -> None:
        self._store = store
        self._tracker = tracker
        self._overlay_tabs: set[int] = set()

    # ------------------------------------------------------------------
    # Message dispatch
    # ------------------------------------------------------------------

    async def handle(self, message: Message) -> Any:
        """Run one validated message and return its JSON-ready result."""
        if isinstance(message, GetCurrentDomains):
            state = self._store.snapshot()
            domains = enrich_domains(self._tracker.get_domains_for_tab(message.tab_id), state)
            return [info.model_dump(by_alias=True, mode="json") for info in domains]

        if isinstance(message, AssignDomainToProxy):
            data = message.data
            await self.assign_domain(data.domain, None if data.is_direct else data.proxy_id)
            return {"domain": data.domain, "proxyId": data.proxy_id}

        if isinstance(message, GetAvailableProxies):
            return [proxy.model_dump() for proxy in available_proxies(self._store.snapshot())]

        if isinstance(message, ShowOverlay):
            self._overlay_tabs.add(message.tab_id)
            return {"tabId": message.tab_id, "visible": True}

        if isinstance(message, HideOverlay):
            self._overlay_tabs.discard(message.tab_id)
            return {"tabId": message.tab_id, "visible": False}

        raise TypeError(f"Unhandled message type: {type(message).__name__}")

    def is_overlay_visible(self, tab_id: int) -> bool:
        return tab_id in self._overlay_tabs

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    def close_tab(self, tab_id: int) -> None:
        self._tracker.clear_tab_domains(tab_id)
        self._overlay_tabs.discard(tab_id)

    # ------------------------------------------------------------------
    # Proxy management
    # ------------------------------------------------------------------

    async def import_proxies(self, text: str) -> AppState:
        entries = proxy_admin.parse_proxy_list(text)
        state = await self._store.update_state(
            lambda current: proxy_admin.import_proxies(current, entries)
        )
        logger.info("Imported %d proxies", len(entries))
        return state

    async def toggle_proxy(self, index: int) -> AppState:
        return await self._store.update_state(
            lambda current: proxy_admin.toggle_proxy(current, index)
        )

    async def delete_proxy(self, index: int) -> AppState:
        return await self._store.update_state(
            lambda current: proxy_admin.delete_proxy(current, index)
        )

    async def update_proxy(self, index: int, changes: ProxyUpdate) -> AppState:
        return await self._store.update_state(
            lambda current: proxy_admin.update_proxy(current, index, changes)
        )

    async def set_mode(self, mode: ProxyMode) -> AppState:
        state = await self._store.update_state(
            lambda current: proxy_admin.set_mode(current, mode)
        )
        logger.info("Routing mode set to %s", mode.value, extra={"mode": mode.value})
        return state

    async def add_domain(self, domain: str) -> AppState:
        return await self._store.update_state(
            lambda current: proxy_admin.add_domain(current, domain)
        )

    async def remove_domain(self, domain: str) -> AppState:
        return await self._store.update_state(
            lambda current: proxy_admin.remove_domain(current, domain)
        )

    async def assign_domain(self, domain: str, proxy_id: str | None) -> AppState:
        state = await self._store.update_state(
            lambda current: proxy_admin.assign_domain(current, domain, proxy_id)
        )
        logger.info(
            "Assigned %s to %s",
            domain,
            proxy_id or "direct",
            extra={"target_host": domain, "proxy_id": proxy_id},
        )
        return state

    def find_conflicts(self) -> list[DomainConflict]:
        return proxy_admin.find_domain_conflicts(self._store.snapshot())
