"""Annotate tracked hosts with the current routing decision."""

from __future__ import annotations

from multiproxy.models.domains import AvailableProxy, DomainInfo
from multiproxy.models.state import AppState
from multiproxy.routing.resolver import active_proxies, by_priority, resolve
from multiproxy.tracking.colors import color_for_proxy


def enrich_domains(domains: list[DomainInfo], state: AppState) -> list[DomainInfo]:
    """Copies of ``domains`` with ``proxy_id`` and ``color`` filled in.

    The decision is recomputed on every call so edits show up immediately.
    """
    enriched: list[DomainInfo] = []
    for info in domains:
        proxy = resolve(info.domain, state.proxies, state.settings.mode)
        if proxy is None:
            enriched.append(info.model_copy(update={"proxy_id": None, "color": None}))
        else:
            enriched.append(
                info.model_copy(update={"proxy_id": proxy.id, "color": color_for_proxy(proxy.id)})
            )
    return enriched


def available_proxies(state: AppState) -> list[AvailableProxy]:
    """Active proxies for the overlay by priority, one per id (the first wins)."""
    seen: set[str] = set()
    result: list[AvailableProxy] = []
    for proxy in by_priority(active_proxies(state.proxies)):
        if proxy.id in seen:
            continue
        seen.add(proxy.id)
        result.append(
            AvailableProxy(id=proxy.id, name=proxy.display_name, color=color_for_proxy(proxy.id))
        )
    return result
