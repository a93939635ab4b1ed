"""Routing decisions: which proxy, if any, handles a destination host.

Two orderings are used on purpose:

- global mode picks the first usable active proxy in *list order*;
- domain-based mode scans usable active proxies by ascending ``priority``
  (ties keep list order) and returns the first one with a matching rule.

Entries whose port does not parse are never considered active.
"""

from __future__ import annotations

from collections.abc import Iterable

from multiproxy.models.state import ProxyEntry, ProxyMode
from multiproxy.routing.matcher import matches_any


def active_proxies(proxies: Iterable[ProxyEntry]) -> list[ProxyEntry]:
    """Usable active entries, in list order."""
    return [proxy for proxy in proxies if proxy.is_usable]


def by_priority(proxies: Iterable[ProxyEntry]) -> list[ProxyEntry]:
    """Stable sort by ascending priority."""
    return sorted(proxies, key=lambda proxy: proxy.priority)


def first_active(proxies: Iterable[ProxyEntry]) -> ProxyEntry | None:
    for proxy in proxies:
        if proxy.is_usable:
            return proxy
    return None


def match_by_priority(host: str, proxies: Iterable[ProxyEntry]) -> ProxyEntry | None:
    """First usable active proxy, by priority, with a rule claiming ``host``."""
    for proxy in by_priority(active_proxies(proxies)):
        if matches_any(proxy.domains, host):
            return proxy
    return None


def resolve(
    host: str,
    proxies: list[ProxyEntry],
    mode: ProxyMode,
) -> ProxyEntry | None:
    """Decide the proxy for ``host``. ``None`` means connect directly."""
    if mode == ProxyMode.GLOBAL:
        return first_active(proxies)
    return match_by_priority(host, proxies)


def find_proxy(proxies: list[ProxyEntry], proxy_id: str) -> ProxyEntry | None:
    """Look up an entry by its ``host:port`` id.

    Two entries may share an id; the one checked first by priority wins
    (list order breaks ties).
    """
    for proxy in by_priority(proxies):
        if proxy.id == proxy_id:
            return proxy
    return None
