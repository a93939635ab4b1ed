"""Proxy list management as pure state transforms.

Each ``*_proxy`` / ``*_domain`` function takes a state snapshot and returns the
new state; the state store runs them inside its update transaction. Invalid
input raises a ``MultiproxyError`` subclass and nothing is committed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from pydantic import BaseModel

from multiproxy.middleware.error_handler import InvalidProxyError, ProxyNotFoundError
from multiproxy.models.state import AppState, ProxyEntry, ProxyMode
from multiproxy.routing.resolver import active_proxies, by_priority, find_proxy

_WILDCARD_BASE = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PLAIN_DOMAIN = re.compile(r"^[a-zA-Z0-9.-]+(\.[a-zA-Z]{2,})?$")


# ---------------------------------------------------------------------------
# Parsing and validation
# ---------------------------------------------------------------------------


def parse_proxy_line(line: str) -> ProxyEntry:
    """Parse one proxy line.

    Accepted forms: ``login:password@host:port``, ``host:port`` and
    ``host:port:login:password``. Anything else becomes an entry with the
    whole line as host and no port, which never routes until edited.
    """
    line = line.strip()

    if "@" in line:
        credentials, _, server = line.partition("@")
        login, _, password = credentials.partition(":")
        host, _, port = server.partition(":")
        return ProxyEntry(host=host.strip(), port=port.strip(), login=login, password=password)

    parts = line.split(":")
    if len(parts) == 2:
        return ProxyEntry(host=parts[0].strip(), port=parts[1].strip())
    if len(parts) >= 4:
        return ProxyEntry(host=parts[0].strip(), port=parts[1].strip(), login=parts[2], password=parts[3])
    return ProxyEntry(host=line)


def parse_proxy_list(text: str) -> list[ProxyEntry]:
    """Parse one proxy per non-blank line."""
    return [parse_proxy_line(line) for line in text.splitlines() if line.strip()]


def is_valid_domain_rule(rule: str) -> bool:
    if rule.startswith("*."):
        return bool(_WILDCARD_BASE.match(rule[2:]))
    return bool(_PLAIN_DOMAIN.match(rule))


def normalize_domains(domains: Iterable[str]) -> list[str]:
    """Trim, drop blanks and duplicates, keep first-seen order."""
    result: list[str] = []
    for domain in domains:
        domain = domain.strip()
        if domain and domain not in result:
            result.append(domain)
    return result


class ProxyUpdate(BaseModel):
    """Fields of a proxy edit; unset fields keep their current value."""

    name: str | None = None
    host: str | None = None
    port: str | None = None
    login: str | None = None
    password: str | None = None
    active: bool | None = None
    domains: list[str] | None = None
    priority: int | None = None


def _validated(proxy: ProxyEntry) -> ProxyEntry:
    """Return ``proxy`` with host and port trimmed, or raise ``InvalidProxyError``."""
    proxy = proxy.model_copy(update={"host": proxy.host.strip(), "port": proxy.port.strip()})
    errors: dict[str, str] = {}

    if not proxy.host:
        errors["host"] = "Host is required"

    if not proxy.port:
        errors["port"] = "Port is required"
    elif not (proxy.port.isascii() and proxy.port.isdigit()):
        errors["port"] = "Port must be a number"

    invalid = [rule for rule in proxy.domains if not is_valid_domain_rule(rule)]
    if invalid:
        errors["domains"] = f"Invalid domains: {', '.join(invalid)}"

    if errors:
        raise InvalidProxyError(fields=errors)
    return proxy


# ---------------------------------------------------------------------------
# Proxy transforms
# ---------------------------------------------------------------------------


def _check_index(state: AppState, index: int) -> None:
    if index < 0 or index >= len(state.proxies):
        raise ProxyNotFoundError(f"No proxy at index {index}", index=index)


def import_proxies(state: AppState, entries: list[ProxyEntry]) -> AppState:
    """Append imported entries, inactive, named and prioritized by position."""
    proxies = list(state.proxies)
    for entry in entries:
        position = len(proxies)
        proxies.append(
            entry.model_copy(
                update={
                    "active": False,
                    "name": entry.name or f"Proxy-{position + 1}",
                    "priority": position,
                }
            )
        )
    return state.model_copy(update={"proxies": proxies})


def toggle_proxy(state: AppState, index: int) -> AppState:
    """Flip one proxy's active flag.

    In global mode activating a proxy deactivates all others.
    """
    _check_index(state, index)
    exclusive = state.settings.mode == ProxyMode.GLOBAL

    proxies = []
    for i, proxy in enumerate(state.proxies):
        if i == index:
            proxies.append(proxy.model_copy(update={"active": not proxy.active}))
        elif exclusive:
            proxies.append(proxy.model_copy(update={"active": False}))
        else:
            proxies.append(proxy)
    return state.model_copy(update={"proxies": proxies})


def delete_proxy(state: AppState, index: int) -> AppState:
    _check_index(state, index)
    proxies = [proxy for i, proxy in enumerate(state.proxies) if i != index]
    return state.model_copy(update={"proxies": proxies})


def update_proxy(state: AppState, index: int, changes: ProxyUpdate) -> AppState:
    """Apply an edit to one proxy after validating the result."""
    _check_index(state, index)
    patch = changes.model_dump(exclude_none=True)
    if "domains" in patch:
        patch["domains"] = normalize_domains(patch["domains"])

    updated = _validated(state.proxies[index].model_copy(update=patch))
    proxies = list(state.proxies)
    proxies[index] = updated
    return state.model_copy(update={"proxies": proxies})


def set_mode(state: AppState, mode: ProxyMode) -> AppState:
    settings = state.settings.model_copy(update={"mode": mode})
    return state.model_copy(update={"settings": settings})


# ---------------------------------------------------------------------------
# Domain transforms
# ---------------------------------------------------------------------------


def _without_domain(proxies: list[ProxyEntry], domain: str) -> list[ProxyEntry]:
    return [
        proxy.model_copy(update={"domains": [d for d in proxy.domains if d != domain]})
        if domain in proxy.domains
        else proxy
        for proxy in proxies
    ]


def add_domain(state: AppState, domain: str) -> AppState:
    """Route ``domain`` through the first active proxy (list order).

    Switches to domain-based mode.
    """
    proxies = list(state.proxies)
    index = next((i for i, proxy in enumerate(proxies) if proxy.active), None)
    if index is None:
        raise ProxyNotFoundError("No active proxy to add the domain to", domain=domain)

    target = proxies[index]
    if domain not in target.domains:
        proxies[index] = target.model_copy(update={"domains": [*target.domains, domain]})

    return set_mode(state.model_copy(update={"proxies": proxies}), ProxyMode.DOMAIN_BASED)


def remove_domain(state: AppState, domain: str) -> AppState:
    """Remove ``domain`` from every proxy."""
    return state.model_copy(update={"proxies": _without_domain(state.proxies, domain)})


def assign_domain(state: AppState, domain: str, proxy_id: str | None) -> AppState:
    """Make ``proxy_id`` the only proxy listing ``domain``.

    ``None`` just removes the domain everywhere (direct). Assigning to a proxy
    switches to domain-based mode.
    """
    proxies = _without_domain(state.proxies, domain)
    if proxy_id is None:
        return state.model_copy(update={"proxies": proxies})

    target = find_proxy(proxies, proxy_id)
    if target is None:
        raise ProxyNotFoundError(f"Proxy '{proxy_id}' not found", proxy_id=proxy_id)

    index = next(i for i, proxy in enumerate(proxies) if proxy is target)
    proxies[index] = target.model_copy(update={"domains": [*target.domains, domain]})
    return set_mode(state.model_copy(update={"proxies": proxies}), ProxyMode.DOMAIN_BASED)


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class DomainConflict(BaseModel):
    """A domain rule listed by more than one active proxy."""

    domain: str
    proxy_ids: list[str]  # in the order they are checked
    winner: str


def find_domain_conflicts(state: AppState) -> list[DomainConflict]:
    """Rules claimed by several active proxies, with the priority winner."""
    claims: dict[str, list[str]] = {}
    for proxy in by_priority(active_proxies(state.proxies)):
        for domain in proxy.domains:
            owners = claims.setdefault(domain, [])
            if proxy.id not in owners:
                owners.append(proxy.id)

    return [
        DomainConflict(domain=domain, proxy_ids=owners, winner=owners[0])
        for domain, owners in claims.items()
        if len(owners) > 1
    ]
