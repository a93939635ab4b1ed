"""Routing decisions: rule matching, proxy resolution, PAC generation and auth."""

from multiproxy.routing.auth import AuthChallenge, AuthResolver, AuthResponse
from multiproxy.routing.matcher import matches, matches_any
from multiproxy.routing.pac import (
    ClearConfig,
    FixedServersConfig,
    PacScriptConfig,
    generate,
)
from multiproxy.routing.resolver import active_proxies, by_priority, find_proxy, resolve

__all__ = [
    "AuthChallenge",
    "AuthResolver",
    "AuthResponse",
    "ClearConfig",
    "FixedServersConfig",
    "PacScriptConfig",
    "active_proxies",
    "by_priority",
    "find_proxy",
    "generate",
    "matches",
    "matches_any",
    "resolve",
]
