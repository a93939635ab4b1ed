"""Domain rule matching.

A rule is either a wildcard (``*.example.com``) or a plain hostname
(``example.com``). Both forms match the base domain and every subdomain of it:

- ``*.example.com`` matches ``example.com`` and ``a.example.com``.
- ``example.com`` matches ``example.com`` and ``api.example.com``.

Plain rules are therefore suffix-inclusive too. Neither form matches a host
that merely ends with the same characters (``notexample.com``).

Matching is case-sensitive; hostnames are expected to be lowercase already.
"""

from __future__ import annotations

WILDCARD_PREFIX = "*."


def matches(pattern: str, host: str) -> bool:
    """Return True if ``host`` is claimed by the domain rule ``pattern``."""
    if not pattern or not host:
        return False

    if pattern.startswith(WILDCARD_PREFIX):
        base = pattern[len(WILDCARD_PREFIX):]
        if not base:
            return False
        suffix = pattern[1:]  # ".example.com"
        return host == base or host.endswith(suffix)

    return host == pattern or host.endswith("." + pattern)


def matches_any(patterns: list[str], host: str) -> bool:
    """Return True if any rule in ``patterns`` claims ``host``."""
    return any(matches(pattern, host) for pattern in patterns)
