"""Credential resolution for proxy authentication challenges.

When the network stack reports a proxy auth challenge, the resolver picks the
proxy that would have carried the request and answers with its login and
password, or with an empty response when that proxy has no credentials.

Loop guard: each resolver instance counts challenges. A challenge with a
request id different from the previous one resets the counter (a new request
rather than a retry). Once the counter reaches ``max_attempts`` the resolver
refuses to answer so the network stack's own failure path takes over. The
request-id reset is a heuristic; it does not track real navigation sessions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import urlsplit

from pydantic import BaseModel

from multiproxy.models.state import AppState, ProxyEntry, ProxyMode
from multiproxy.routing.resolver import first_active, match_by_priority

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class AuthChallenge(BaseModel):
    """An authentication challenge delivered by the network stack."""

    url: str
    request_id: str


class AuthResponse(BaseModel):
    """Credentials for the challenge, or an empty pass-through response."""

    username: str | None = None
    password: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.username is None


def extract_host(url: str) -> str | None:
    """Hostname of ``url`` (lowercased), or None when it cannot be parsed."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def select_auth_proxy(state: AppState, host: str | None) -> ProxyEntry | None:
    """Pick the proxy whose credentials answer a challenge for ``host``.

    Domain-based mode scans credentialed proxies by priority and falls back to
    the first active proxy when nothing matches.
    """
    if state.settings.mode == ProxyMode.GLOBAL:
        return first_active(state.proxies)

    if host is not None:
        credentialed = [proxy for proxy in state.proxies if proxy.has_credentials]
        matched = match_by_priority(host, credentialed)
        if matched is not None:
            return matched

    return first_active(state.proxies)


class AuthResolver:
    """Answers auth challenges from the latest committed state.

    Args:
        state_provider: Returns the current state snapshot.
        max_attempts: Challenges allowed per request id before refusing.
    """

    def __init__(
        self,
        state_provider: Callable[[], AppState],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._state_provider = state_provider
        self._max_attempts = max_attempts
        self._attempts: int = 0
        self._last_request_id: str | None = None
        self._refused: int = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    def reset(self) -> None:
        self._attempts = 0
        self._last_request_id = None

    def handle(self, challenge: AuthChallenge) -> AuthResponse:
        """Decide the response for one challenge."""
        if challenge.request_id != self._last_request_id:
            self._attempts = 0
            self._last_request_id = challenge.request_id

        self._attempts += 1

        if self._attempts >= self._max_attempts:
            self._refused += 1
            logger.warning(
                "Auth loop guard tripped after %d attempts for request %s",
                self._attempts,
                challenge.request_id,
                extra={"attempt": self._attempts, "request_id": challenge.request_id},
            )
            return AuthResponse()

        host = extract_host(challenge.url)
        proxy = select_auth_proxy(self._state_provider(), host)

        if proxy is None or not proxy.has_credentials:
            logger.debug("No credentials for auth challenge on host %s", host)
            return AuthResponse()

        logger.info(
            "Supplying credentials of proxy %s",
            proxy.id,
            extra={"proxy_id": proxy.id, "target_host": host, "attempt": self._attempts},
        )
        return AuthResponse(username=proxy.login, password=proxy.password)

    def get_stats(self) -> dict:
        return {
            "attempts": self._attempts,
            "max_attempts": self._max_attempts,
            "refused": self._refused,
        }
