"""Per-tab tracking and classification of destination hosts.

Every outbound request is reported with the tab it came from. Local and
private-range hosts are ignored. Each remaining host is classified once, on
first sight, and keeps a shared request counter and last-seen timestamp for
the life of the process. Tabs only hold the set of hosts they touched, so
closing a tab forgets the set but not the counters.

The shared host map is bounded; the least recently seen host is evicted
first.
"""

from __future__ import annotations

import logging
import re
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlsplit

from multiproxy.config.domain_categories import CategoryLists
from multiproxy.models.domains import CATEGORY_ORDER, DomainCategory, DomainInfo

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRACKED_HOSTS = 10_000

_IPV4_LITERAL = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
_LOCAL_PREFIXES = ("127.", "192.168.", "10.", "172.16.")

_ADS_HINTS = ("ads", "ad.", "doubleclick", "googlesyndication")
_CDN_HINTS = ("cdn", "static", "assets", "media")
_ANALYTICS_HINTS = ("analytics", "tracking", "metrics", "stats")


@dataclass
class TrackedHost:
    """Shared counters for one host."""

    domain: str
    category: DomainCategory
    request_count: int = 0
    last_seen: int = 0  # epoch milliseconds

    def to_info(self) -> DomainInfo:
        return DomainInfo(
            domain=self.domain,
            category=self.category,
            request_count=self.request_count,
            last_seen=self.last_seen,
        )


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def is_local_host(host: str) -> bool:
    """Loopback, private-range, bare IPv4 and ``*local*`` hosts."""
    return (
        host == "localhost"
        or host.startswith(_LOCAL_PREFIXES)
        or "local" in host
        or _IPV4_LITERAL.match(host) is not None
    )


def _listed(host: str, entries: list[str]) -> bool:
    return any(entry in host or host in entry for entry in entries)


def classify_host(host: str, lists: CategoryLists | None = None) -> DomainCategory:
    """Categorize ``host`` by provider lists first, then by name hints."""
    lists = lists or CategoryLists()
    name = host.lower()

    if _listed(name, lists.analytics):
        return DomainCategory.ANALYTICS
    if _listed(name, lists.cdn):
        return DomainCategory.CDN
    if _listed(name, lists.ads):
        return DomainCategory.ADS

    if any(hint in name for hint in _ADS_HINTS):
        return DomainCategory.ADS
    if any(hint in name for hint in _CDN_HINTS):
        return DomainCategory.CDN
    if any(hint in name for hint in _ANALYTICS_HINTS):
        return DomainCategory.ANALYTICS

    return DomainCategory.MAIN


class DomainTracker:
    """Records which hosts each tab talks to.

    Args:
        category_lists: Provider lists for classification.
        max_tracked_hosts: Upper bound on the shared host map.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        category_lists: CategoryLists | None = None,
        max_tracked_hosts: int = DEFAULT_MAX_TRACKED_HOSTS,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._lists = category_lists or CategoryLists()
        self._max_tracked_hosts = max_tracked_hosts
        self._clock = clock
        self._hosts: OrderedDict[str, TrackedHost] = OrderedDict()
        self._tab_hosts: dict[int, set[str]] = {}
        self._evicted: int = 0

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def observe(self, host: str, tab_id: int) -> TrackedHost | None:
        """Count one request to ``host`` from ``tab_id``.

        Returns the updated record, or None if the host is not tracked.
        """
        if not host or is_local_host(host):
            return None

        self._tab_hosts.setdefault(tab_id, set()).add(host)

        record = self._hosts.get(host)
        if record is None:
            record = TrackedHost(domain=host, category=classify_host(host, self._lists))
            self._hosts[host] = record
            logger.debug(
                "Tracking new host %s as %s",
                host,
                record.category.value,
                extra={"target_host": host, "tab_id": tab_id},
            )
        else:
            self._hosts.move_to_end(host)

        record.request_count += 1
        record.last_seen = self._clock()
        self._evict()
        return record

    def observe_url(self, url: str, tab_id: int) -> TrackedHost | None:
        """Like ``observe`` but takes a request URL. Non-tab requests are ignored."""
        if tab_id <= 0:
            return None
        try:
            host = urlsplit(url).hostname
        except ValueError:
            logger.debug("Ignoring unparsable request URL %r", url)
            return None
        if not host:
            return None
        return self.observe(host, tab_id)

    def _evict(self) -> None:
        while len(self._hosts) > self._max_tracked_hosts:
            host, _ = self._hosts.popitem(last=False)
            for hosts in self._tab_hosts.values():
                hosts.discard(host)
            self._evicted += 1
            logger.debug("Evicted tracked host %s", host)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_domains_for_tab(self, tab_id: int) -> list[DomainInfo]:
        """Hosts seen in a tab, by category then by descending request count."""
        hosts = self._tab_hosts.get(tab_id)
        if not hosts:
            return []

        records = [self._hosts[host] for host in hosts if host in self._hosts]
        records.sort(key=lambda r: (CATEGORY_ORDER[r.category], -r.request_count, r.domain))
        return [record.to_info() for record in records]

    def get_domain_info(self, host: str) -> DomainInfo | None:
        record = self._hosts.get(host)
        return record.to_info() if record is not None else None

    def get_all_domains(self) -> list[DomainInfo]:
        return [record.to_info() for record in self._hosts.values()]

    def clear_tab_domains(self, tab_id: int) -> None:
        """Forget a closed tab's host set; shared counters are kept."""
        self._tab_hosts.pop(tab_id, None)

    def get_stats(self) -> dict:
        return {
            "tracked_hosts": len(self._hosts),
            "tabs": len(self._tab_hosts),
            "tab_host_entries": sum(len(hosts) for hosts in self._tab_hosts.values()),
            "evicted": self._evicted,
        }
