"""Domain tracking: per-tab host observation, classification and enrichment."""

from multiproxy.tracking.colors import color_for_proxy
from multiproxy.tracking.domain_tracker import DomainTracker, classify_host, is_local_host
from multiproxy.tracking.enrichment import available_proxies, enrich_domains

__all__ = [
    "DomainTracker",
    "available_proxies",
    "classify_host",
    "color_for_proxy",
    "enrich_domains",
    "is_local_host",
]
