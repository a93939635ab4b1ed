"""Upgrade persisted state documents to the current shape.

Legacy documents carry ``settings.mode`` of ``all`` / ``selected`` and a flat
``settings.selectedDomains`` list. They are rewritten to ``global`` /
``domain-based`` with the selected domains moved onto the active proxy.
Proxies missing ``name``, ``domains`` or ``priority`` are backfilled.

``migrate_state`` is pure and idempotent: migrating an already-migrated
document returns an equal document.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

logger = logging.getLogger(__name__)

_LEGACY_MODES = {
    "all": "global",
    "selected": "domain-based",
}

_STRING_FIELDS = ("host", "port", "login", "password")


def _migrate_proxy(raw: dict[str, Any], index: int) -> dict[str, Any]:
    proxy = dict(raw)

    for key in _STRING_FIELDS:
        value = proxy.get(key)
        if value is None:
            proxy[key] = ""
        elif not isinstance(value, str):
            proxy[key] = str(value)

    if proxy.get("active") is None:
        proxy["active"] = False
    if not proxy.get("name"):
        proxy["name"] = f"Proxy-{index + 1}"
    if proxy.get("domains") is None:
        proxy["domains"] = []
    if proxy.get("priority") is None:
        proxy["priority"] = index

    return proxy


def migrate_state(raw: dict[str, Any]) -> dict[str, Any]:
    """Return the migrated copy of a raw state document.

    Anything that is not shaped like a state document is returned unchanged
    for validation to reject.
    """
    if not isinstance(raw, dict):
        return raw

    doc = copy.deepcopy(raw)
    proxies = doc.get("proxies")
    settings = doc.get("settings")
    if not isinstance(proxies, list) or not isinstance(settings, dict):
        return doc

    doc["proxies"] = [
        _migrate_proxy(proxy, index) if isinstance(proxy, dict) else proxy
        for index, proxy in enumerate(proxies)
    ]

    mode = settings.get("mode")
    if mode in _LEGACY_MODES:
        settings["mode"] = _LEGACY_MODES[mode]
        logger.info("Migrated legacy mode %r to %r", mode, settings["mode"])
    elif mode is None:
        settings["mode"] = "global"

    selected = settings.pop("selectedDomains", None)
    if selected:
        target = next(
            (p for p in doc["proxies"] if isinstance(p, dict) and p.get("active")),
            None,
        )
        if target is None:
            logger.warning(
                "Dropping %d legacy selected domains: no active proxy to carry them",
                len(selected),
            )
        else:
            domains = list(target["domains"])
            for domain in selected:
                if domain not in domains:
                    domains.append(domain)
            target["domains"] = domains

    return doc
