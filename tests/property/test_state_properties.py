"""Property tests for state migration and serialized state updates.

Validates that migration is idempotent and never loses a legacy selected
domain while a proxy is active, and that concurrent updates through the
state store are never lost.
"""

from __future__ import annotations

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from factories import domain_rules, make_proxy, proxy_lists

from multiproxy.models.state import AppState
from multiproxy.store.migration import migrate_state
from multiproxy.store.state_store import StateStore, validate_state
from multiproxy.store.storage import MemoryStorage


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

legacy_proxies = st.lists(
    st.fixed_dictionaries(
        {"host": st.sampled_from(["a", "b", "c"]), "port": st.integers(min_value=1, max_value=9999)},
        optional={
            "active": st.booleans(),
            "name": st.sampled_from(["", "Named"]),
            "domains": st.lists(domain_rules, max_size=3),
            "priority": st.integers(min_value=0, max_value=5),
        },
    ),
    max_size=5,
)

legacy_settings = st.fixed_dictionaries(
    {},
    optional={
        "mode": st.sampled_from(["all", "selected", "global", "domain-based"]),
        "selectedDomains": st.lists(domain_rules, max_size=4),
    },
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_async(coro):
    """Run an async coroutine synchronously."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(proxies=legacy_proxies, legacy=legacy_settings)
def test_migration_is_idempotent(proxies, legacy) -> None:
    once = migrate_state({"proxies": proxies, "settings": legacy})
    assert migrate_state(once) == once


@settings(max_examples=100)
@given(proxies=legacy_proxies, legacy=legacy_settings)
def test_migrated_document_validates(proxies, legacy) -> None:
    state = validate_state({"proxies": proxies, "settings": legacy})
    assert state is not None
    assert len(state.proxies) == len(proxies)
    assert all(proxy.name for proxy in state.proxies)


@settings(max_examples=100)
@given(proxies=legacy_proxies, selected=st.lists(domain_rules, min_size=1, max_size=4))
def test_selected_domains_kept_when_a_proxy_is_active(proxies, selected) -> None:
    doc = migrate_state({"proxies": proxies, "settings": {"mode": "selected", "selectedDomains": selected}})
    assert "selectedDomains" not in doc["settings"]
    assert doc["settings"]["mode"] == "domain-based"

    carriers = [p for p in doc["proxies"] if p.get("active")]
    if carriers:
        assert set(selected) <= set(carriers[0]["domains"])


@settings(max_examples=100)
@given(proxies=proxy_lists)
def test_current_documents_round_trip(proxies) -> None:
    """Migrating a document written by the current version changes nothing."""
    named = [p.model_copy(update={"name": f"P{i}"}) for i, p in enumerate(proxies)]
    state = AppState(proxies=named)
    doc = state.model_dump(mode="json")
    assert migrate_state(doc) == doc


# ---------------------------------------------------------------------------
# Serialized updates
# ---------------------------------------------------------------------------


@settings(max_examples=50)
@given(hosts=st.lists(st.from_regex(r"h[0-9]{1,4}", fullmatch=True), min_size=1, max_size=25, unique=True))
def test_concurrent_updates_are_never_lost(hosts) -> None:
    """N concurrent appends through the store yield exactly N proxies."""

    async def scenario() -> AppState:
        store = StateStore(MemoryStorage())
        await store.load()

        async def append(host: str) -> None:
            await asyncio.sleep(0)
            await store.update_state(
                lambda s: s.model_copy(update={"proxies": [*s.proxies, make_proxy(host)]})
            )

        await asyncio.gather(*(append(host) for host in hosts))
        assert store.version == len(hosts) + 1
        return store.snapshot()

    final = _run_async(scenario())
    assert sorted(p.host for p in final.proxies) == sorted(hosts)


@settings(max_examples=50)
@given(count=st.integers(min_value=1, max_value=15))
def test_listener_sees_every_commit_in_order(count) -> None:
    async def scenario() -> list[int]:
        store = StateStore(MemoryStorage())
        seen: list[int] = []

        async def listener(state: AppState) -> None:
            seen.append(len(state.proxies))

        store.subscribe(listener)

        async def append(i: int) -> None:
            await store.update_state(
                lambda s: s.model_copy(update={"proxies": [*s.proxies, make_proxy(f"h{i}")]})
            )

        await asyncio.gather(*(append(i) for i in range(count)))
        return seen

    assert _run_async(scenario()) == list(range(1, count + 1))
