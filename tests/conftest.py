"""Shared test fixtures for the multiproxy test suite."""

from __future__ import annotations

import pytest

from multiproxy.config.settings import MultiproxySettings
from multiproxy.store.state_store import StateStore
from multiproxy.store.storage import MemoryStorage
from multiproxy.tracking.domain_tracker import DomainTracker


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def app_settings(tmp_path) -> MultiproxySettings:
    """Test settings with safe defaults."""
    return MultiproxySettings(
        state_path=str(tmp_path / "state.json"),
        log_json=False,
        max_tracked_hosts=100,
    )


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> StateStore:
    return StateStore(storage)


@pytest.fixture
def tracker() -> DomainTracker:
    """Tracker with a deterministic, strictly increasing clock."""
    ticks = iter(range(1_000, 10_000_000, 10))
    return DomainTracker(clock=lambda: next(ticks))
