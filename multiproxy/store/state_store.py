"""Authoritative application state with serialized read-modify-write updates.

Every mutation runs as one transaction under a single ``asyncio.Lock``:
read the committed snapshot, apply a pure transform, persist, publish. Two
concurrent updates therefore both land; neither overwrites the other.

Subscribers are awaited after each commit, in commit order, while the lock is
still held, so a subscriber always sees the latest committed state. They must
not call ``update_state`` themselves.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from multiproxy.models.state import AppState
from multiproxy.store.migration import migrate_state
from multiproxy.store.storage import KeyValueStorage

logger = logging.getLogger(__name__)

STATE_KEY = "appState"
BACKUP_KEY = "appStateBackup"

StateListener = Callable[[AppState], Awaitable[None]]
StateUpdater = Callable[[AppState], AppState]


def validate_state(raw: Any) -> AppState | None:
    """Migrate and validate a raw document. Returns None if it is malformed."""
    if not isinstance(raw, dict):
        return None
    if not isinstance(raw.get("settings"), dict) or not isinstance(raw.get("proxies"), list):
        return None
    try:
        return AppState.model_validate(migrate_state(raw))
    except PydanticValidationError as exc:
        logger.warning("State document failed validation: %d errors", exc.error_count())
        return None


class StateStore:
    """Owns the ``AppState`` and its persistence.

    Args:
        storage: Backend holding the state and backup documents.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._state = AppState()
        self._lock = asyncio.Lock()
        self._listeners: list[StateListener] = []
        self._version = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> AppState:
        """Read, migrate and install the persisted document.

        A missing document installs (and persists) the empty default. A
        malformed one is logged and the last known good snapshot is kept.
        """
        async with self._lock:
            raw = await self._storage.get(STATE_KEY)

            if raw is None:
                logger.info("No persisted state, starting with defaults")
                await self._commit(AppState())
                return self.snapshot()

            state = validate_state(raw)
            if state is None:
                logger.error("Persisted state is malformed, keeping last known good state")
                await self._publish()
                return self.snapshot()

            await self._commit(state)
            logger.info("Loaded state with %d proxies", len(state.proxies))
            return self.snapshot()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        """Number of commits since construction."""
        return self._version

    def snapshot(self) -> AppState:
        """Deep copy of the last committed state."""
        return self._state.model_copy(deep=True)

    async def get_state(self) -> AppState:
        return self.snapshot()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set_state(self, state: AppState) -> AppState:
        return await self.update_state(lambda _current: state)

    async def update_state(self, updater: StateUpdater) -> AppState:
        """Apply ``updater`` to the current snapshot and commit the result.

        Exceptions raised by ``updater`` propagate and nothing is written.
        """
        async with self._lock:
            new_state = updater(self.snapshot())
            if not isinstance(new_state, AppState):
                raise TypeError("State updater must return an AppState")
            # Round-trip through validation so field constraints hold
            new_state = AppState.model_validate(new_state.model_dump())
            await self._commit(new_state)
            return self.snapshot()

    async def _commit(self, state: AppState) -> None:
        await self._storage.set(STATE_KEY, state.model_dump(mode="json"))
        self._state = state
        self._version += 1
        await self._publish()

    # ------------------------------------------------------------------
    # Change notification
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener``; returns a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _publish(self) -> None:
        for listener in list(self._listeners):
            try:
                await listener(self.snapshot())
            except Exception:
                logger.exception("State listener %r failed", listener)

    # ------------------------------------------------------------------
    # Backup / restore
    # ------------------------------------------------------------------

    async def backup_state(self) -> None:
        """Save the current committed state as the backup document."""
        async with self._lock:
            await self._storage.set(BACKUP_KEY, self._state.model_dump(mode="json"))
        logger.info("State backed up")

    async def restore_from_backup(self) -> bool:
        """Re-validate and install the backup. Returns False if it is unusable."""
        async with self._lock:
            raw = await self._storage.get(BACKUP_KEY)
            if raw is None:
                logger.warning("No state backup to restore")
                return False

            state = validate_state(raw)
            if state is None:
                logger.error("State backup is malformed, restore refused")
                return False

            await self._commit(state)
        logger.info("State restored from backup")
        return True
