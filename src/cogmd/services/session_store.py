"""Session persistence: snapshot format, primary/fallback stores and autosave."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from ..editor.document_model import TabRecord
from ..ui.events import DocumentModified, DocumentSaved, TabActivated, TabClosed, TabCreated
from ..utils.debounce import DebounceTimer
from .stores import AsyncKeyValueStore, StoreError, SyncKeyValueStore

if TYPE_CHECKING:  # pragma: no cover
    from ..editor.workspace import TabStore

__all__ = [
    "LEGACY_SESSION_KEY",
    "SESSION_KEY",
    "SESSION_SAVE_DELAY_SECONDS",
    "SessionAutosave",
    "SessionPersistence",
    "SessionSnapshot",
]

LOGGER = logging.getLogger(__name__)

SESSION_KEY = "session"
LEGACY_SESSION_KEY = "cogmd-session"
SESSION_SAVE_DELAY_SECONDS = 2.0


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Every open tab plus the active pointer and id allocator."""

    tabs: tuple[TabRecord, ...]
    active_tab_id: int | None
    next_tab_id: int

    @classmethod
    def capture(cls, store: TabStore) -> "SessionSnapshot":
        return cls(
            tabs=tuple(store.records()),
            active_tab_id=store.active_tab_id,
            next_tab_id=store.next_tab_id,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "tabs": [record.to_payload() for record in self.tabs],
            "activeTabId": self.active_tab_id,
            "nextTabId": self.next_tab_id,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "SessionSnapshot | None":
        """Parse persisted data; ``None`` when no usable tab survives."""

        if not isinstance(payload, Mapping):
            return None
        raw_tabs = payload.get("tabs")
        if not isinstance(raw_tabs, Sequence) or isinstance(raw_tabs, (str, bytes)):
            return None
        records: list[TabRecord] = []
        for entry in raw_tabs:
            if not isinstance(entry, Mapping):
                continue
            try:
                records.append(TabRecord.from_payload(entry))
            except ValueError as exc:
                LOGGER.warning("Skipping unreadable tab in session: %s", exc)
        if not records:
            return None

        ids = [record.id for record in records]
        next_id = payload.get("nextTabId")
        if isinstance(next_id, bool) or not isinstance(next_id, int) or next_id <= 0:
            next_id = max(ids) + 1
        active_id = payload.get("activeTabId")
        if active_id not in ids:
            active_id = ids[0]
        return cls(tabs=tuple(records), active_tab_id=active_id, next_tab_id=next_id)

    def apply_to(self, store: TabStore) -> None:
        store.restore(self.tabs, active_tab_id=self.active_tab_id, next_tab_id=self.next_tab_id)


class SessionPersistence:
    """Writes snapshots to the primary store, falling back to a synchronous one."""

    def __init__(
        self,
        primary: AsyncKeyValueStore,
        fallback: SyncKeyValueStore,
        *,
        key: str = SESSION_KEY,
        legacy_key: str = LEGACY_SESSION_KEY,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._key = key
        self._legacy_key = legacy_key

    async def save(self, snapshot: SessionSnapshot) -> bool:
        """Persist ``snapshot``; returns ``True`` when the primary store accepted it."""

        payload = snapshot.to_payload()
        try:
            await self._primary.put(self._key, payload)
        except StoreError as exc:
            LOGGER.warning("Primary session store failed (%s); writing fallback", exc)
        else:
            LOGGER.debug("Session saved: %d tab(s)", len(snapshot.tabs))
            return True

        try:
            self._fallback.set(self._legacy_key, json.dumps(payload))
        except StoreError as exc:
            LOGGER.warning("Fallback session store failed: %s", exc)
        return False

    async def restore(self) -> SessionSnapshot | None:
        """Load the session, migrating legacy fallback data on first use."""

        data: Any = None
        try:
            data = await self._primary.get(self._key)
        except StoreError as exc:
            LOGGER.warning("Primary session store unreadable: %s", exc)

        snapshot = SessionSnapshot.from_payload(data) if data is not None else None
        if snapshot is not None:
            return snapshot
        return await self._migrate_legacy()

    async def clear(self) -> None:
        try:
            await self._primary.delete(self._key)
        except StoreError as exc:
            LOGGER.warning("Unable to clear primary session store: %s", exc)
        try:
            self._fallback.remove(self._legacy_key)
        except StoreError as exc:
            LOGGER.warning("Unable to clear fallback session store: %s", exc)

    async def _migrate_legacy(self) -> SessionSnapshot | None:
        raw = self._fallback.get(self._legacy_key)
        if not raw:
            return None
        try:
            snapshot = SessionSnapshot.from_payload(json.loads(raw))
        except json.JSONDecodeError as exc:
            LOGGER.warning("Discarding corrupt legacy session: %s", exc)
            snapshot = None
        if snapshot is None:
            self._remove_legacy()
            return None

        try:
            await self._primary.put(self._key, snapshot.to_payload())
        except StoreError as exc:
            # Legacy copy stays until a migration succeeds.
            LOGGER.warning("Legacy session migration deferred: %s", exc)
        else:
            self._remove_legacy()
            LOGGER.info("Migrated legacy session (%d tab(s))", len(snapshot.tabs))
        return snapshot

    def _remove_legacy(self) -> None:
        try:
            self._fallback.remove(self._legacy_key)
        except StoreError as exc:
            LOGGER.warning("Unable to remove legacy session key: %s", exc)


class SessionAutosave:
    """Debounced session writer reset by every tab-store mutation."""

    def __init__(
        self,
        store: TabStore,
        persistence: SessionPersistence,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        delay: float = SESSION_SAVE_DELAY_SECONDS,
        subscribe: bool = True,
    ) -> None:
        self._store = store
        self._persistence = persistence
        self._timer = DebounceTimer(delay, self.save_now, loop=loop, name="session")
        if subscribe:
            bus = store.event_bus
            for event_type in (TabCreated, TabActivated, TabClosed, DocumentModified, DocumentSaved):
                bus.subscribe(event_type, self._on_mutation)

    @property
    def pending(self) -> bool:
        return self._timer.pending

    @property
    def persistence(self) -> SessionPersistence:
        return self._persistence

    def schedule(self) -> None:
        self._timer.schedule()

    def cancel(self) -> None:
        self._timer.cancel()

    async def save_now(self) -> bool:
        # Captured before the first await so the write reflects this instant.
        snapshot = SessionSnapshot.capture(self._store)
        return await self._persistence.save(snapshot)

    async def flush(self) -> bool:
        """Run a pending save immediately; ``False`` when nothing was pending."""

        if not self._timer.pending:
            return False
        self._timer.cancel()
        await self.save_now()
        return True

    def _on_mutation(self, event: Any) -> None:
        self.schedule()
