"""LRU bound on how many tabs keep a live editing state."""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import TYPE_CHECKING

from ..ui.events import TabActivated, TabClosed

if TYPE_CHECKING:  # pragma: no cover
    from .workspace import TabStore

__all__ = ["EvictionCache", "MAX_CACHED_TAB_STATES"]

LOGGER = logging.getLogger(__name__)

MAX_CACHED_TAB_STATES = 5


class EvictionCache:
    """Tracks tabs in most-recently-used order and demotes the overflow.

    Eviction only changes where a tab's text lives (live state vs. plain
    string); the text itself is copied over before the state is dropped.
    The active tab is never evicted.
    """

    def __init__(self, store: TabStore, capacity: int = MAX_CACHED_TAB_STATES, *, subscribe: bool = True) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._store = store
        self._capacity = capacity
        self._order: OrderedDict[int, None] = OrderedDict()
        if subscribe:
            bus = store.event_bus
            bus.subscribe(TabActivated, self._on_tab_activated)
            bus.subscribe(TabClosed, self._on_tab_closed)

    @property
    def capacity(self) -> int:
        return self._capacity

    def tracked_ids(self) -> tuple[int, ...]:
        """Return tracked ids from least to most recently used."""

        return tuple(self._order)

    def touch(self, tab_id: int) -> list[int]:
        """Mark ``tab_id`` most recently used and evict past capacity.

        Returns the ids whose editing state was released.
        """

        self._order.pop(tab_id, None)
        self._order[tab_id] = None
        return self._evict_overflow()

    def forget(self, tab_id: int) -> None:
        self._order.pop(tab_id, None)

    def clear(self) -> None:
        self._order.clear()

    def _evict_overflow(self) -> list[int]:
        evicted: list[int] = []
        overflow = len(self._order) - self._capacity
        if overflow <= 0:
            return evicted
        active_id = self._store.active_tab_id
        for tab_id in list(self._order)[:overflow]:
            if tab_id == active_id:
                continue
            self._order.pop(tab_id)
            if self._store.release_editing_state(tab_id):
                evicted.append(tab_id)
        if evicted:
            LOGGER.debug("EvictionCache: released editing state for %s", evicted)
        return evicted

    def _on_tab_activated(self, event: TabActivated) -> None:
        self.touch(event.tab_id)

    def _on_tab_closed(self, event: TabClosed) -> None:
        self.forget(event.tab_id)
