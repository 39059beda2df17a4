"""Unit tests for :mod:`cogmd.editor.eviction`."""

from __future__ import annotations

import pytest

from cogmd.editor.editing_state import HeadlessEditingSurface
from cogmd.editor.eviction import MAX_CACHED_TAB_STATES, EvictionCache
from cogmd.editor.workspace import TabStore


def _open_tabs(store: TabStore, count: int) -> list[int]:
    ids = []
    for index in range(1, count + 1):
        tab = store.create_tab(content=f"doc {index}")
        store.activate_tab(tab.id)
        ids.append(tab.id)
    return ids


class TestEvictionCache:
    """LRU demotion of live editing states."""

    def test_default_capacity(self, store: TabStore) -> None:
        assert EvictionCache(store).capacity == MAX_CACHED_TAB_STATES == 5

    def test_rejects_zero_capacity(self, store: TabStore) -> None:
        with pytest.raises(ValueError):
            EvictionCache(store, 0)

    def test_seven_tabs_keep_five_live_states(self, store: TabStore) -> None:
        cache = EvictionCache(store, 5)

        ids = _open_tabs(store, 7)

        live = [tab.id for tab in store.iter_tabs() if tab.has_live_state]
        assert live == ids[2:]
        assert cache.tracked_ids() == tuple(ids[2:])

    def test_reactivating_evicted_tab_evicts_next_oldest(self, store: TabStore, surface: HeadlessEditingSurface) -> None:
        cache = EvictionCache(store, 5)
        _open_tabs(store, 7)

        store.activate_tab(1)

        assert surface.get_text() == "doc 1"
        evicted = sorted(tab.id for tab in store.iter_tabs() if not tab.has_live_state)
        assert evicted == [2, 3]
        assert store.get_tab(2).content == "doc 2"
        assert store.get_tab(3).content == "doc 3"
        assert store.live_state_count() == 5
        assert cache.tracked_ids() == (4, 5, 6, 7, 1)

    def test_edits_survive_eviction(self, store: TabStore, surface: HeadlessEditingSurface) -> None:
        cache = EvictionCache(store, 2)
        first = store.activate_tab(store.create_tab(content="draft").id)
        surface.type_text(" more")
        store.activate_tab(store.create_tab().id)
        store.activate_tab(store.create_tab().id)

        assert first.has_live_state is False
        assert first.content == "draft more"
        assert cache.tracked_ids() == (2, 3)

        store.activate_tab(first.id)
        assert surface.get_text() == "draft more"

    def test_active_tab_is_never_evicted(self, store: TabStore) -> None:
        cache = EvictionCache(store, 1, subscribe=False)
        first = store.activate_tab(store.create_tab().id)
        second = store.create_tab()
        cache.touch(first.id)

        evicted = cache.touch(second.id)

        assert evicted == []
        assert first.has_live_state

    @pytest.mark.asyncio
    async def test_closed_tabs_are_forgotten(self, store: TabStore) -> None:
        cache = EvictionCache(store, 3)
        ids = _open_tabs(store, 3)

        await store.close_tab(ids[0])

        assert ids[0] not in cache.tracked_ids()

    def test_clear_drops_tracking(self, store: TabStore) -> None:
        cache = EvictionCache(store, 3)
        _open_tabs(store, 2)

        cache.clear()

        assert cache.tracked_ids() == ()
