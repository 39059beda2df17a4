"""Tab store managing open documents and the single active-tab pointer."""

from __future__ import annotations

import contextlib
import inspect
import logging
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, Iterator, List, Union

from ..ui.events import EventBus, SessionRestored, TabActivated, TabClosed, TabCreated, TabEvicted
from .document_model import Tab, TabRecord
from .editing_state import EditingSurface

__all__ = ["ConfirmClose", "TabStore", "normalize_path"]

LOGGER = logging.getLogger(__name__)

ConfirmClose = Callable[[str], Union[bool, Awaitable[bool]]]


def normalize_path(path: Path | str | None) -> str | None:
    if path is None:
        return None
    return str(Path(path).expanduser().resolve())


class TabStore:
    """Registry of open tabs bound to one visible editing surface.

    The active tab always holds a live editing state that is loaded into the
    surface. Other tabs either retain their state (cheap to switch back to)
    or hold plain text only, after eviction or restore.
    """

    def __init__(
        self,
        surface: EditingSurface,
        *,
        event_bus: EventBus | None = None,
        confirm_close: ConfirmClose | None = None,
    ) -> None:
        self._surface = surface
        self._bus = event_bus or EventBus()
        self._confirm_close = confirm_close
        self._tabs: Dict[int, Tab] = {}
        self._order: List[int] = []
        self._active_tab_id: int | None = None
        self._next_tab_id = 1
        self._switching = False

    # ------------------------------------------------------------------
    # Tab lifecycle
    # ------------------------------------------------------------------
    def create_tab(self, file_path: Path | str | None = None, content: str | None = None) -> Tab:
        """Allocate a tab; it is not activated."""

        text = content or ""
        tab = Tab(
            id=self._next_tab_id,
            file_path=normalize_path(file_path),
            content=text,
            last_saved_content=text,
        )
        self._next_tab_id += 1
        self._tabs[tab.id] = tab
        self._order.append(tab.id)
        LOGGER.debug("TabStore.create_tab: id=%s path=%s", tab.id, tab.file_path)
        self._bus.publish(TabCreated(tab_id=tab.id, file_path=tab.file_path))
        return tab

    def activate_tab(self, tab_id: int) -> Tab:
        """Make ``tab_id`` the visible tab, hydrating its editing state."""

        target = self.get_tab(tab_id)
        if self._active_tab_id == tab_id:
            return target

        previous = self._active_tab_id
        self.snapshot_active()
        with self.switching():
            if target.editing_state is None:
                target.editing_state = self._surface.create_state(
                    target.content, target.selection, target.scroll_top
                )
            self._surface.set_state(target.editing_state)
            self._surface.set_scroll_offset(target.scroll_top)
        self._active_tab_id = tab_id
        LOGGER.debug("TabStore.activate_tab: %s -> %s", previous, tab_id)
        self._bus.publish(TabActivated(tab_id=tab_id, previous_tab_id=previous))
        return target

    async def close_tab(self, tab_id: int) -> bool:
        """Close ``tab_id`` after the dirty-confirmation gate.

        Returns ``False`` when the tab is unknown or the close was vetoed.
        The store is never empty once a close completes.
        """

        tab = self._tabs.get(tab_id)
        if tab is None:
            return False
        if tab_id == self._active_tab_id:
            self.snapshot_active()

        if tab.is_dirty and self._confirm_close is not None:
            decision = self._confirm_close(tab.display_name)
            if inspect.isawaitable(decision):
                decision = await decision
            if not decision:
                LOGGER.debug("TabStore.close_tab: close of %s vetoed", tab_id)
                return False
            if tab_id not in self._tabs:
                # Closed by another path while the confirmation was pending.
                return False

        was_active = tab_id == self._active_tab_id
        tab.release_editing_state()
        index = self._order.index(tab_id)
        self._order.pop(index)
        del self._tabs[tab_id]
        if was_active:
            self._active_tab_id = None
        LOGGER.debug("TabStore.close_tab: closed %s (active=%s)", tab_id, was_active)
        self._bus.publish(TabClosed(tab_id=tab_id, was_active=was_active))

        if not self._order:
            self.activate_tab(self.create_tab().id)
        elif was_active:
            self.activate_tab(self._order[min(index, len(self._order) - 1)])
        return True

    def cycle_tab(self, direction: int) -> Tab | None:
        """Activate the next (``1``) or previous (``-1``) tab cyclically."""

        count = len(self._order)
        if count <= 1:
            return None
        try:
            index = self._order.index(self._active_tab_id)  # type: ignore[arg-type]
        except ValueError:
            index = 0
        step = 1 if direction >= 0 else -1
        return self.activate_tab(self._order[(index + step) % count])

    def ensure_tab(self) -> Tab:
        """Guarantee an active tab, creating an empty one when needed."""

        active = self.active_tab
        if active is not None:
            return active
        if self._order:
            return self.activate_tab(self._order[0])
        return self.activate_tab(self.create_tab().id)

    # ------------------------------------------------------------------
    # Editing-state bookkeeping
    # ------------------------------------------------------------------
    def snapshot_active(self) -> None:
        """Flush the visible surface into the active tab record."""

        tab = self.active_tab
        if tab is None:
            return
        tab.editing_state = self._surface.current_state()
        tab.content = self._surface.get_text()
        tab.selection = self._surface.get_selection()
        tab.scroll_top = self._surface.get_scroll_offset()

    def release_editing_state(self, tab_id: int) -> bool:
        """Demote a background tab to plain text; the active tab is exempt."""

        tab = self._tabs.get(tab_id)
        if tab is None or tab_id == self._active_tab_id:
            return False
        if not tab.release_editing_state():
            return False
        LOGGER.debug("TabStore.release_editing_state: evicted %s", tab_id)
        self._bus.publish(TabEvicted(tab_id=tab_id))
        return True

    @contextlib.contextmanager
    def switching(self) -> Iterator[None]:
        """Mark surface changes inside the block as programmatic."""

        previous = self._switching
        self._switching = True
        try:
            yield
        finally:
            self._switching = previous

    @property
    def is_switching(self) -> bool:
        return self._switching

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    @property
    def surface(self) -> EditingSurface:
        return self._surface

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def active_tab_id(self) -> int | None:
        return self._active_tab_id

    @property
    def active_tab(self) -> Tab | None:
        if self._active_tab_id is None:
            return None
        return self._tabs.get(self._active_tab_id)

    def require_active_tab(self) -> Tab:
        tab = self.active_tab
        if tab is None:
            raise RuntimeError("No active tab available")
        return tab

    def active_text(self) -> str:
        """Return the visible document text."""

        if self.active_tab is None:
            return ""
        return self._surface.get_text()

    @property
    def next_tab_id(self) -> int:
        return self._next_tab_id

    def iter_tabs(self) -> Iterator[Tab]:
        for tab_id in self._order:
            yield self._tabs[tab_id]

    def tab_ids(self) -> Iterable[int]:
        return tuple(self._order)

    def tab_count(self) -> int:
        return len(self._order)

    def get_tab(self, tab_id: int) -> Tab:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise KeyError(f"Unknown tab_id: {tab_id}")
        return tab

    def find_tab_by_path(self, path: Path | str) -> Tab | None:
        normalized = normalize_path(path)
        for tab in self.iter_tabs():
            if tab.file_path is not None and tab.file_path == normalized:
                return tab
        return None

    def live_state_count(self) -> int:
        return sum(1 for tab in self.iter_tabs() if tab.editing_state is not None)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    def records(self) -> list[TabRecord]:
        """Return durable records for every tab, flushing the active one first."""

        self.snapshot_active()
        return [tab.to_record() for tab in self.iter_tabs()]

    def restore(self, records: Iterable[TabRecord], *, active_tab_id: int | None, next_tab_id: int | None) -> Tab:
        """Replace all tabs with ``records`` and hydrate the chosen active tab."""

        entries = list(records)
        if not entries:
            raise ValueError("Cannot restore an empty tab list")

        self._tabs.clear()
        self._order.clear()
        self._active_tab_id = None
        for record in entries:
            if record.id in self._tabs:
                LOGGER.warning("TabStore.restore: skipping duplicate tab id %s", record.id)
                continue
            self._tabs[record.id] = record.to_tab()
            self._order.append(record.id)

        highest = max(self._order)
        self._next_tab_id = max(next_tab_id or 0, highest + 1)
        target_id = active_tab_id if active_tab_id in self._tabs else self._order[0]
        self._bus.publish(SessionRestored(tab_count=len(self._order), active_tab_id=target_id))
        return self.activate_tab(target_id)  # type: ignore[arg-type]
