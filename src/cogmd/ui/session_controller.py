"""Editor session glue: file commands, view switching and session lifecycle.

``EditorSession`` wires one :class:`TabStore` to the eviction cache, the
render scheduler and (optionally) session autosave, and exposes the
commands the desktop shell binds to menu actions.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Union

from ..editor.document_model import Tab, TabRecord
from ..editor.editing_state import EditingSurface
from ..editor.eviction import EvictionCache
from ..editor.workspace import ConfirmClose, TabStore, normalize_path
from ..services.session_store import SessionAutosave, SessionPersistence
from ..services.settings import Settings, SettingsStore, remember_recent_file
from ..utils.file_io import read_text, write_text
from .events import DocumentSaved, EventBus
from .render_scheduler import RenderScheduler, RenderTarget
from .view_mode import DEFAULT_LAYOUT, DEFAULT_RIGHT_PANE, ViewMode, normalize_view

__all__ = ["ChooseSavePath", "EditorSession"]

LOGGER = logging.getLogger(__name__)

ChooseSavePath = Callable[[str], Union[str, Path, None, Awaitable[Union[str, Path, None]]]]


class EditorSession:
    """Owns the tab store and the components observing it."""

    def __init__(
        self,
        surface: EditingSurface,
        target: RenderTarget,
        *,
        settings: Settings | None = None,
        settings_store: SettingsStore | None = None,
        persistence: SessionPersistence | None = None,
        confirm_close: ConfirmClose | None = None,
        choose_save_path: ChooseSavePath | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._settings_store = settings_store
        self._persistence = persistence
        self._choose_save_path = choose_save_path
        self._bus = event_bus or EventBus()
        self._store = TabStore(surface, event_bus=self._bus, confirm_close=confirm_close)
        self._eviction = EvictionCache(self._store, self._settings.max_cached_tab_states)
        self._scheduler = RenderScheduler(
            self._store,
            target,
            view_mode=ViewMode.from_settings(self._settings.layout, self._settings.right_pane),
            loop=loop,
            debounce_seconds=self._settings.render_debounce_ms / 1000,
            context_lines=self._settings.context_lines,
            large_file_threshold=self._settings.large_file_threshold,
            diff_cost_ceiling=self._settings.diff_cost_ceiling,
        )
        self._autosave: SessionAutosave | None = None
        if persistence is not None:
            self._autosave = SessionAutosave(
                self._store, persistence, loop=loop, delay=self._settings.session_save_delay
            )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def store(self) -> TabStore:
        return self._store

    @property
    def scheduler(self) -> RenderScheduler:
        return self._scheduler

    @property
    def eviction(self) -> EvictionCache:
        return self._eviction

    @property
    def autosave(self) -> SessionAutosave | None:
        return self._autosave

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def view_mode(self) -> ViewMode:
        return self._scheduler.view_mode

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def startup(self, paths: Iterable[Path | str] = ()) -> Tab:
        """Restore the previous session (or start fresh) and open ``paths``."""

        snapshot = await self._persistence.restore() if self._persistence is not None else None
        if snapshot is not None:
            LOGGER.info("Restoring session with %d tab(s)", len(snapshot.tabs))
            snapshot.apply_to(self._store)
        else:
            self._store.ensure_tab()
        for path in paths:
            try:
                self.open_document(path)
            except OSError as exc:
                LOGGER.warning("Unable to open %s: %s", path, exc)
        return self._store.require_active_tab()

    async def shutdown(self) -> None:
        """Flush a pending session save."""

        self._scheduler.cancel_pending()
        if self._autosave is not None and await self._autosave.flush():
            LOGGER.debug("Pending session save flushed on shutdown")

    async def reset_session(self) -> Tab:
        """Forget every tab, both durable copies and the saved view.

        The fresh empty tab takes the next unused id.
        """

        if self._autosave is not None:
            self._autosave.cancel()
        if self._persistence is not None:
            await self._persistence.clear()
        self._eviction.clear()
        LOGGER.info("Session reset")
        tab_id = self._store.next_tab_id
        tab = self._store.restore([TabRecord(id=tab_id)], active_tab_id=tab_id, next_tab_id=tab_id + 1)
        self.apply_view(DEFAULT_LAYOUT, DEFAULT_RIGHT_PANE)
        return tab

    # ------------------------------------------------------------------
    # File commands
    # ------------------------------------------------------------------
    def new_document(self) -> Tab:
        tab = self._store.create_tab()
        return self._store.activate_tab(tab.id)

    def open_document(self, path: Path | str) -> Tab:
        """Read ``path`` from disk and show it; raises ``OSError`` on failure."""

        content = read_text(path)
        tab = self.open_file(path, content)
        self._remember(path)
        return tab

    def open_file(self, path: Path | str, content: str) -> Tab:
        """Show already-loaded file contents.

        An existing tab for the same path is activated instead of duplicated;
        a pristine active tab (untitled, clean and empty) is reused in place.
        """

        existing = self._store.find_tab_by_path(path)
        if existing is not None:
            return self._store.activate_tab(existing.id)

        active = self._store.active_tab
        if (
            active is not None
            and not active.is_dirty
            and active.file_path is None
            and self._store.active_text() == ""
        ):
            with self._store.switching():
                self._store.surface.set_text(content)
            active.content = content
            active.mark_saved(content, file_path=normalize_path(path))
            LOGGER.debug("Loaded %s into pristine tab %s", active.file_path, active.id)
            self._scheduler.render_now()
            self._scheduler.refresh_chrome()
            if self._autosave is not None:
                self._autosave.schedule()
            return active

        tab = self._store.create_tab(path, content)
        return self._store.activate_tab(tab.id)

    async def save(self) -> bool:
        """Write the active tab to its path, prompting for one when untitled."""

        tab = self._store.require_active_tab()
        if tab.file_path is None:
            return await self.save_as()
        self._write(tab, tab.file_path)
        return True

    async def save_as(self, path: Path | str | None = None) -> bool:
        tab = self._store.require_active_tab()
        if path is None:
            if self._choose_save_path is None:
                return False
            choice = self._choose_save_path(tab.display_name)
            if inspect.isawaitable(choice):
                choice = await choice
            if not choice:
                return False
            path = choice
        self._write(tab, normalize_path(path))  # type: ignore[arg-type]
        return True

    # ------------------------------------------------------------------
    # Tab commands
    # ------------------------------------------------------------------
    def activate_tab(self, tab_id: int) -> Tab:
        return self._store.activate_tab(tab_id)

    async def close_tab(self, tab_id: int) -> bool:
        return await self._store.close_tab(tab_id)

    async def close_active_tab(self) -> bool:
        active_id = self._store.active_tab_id
        if active_id is None:
            return False
        return await self._store.close_tab(active_id)

    def cycle_tab(self, direction: int) -> Tab | None:
        return self._store.cycle_tab(direction)

    # ------------------------------------------------------------------
    # View commands
    # ------------------------------------------------------------------
    def apply_view(self, layout: str, right_pane: str) -> ViewMode:
        """Switch layout/right pane, render immediately and persist the choice."""

        layout, right_pane = normalize_view(layout, right_pane)
        mode = ViewMode.from_settings(layout, right_pane)
        if mode is self._scheduler.view_mode:
            self._scheduler.render_now()
        else:
            self._scheduler.set_view_mode(mode)
        if (layout, right_pane) != (self._settings.layout, self._settings.right_pane):
            self._settings.layout = layout
            self._settings.right_pane = right_pane
            self._persist_settings()
        return mode

    def toggle_right_pane(self, pane: str) -> ViewMode:
        """Show ``pane``; choosing the pane already shown collapses to one column."""

        if self._settings.layout == "split" and self._settings.right_pane == pane:
            return self.apply_view("single", pane)
        return self.apply_view("split", pane)

    def refresh_preview(self) -> None:
        self._scheduler.refresh_preview()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _write(self, tab: Tab, path: str) -> None:
        content = self._store.active_text()
        write_text(path, content)
        tab.content = content
        tab.mark_saved(content, file_path=path)
        LOGGER.info("Saved tab %s to %s", tab.id, path)
        self._bus.publish(DocumentSaved(tab_id=tab.id, path=path))
        self._remember(path)

    def _remember(self, path: Path | str) -> None:
        remember_recent_file(self._settings, path)
        self._persist_settings()

    def _persist_settings(self) -> None:
        if self._settings_store is None:
            return
        try:
            self._settings_store.save(self._settings)
        except OSError as exc:
            LOGGER.warning("Unable to persist settings: %s", exc)
