"""Debounced preview/diff rendering for the visible document."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from ..diff.engine import DP_COST_CEILING
from ..diff.hunks import DEFAULT_CONTEXT_LINES, DiffHunk, compute_unified_diff
from ..editor.document_model import Tab
from ..editor.preview import LARGE_FILE_THRESHOLD, is_large_document, large_file_notice_html, render_preview
from ..editor.workspace import TabStore
from ..utils.debounce import DebounceTimer
from .events import DocumentModified, DocumentSaved, TabActivated, TabClosed, TabCreated, ViewModeChanged
from .view_mode import ViewMode

__all__ = [
    "APP_NAME",
    "DebounceTimer",
    "RENDER_DEBOUNCE_SECONDS",
    "RenderScheduler",
    "RenderTarget",
    "TabBarEntry",
    "format_title",
    "tab_bar_entries",
]

LOGGER = logging.getLogger(__name__)

RENDER_DEBOUNCE_SECONDS = 0.08
APP_NAME = "CogMD"
DIRTY_MARKER = "● "


@dataclass(slots=True, frozen=True)
class TabBarEntry:
    """One tab as shown in the tab bar."""

    id: int
    label: str
    tooltip: str
    active: bool
    dirty: bool


class RenderTarget(Protocol):
    """UI sinks driven by the scheduler; each call is idempotent for equal input."""

    def render_preview(self, html: str) -> None:
        ...

    def render_diff(self, hunks: Sequence[DiffHunk]) -> None:
        ...

    def render_tab_bar(self, entries: Sequence[TabBarEntry], active_id: int | None) -> None:
        ...

    def set_document_edited(self, edited: bool) -> None:
        ...

    def set_title(self, title: str) -> None:
        ...


def format_title(tab: Tab | None) -> str:
    if tab is None:
        return APP_NAME
    prefix = DIRTY_MARKER if tab.is_dirty else ""
    return f"{prefix}{tab.display_name} - {APP_NAME}"


def tab_bar_entries(store: TabStore) -> list[TabBarEntry]:
    active_id = store.active_tab_id
    return [
        TabBarEntry(
            id=tab.id,
            label=tab.display_name,
            tooltip=tab.file_path or tab.display_name,
            active=tab.id == active_id,
            dirty=tab.is_dirty,
        )
        for tab in store.iter_tabs()
    ]


class RenderScheduler:
    """Routes document changes to the visible pane.

    Edits restart a debounce timer for the visible pane only; tab activation,
    view changes and explicit refreshes render immediately. Documents above
    ``large_file_threshold`` bytes never schedule a live preview.
    """

    def __init__(
        self,
        store: TabStore,
        target: RenderTarget,
        *,
        view_mode: ViewMode = ViewMode.SPLIT_PREVIEW,
        loop: asyncio.AbstractEventLoop | None = None,
        debounce_seconds: float = RENDER_DEBOUNCE_SECONDS,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        large_file_threshold: int = LARGE_FILE_THRESHOLD,
        diff_cost_ceiling: int = DP_COST_CEILING,
        subscribe: bool = True,
    ) -> None:
        self._store = store
        self._target = target
        self._mode = view_mode
        self._context_lines = max(0, context_lines)
        self._large_file_threshold = large_file_threshold
        self._diff_cost_ceiling = diff_cost_ceiling
        self._preview_timer = DebounceTimer(debounce_seconds, self._fire_preview, loop=loop, name="preview")
        self._diff_timer = DebounceTimer(debounce_seconds, self._fire_diff, loop=loop, name="diff")
        if subscribe:
            store.surface.on_change(self.handle_document_changed)
            bus = store.event_bus
            bus.subscribe(TabCreated, self._on_tab_created)
            bus.subscribe(TabActivated, self._on_tab_activated)
            bus.subscribe(TabClosed, self._on_tab_closed)
            bus.subscribe(DocumentSaved, self._on_document_saved)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def view_mode(self) -> ViewMode:
        return self._mode

    @property
    def preview_timer(self) -> DebounceTimer:
        return self._preview_timer

    @property
    def diff_timer(self) -> DebounceTimer:
        return self._diff_timer

    @property
    def context_lines(self) -> int:
        return self._context_lines

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------
    def handle_document_changed(self) -> None:
        """React to an edit of the visible document."""

        if self._store.is_switching:
            return
        tab = self._store.active_tab
        if tab is None:
            return
        first_change = not tab.is_dirty
        tab.is_dirty = True
        if first_change:
            self.render_tab_bar()
        self._target.set_document_edited(True)
        self.update_title()

        if self._mode is ViewMode.SPLIT_DIFF:
            self._diff_timer.schedule()
        elif self._mode is ViewMode.SPLIT_PREVIEW:
            if is_large_document(self._store.active_text(), self._large_file_threshold):
                self._preview_timer.cancel()
                LOGGER.debug("RenderScheduler: live preview suppressed for large tab %s", tab.id)
            else:
                self._preview_timer.schedule()
        self._store.event_bus.publish(DocumentModified(tab_id=tab.id, first_change=first_change))

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode is self._mode:
            return
        self.cancel_pending()
        self._mode = mode
        LOGGER.debug("RenderScheduler: view mode -> %s", mode.value)
        self.render_now()
        self._store.event_bus.publish(ViewModeChanged(mode=mode))

    def cancel_pending(self) -> None:
        self._preview_timer.cancel()
        self._diff_timer.cancel()

    # ------------------------------------------------------------------
    # Immediate rendering
    # ------------------------------------------------------------------
    def render_now(self) -> None:
        """Render the visible pane for the active tab without debouncing."""

        if self._store.active_tab is None:
            return
        if self._mode is ViewMode.SPLIT_DIFF:
            self._diff_timer.cancel()
            self._render_diff()
        elif self._mode is ViewMode.SPLIT_PREVIEW:
            self._preview_timer.cancel()
            text = self._store.active_text()
            if is_large_document(text, self._large_file_threshold):
                self._target.render_preview(large_file_notice_html())
            else:
                self._target.render_preview(render_preview(text).html)
        else:
            self.cancel_pending()

    def refresh_preview(self) -> None:
        """Render the preview regardless of document size."""

        if self._store.active_tab is None:
            return
        self._preview_timer.cancel()
        self._target.render_preview(render_preview(self._store.active_text()).html)

    def render_tab_bar(self) -> None:
        self._target.render_tab_bar(tab_bar_entries(self._store), self._store.active_tab_id)

    def update_title(self) -> None:
        self._target.set_title(format_title(self._store.active_tab))

    def refresh_chrome(self) -> None:
        """Re-sync title, edited flag and tab bar with the active tab."""

        tab = self._store.active_tab
        self._target.set_document_edited(bool(tab and tab.is_dirty))
        self.update_title()
        self.render_tab_bar()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _render_diff(self) -> None:
        tab = self._store.active_tab
        if tab is None:
            return
        hunks = compute_unified_diff(
            tab.last_saved_content,
            self._store.active_text(),
            self._context_lines,
            cost_ceiling=self._diff_cost_ceiling,
        )
        self._target.render_diff(hunks)

    def _fire_preview(self) -> None:
        if self._mode is not ViewMode.SPLIT_PREVIEW or self._store.active_tab is None:
            return
        text = self._store.active_text()
        if is_large_document(text, self._large_file_threshold):
            return
        self._target.render_preview(render_preview(text).html)

    def _fire_diff(self) -> None:
        if self._mode is not ViewMode.SPLIT_DIFF:
            return
        self._render_diff()

    def _on_tab_created(self, event: TabCreated) -> None:
        self.render_tab_bar()

    def _on_tab_activated(self, event: TabActivated) -> None:
        self.render_now()
        self.refresh_chrome()

    def _on_tab_closed(self, event: TabClosed) -> None:
        if not event.was_active:
            self.render_tab_bar()

    def _on_document_saved(self, event: DocumentSaved) -> None:
        self.refresh_chrome()
        if self._mode is ViewMode.SPLIT_DIFF and event.tab_id == self._store.active_tab_id:
            self._diff_timer.cancel()
            self._render_diff()
