"""PySide6 desktop shell around :class:`EditorSession`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Sequence

from PySide6.QtGui import QAction, QTextCursor, QTextDocument
from PySide6.QtWidgets import (
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QPlainTextDocumentLayout,
    QPlainTextEdit,
    QSplitter,
    QStackedWidget,
    QTabBar,
    QTextBrowser,
    QVBoxLayout,
    QWidget,
)

from ..diff.hunks import DiffHunk
from ..diff.render import render_hunks_html
from ..editor.document_model import Selection
from ..editor.editing_state import ChangeListener, EditingSnapshot, EditingState
from ..services.session_store import SessionPersistence
from ..services.settings import Settings, SettingsStore
from .actions import action_table, build_menus
from .events import ViewModeChanged
from .render_scheduler import TabBarEntry
from .session_controller import EditorSession
from .view_mode import ViewMode

__all__ = ["MainWindow", "QtEditingState", "QtEditingSurface"]

LOGGER = logging.getLogger(__name__)

_MARKDOWN_FILTER = "Markdown (*.md *.markdown *.mdown *.mkd *.txt);;All files (*)"
_DIRTY_SUFFIX = " ●"


class QtEditingState(EditingState):
    """Editing state backed by its own ``QTextDocument`` (and undo stack)."""

    def __init__(self, content: str = "", selection: Selection | None = None, scroll: float = 0) -> None:
        self.document = QTextDocument()
        self.document.setDocumentLayout(QPlainTextDocumentLayout(self.document))
        self.document.setPlainText(content)
        self.selection = (selection or Selection()).clamp(len(content))
        self.scroll = scroll

    def serialize(self) -> EditingSnapshot:
        return EditingSnapshot(content=self.document.toPlainText(), selection=self.selection, scroll=self.scroll)

    def restore(self, content: str, selection: Selection, scroll: float) -> None:
        self.document.setPlainText(content)
        self.document.clearUndoRedoStacks()
        self.selection = selection.clamp(len(content))
        self.scroll = max(0, scroll)


class QtEditingSurface:
    """Editing surface over one ``QPlainTextEdit`` that swaps documents per tab."""

    def __init__(self, editor: QPlainTextEdit) -> None:
        self._editor = editor
        self._state = QtEditingState()
        self._listeners: list[ChangeListener] = []
        self._editor.setDocument(self._state.document)
        self._editor.textChanged.connect(self._notify)

    @property
    def editor(self) -> QPlainTextEdit:
        return self._editor

    def get_text(self) -> str:
        return self._editor.toPlainText()

    def get_selection(self) -> Selection:
        cursor = self._editor.textCursor()
        return Selection(anchor=cursor.anchor(), head=cursor.position())

    def get_scroll_offset(self) -> float:
        return float(self._editor.verticalScrollBar().value())

    def set_scroll_offset(self, value: float) -> None:
        self._editor.verticalScrollBar().setValue(int(value))

    def set_text(self, text: str) -> None:
        # Edit through a cursor so the replacement stays undoable.
        cursor = QTextCursor(self._editor.document())
        cursor.select(QTextCursor.SelectionType.Document)
        cursor.insertText(text)

    def on_change(self, callback: ChangeListener) -> None:
        self._listeners.append(callback)

    def current_state(self) -> QtEditingState:
        self._state.selection = self.get_selection()
        self._state.scroll = self.get_scroll_offset()
        return self._state

    def set_state(self, state: EditingState) -> None:
        if not isinstance(state, QtEditingState):
            raise TypeError(f"Unsupported editing state: {type(state).__name__}")
        self._state = state
        self._editor.setDocument(state.document)
        cursor = QTextCursor(state.document)
        selection = state.selection.clamp(state.document.characterCount() - 1)
        cursor.setPosition(selection.anchor)
        cursor.setPosition(selection.head, QTextCursor.MoveMode.KeepAnchor)
        self._editor.setTextCursor(cursor)

    def create_state(self, content: str, selection: Selection, scroll: float) -> QtEditingState:
        return QtEditingState(content, selection, scroll)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


class MainWindow(QMainWindow):
    """Tab bar, editor and right pane (preview or diff) in one window."""

    def __init__(
        self,
        settings: Settings,
        *,
        settings_store: SettingsStore | None = None,
        persistence: SessionPersistence | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._tasks: set[asyncio.Future[Any]] = set()
        self._document_edited = False

        self._tab_bar = QTabBar(self)
        self._tab_bar.setTabsClosable(True)
        self._tab_bar.setMovable(False)
        self._tab_bar.setExpanding(False)
        self._editor = QPlainTextEdit(self)
        self._preview = QTextBrowser(self)
        self._preview.setOpenExternalLinks(True)
        self._diff_view = QTextBrowser(self)
        self._right_pane = QStackedWidget(self)
        self._right_pane.addWidget(self._preview)
        self._right_pane.addWidget(self._diff_view)
        self._splitter = QSplitter(self)
        self._splitter.addWidget(self._editor)
        self._splitter.addWidget(self._right_pane)
        self._splitter.setStretchFactor(0, 1)
        self._splitter.setStretchFactor(1, 1)

        container = QWidget(self)
        layout = QVBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._tab_bar)
        layout.addWidget(self._splitter)
        self.setCentralWidget(container)
        self.resize(1200, 800)

        self._surface = QtEditingSurface(self._editor)
        self._session = EditorSession(
            self._surface,
            self,
            settings=settings,
            settings_store=settings_store,
            persistence=persistence,
            confirm_close=self._confirm_close,
            choose_save_path=self._choose_save_path,
            loop=loop,
        )
        self._session.event_bus.subscribe(ViewModeChanged, self._on_view_mode_changed)
        self._tab_bar.currentChanged.connect(self._on_tab_bar_current_changed)
        self._tab_bar.tabCloseRequested.connect(self._on_tab_close_requested)
        self._qt_actions = self._install_menus()
        self._apply_pane_visibility(self._session.view_mode)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def session(self) -> EditorSession:
        return self._session

    @property
    def surface(self) -> QtEditingSurface:
        return self._surface

    @property
    def document_edited(self) -> bool:
        return self._document_edited

    @property
    def qt_actions(self) -> dict[str, QAction]:
        return dict(self._qt_actions)

    async def startup(self, paths: Sequence[Path | str] = ()) -> None:
        await self._session.startup(paths)

    # ------------------------------------------------------------------
    # RenderTarget
    # ------------------------------------------------------------------
    def render_preview(self, html: str) -> None:
        scrollbar = self._preview.verticalScrollBar()
        position = scrollbar.value()
        self._preview.setHtml(html)
        scrollbar.setValue(position)

    def render_diff(self, hunks: Sequence[DiffHunk]) -> None:
        self._diff_view.setHtml(render_hunks_html(hunks))

    def render_tab_bar(self, entries: Sequence[TabBarEntry], active_id: int | None) -> None:
        blocked = self._tab_bar.blockSignals(True)
        try:
            while self._tab_bar.count():
                self._tab_bar.removeTab(0)
            for entry in entries:
                index = self._tab_bar.addTab(entry.label + (_DIRTY_SUFFIX if entry.dirty else ""))
                self._tab_bar.setTabData(index, entry.id)
                self._tab_bar.setTabToolTip(index, entry.tooltip)
                if entry.active:
                    self._tab_bar.setCurrentIndex(index)
        finally:
            self._tab_bar.blockSignals(blocked)

    def set_document_edited(self, edited: bool) -> None:
        self._document_edited = edited

    def set_title(self, title: str) -> None:
        self.setWindowTitle(title)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def _install_menus(self) -> dict[str, QAction]:
        session = self._session
        callbacks = {
            "file_new": session.new_document,
            "file_open": self._open_with_dialog,
            "file_save": lambda: self._run_coroutine(session.save()),
            "file_save_as": lambda: self._run_coroutine(session.save_as()),
            "tab_close": lambda: self._run_coroutine(session.close_active_tab()),
            "session_reset": self._reset_session,
            "view_single": lambda: session.apply_view("single", session.settings.right_pane),
            "view_split": lambda: session.apply_view("split", session.settings.right_pane),
            "view_preview": lambda: session.toggle_right_pane("preview"),
            "view_diff": lambda: session.toggle_right_pane("diff"),
            "preview_refresh": session.refresh_preview,
            "tab_next": lambda: session.cycle_tab(1),
            "tab_previous": lambda: session.cycle_tab(-1),
        }
        actions = action_table(callbacks)
        qt_actions: dict[str, QAction] = {}
        for action in actions.values():
            qt_action = QAction(action.text, self)
            if action.shortcut:
                qt_action.setShortcut(action.shortcut)
            if action.status_tip:
                qt_action.setStatusTip(action.status_tip)
            qt_action.triggered.connect(action.trigger)
            qt_actions[action.name] = qt_action

        menubar = self.menuBar()
        for menu_spec in build_menus().values():
            menu = menubar.addMenu(menu_spec.title)
            for action_name in menu_spec.actions:
                menu.addAction(qt_actions[action_name])
        return qt_actions

    def _open_with_dialog(self) -> None:
        start_dir = self._session.settings.last_open_dir or str(Path.home())
        path, _ = QFileDialog.getOpenFileName(self, "Open", start_dir, _MARKDOWN_FILTER)
        if not path:
            return
        try:
            self._session.open_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Unable to open %s: %s", path, exc)
            QMessageBox.warning(self, "Open failed", f"Could not open {path}:\n{exc}")

    def _reset_session(self) -> None:
        answer = QMessageBox.question(
            self,
            "Reset session",
            "Close all tabs and forget the saved session?",
        )
        if answer == QMessageBox.StandardButton.Yes:
            self._run_coroutine(self._session.reset_session())

    def _confirm_close(self, label: str) -> bool:
        answer = QMessageBox.question(
            self,
            "Unsaved changes",
            f"{label} has unsaved changes. Close it anyway?",
        )
        return answer == QMessageBox.StandardButton.Yes

    def _choose_save_path(self, suggested_name: str) -> str | None:
        start_dir = Path(self._session.settings.last_open_dir or Path.home())
        name = suggested_name if suggested_name.lower().endswith(".md") else f"{suggested_name}.md"
        path, _ = QFileDialog.getSaveFileName(self, "Save As", str(start_dir / name), _MARKDOWN_FILTER)
        return path or None

    def _run_coroutine(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Future[Any]:
        loop = self._loop or asyncio.get_event_loop()
        task = asyncio.ensure_future(coro, loop=loop)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_finished)
        return task

    def _on_task_finished(self, task: asyncio.Future[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        LOGGER.error("Editor command failed", exc_info=exc)
        if isinstance(exc, OSError):
            QMessageBox.warning(self, "Save failed", str(exc))

    # ------------------------------------------------------------------
    # Qt signal handlers
    # ------------------------------------------------------------------
    def _on_tab_bar_current_changed(self, index: int) -> None:
        tab_id = self._tab_bar.tabData(index)
        if isinstance(tab_id, int) and tab_id != self._session.store.active_tab_id:
            self._session.activate_tab(tab_id)

    def _on_tab_close_requested(self, index: int) -> None:
        tab_id = self._tab_bar.tabData(index)
        if isinstance(tab_id, int):
            self._run_coroutine(self._session.close_tab(tab_id))

    def _on_view_mode_changed(self, event: ViewModeChanged) -> None:
        self._apply_pane_visibility(event.mode)

    def _apply_pane_visibility(self, mode: ViewMode) -> None:
        self._right_pane.setVisible(mode is not ViewMode.SINGLE)
        self._right_pane.setCurrentWidget(self._diff_view if mode.shows_diff else self._preview)
