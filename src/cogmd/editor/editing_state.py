"""Editing-state capability and the headless editing surface.

The session core never touches a concrete text widget. It sees two seams:

* :class:`EditingState` - an expensive, per-tab object holding the live text
  buffer, cursor and edit history. It can be serialized to plain fields and
  rebuilt from them.
* :class:`EditingSurface` - the single visible editor that displays one
  editing state at a time and reports changes.

:class:`HeadlessEditingSurface` implements both seams in memory so that the
session logic runs (and is tested) without a GUI toolkit.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Protocol

from .document_model import Selection

__all__ = [
    "BufferEditingState",
    "ChangeListener",
    "EditingSnapshot",
    "EditingState",
    "EditingSurface",
    "HeadlessEditingSurface",
]

LOGGER = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


@dataclass(slots=True, frozen=True)
class EditingSnapshot:
    """Plain-data view of an editing state."""

    content: str
    selection: Selection
    scroll: float = 0


class EditingState(ABC):
    """Opaque per-tab editing structure."""

    @abstractmethod
    def serialize(self) -> EditingSnapshot:
        """Return the authoritative text, selection and scroll offset."""

    @abstractmethod
    def restore(self, content: str, selection: Selection, scroll: float) -> None:
        """Reset the state to the provided plain fields."""


class EditingSurface(Protocol):
    """The visible editor consumed by the tab store and render scheduler."""

    def get_text(self) -> str:
        ...

    def get_selection(self) -> Selection:
        ...

    def get_scroll_offset(self) -> float:
        ...

    def set_scroll_offset(self, value: float) -> None:
        ...

    def set_text(self, text: str) -> None:
        ...

    def on_change(self, callback: ChangeListener) -> None:
        ...

    def current_state(self) -> EditingState | None:
        ...

    def set_state(self, state: EditingState) -> None:
        ...

    def create_state(self, content: str, selection: Selection, scroll: float) -> EditingState:
        ...


class BufferEditingState(EditingState):
    """In-memory editing state with a bounded undo/redo history."""

    MAX_HISTORY = 200

    def __init__(self, content: str = "", selection: Selection | None = None, scroll: float = 0) -> None:
        self._text = content
        self._selection = (selection or Selection()).clamp(len(content))
        self._scroll = scroll
        self._undo: list[str] = []
        self._redo: list[str] = []

    @property
    def text(self) -> str:
        return self._text

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def scroll(self) -> float:
        return self._scroll

    @scroll.setter
    def scroll(self, value: float) -> None:
        self._scroll = max(0, value)

    def serialize(self) -> EditingSnapshot:
        return EditingSnapshot(content=self._text, selection=self._selection, scroll=self._scroll)

    def restore(self, content: str, selection: Selection, scroll: float) -> None:
        self._text = content
        self._selection = selection.clamp(len(content))
        self._scroll = max(0, scroll)
        self._undo.clear()
        self._redo.clear()

    def set_selection(self, selection: Selection) -> None:
        self._selection = selection.clamp(len(self._text))

    def replace(self, start: int, end: int, replacement: str) -> None:
        length = len(self._text)
        start = min(max(0, start), length)
        end = min(max(start, end), length)
        self._push_undo()
        self._text = self._text[:start] + replacement + self._text[end:]
        caret = start + len(replacement)
        self._selection = Selection(caret, caret)

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self._text)
        self._text = self._undo.pop()
        self._selection = self._selection.clamp(len(self._text))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self._text)
        self._text = self._redo.pop()
        self._selection = self._selection.clamp(len(self._text))
        return True

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    def _push_undo(self) -> None:
        self._undo.append(self._text)
        if len(self._undo) > self.MAX_HISTORY:
            del self._undo[0]
        self._redo.clear()


class HeadlessEditingSurface:
    """GUI-free :class:`EditingSurface` backed by :class:`BufferEditingState`."""

    def __init__(self) -> None:
        self._state = BufferEditingState()
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # EditingSurface
    # ------------------------------------------------------------------
    def get_text(self) -> str:
        return self._state.text

    def get_selection(self) -> Selection:
        return self._state.selection

    def get_scroll_offset(self) -> float:
        return self._state.scroll

    def set_scroll_offset(self, value: float) -> None:
        self._state.scroll = value

    def set_text(self, text: str) -> None:
        self._state.replace(0, len(self._state.text), text)
        self._notify()

    def on_change(self, callback: ChangeListener) -> None:
        self._listeners.append(callback)

    def current_state(self) -> BufferEditingState:
        return self._state

    def set_state(self, state: EditingState) -> None:
        if not isinstance(state, BufferEditingState):
            raise TypeError(f"Unsupported editing state: {type(state).__name__}")
        self._state = state
        self._notify()

    def create_state(self, content: str, selection: Selection, scroll: float) -> BufferEditingState:
        return BufferEditingState(content, selection, scroll)

    # ------------------------------------------------------------------
    # Keystroke-level helpers
    # ------------------------------------------------------------------
    def type_text(self, text: str) -> None:
        """Insert ``text`` at the caret, replacing any selection."""

        selection = self._state.selection
        start, end = sorted((selection.anchor, selection.head))
        self._state.replace(start, end, text)
        self._notify()

    def set_selection(self, anchor: int, head: int | None = None) -> None:
        self._state.set_selection(Selection(anchor, anchor if head is None else head))

    def undo(self) -> bool:
        changed = self._state.undo()
        if changed:
            self._notify()
        return changed

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
