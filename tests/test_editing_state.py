"""Unit tests for :mod:`cogmd.editor.editing_state`."""

from __future__ import annotations

import pytest

from cogmd.editor.document_model import Selection
from cogmd.editor.editing_state import BufferEditingState, EditingSnapshot, EditingState, HeadlessEditingSurface


class _ForeignState(EditingState):
    def serialize(self) -> EditingSnapshot:
        return EditingSnapshot("", Selection())

    def restore(self, content: str, selection: Selection, scroll: float) -> None:
        pass


class TestBufferEditingState:
    """In-memory buffer with undo history."""

    def test_replace_moves_caret_after_insert(self) -> None:
        state = BufferEditingState("hello")

        state.replace(5, 5, " world")

        assert state.text == "hello world"
        assert state.selection == Selection(11, 11)

    def test_undo_and_redo(self) -> None:
        state = BufferEditingState("a")
        state.replace(1, 1, "b")

        assert state.undo() is True
        assert state.text == "a"
        assert state.redo() is True
        assert state.text == "ab"
        assert state.redo() is False

    def test_history_is_bounded(self) -> None:
        state = BufferEditingState()
        for index in range(BufferEditingState.MAX_HISTORY + 20):
            state.replace(len(state.text), len(state.text), str(index % 10))

        undone = 0
        while state.undo():
            undone += 1
        assert undone == BufferEditingState.MAX_HISTORY

    def test_restore_clamps_selection_and_clears_history(self) -> None:
        state = BufferEditingState("abc")
        state.replace(0, 0, "x")

        state.restore("hi", Selection(0, 99), scroll=-5)

        assert state.serialize() == EditingSnapshot("hi", Selection(0, 2), 0)
        assert state.can_undo is False


class TestHeadlessEditingSurface:
    """The GUI-free editing surface."""

    def test_type_text_notifies_listeners(self) -> None:
        surface = HeadlessEditingSurface()
        calls: list[str] = []
        surface.on_change(lambda: calls.append(surface.get_text()))

        surface.type_text("ab")
        surface.type_text("c")

        assert calls == ["ab", "abc"]

    def test_type_text_replaces_selection(self) -> None:
        surface = HeadlessEditingSurface()
        surface.set_text("hello world")
        surface.set_selection(6, 11)

        surface.type_text("there")

        assert surface.get_text() == "hello there"

    def test_set_state_swaps_buffers(self) -> None:
        surface = HeadlessEditingSurface()
        state = surface.create_state("other", Selection(1, 1), 3)

        surface.set_state(state)

        assert surface.current_state() is state
        assert surface.get_text() == "other"
        assert surface.get_scroll_offset() == 3

    def test_set_state_rejects_foreign_state(self) -> None:
        with pytest.raises(TypeError):
            HeadlessEditingSurface().set_state(_ForeignState())

    def test_undo_notifies_only_when_changed(self) -> None:
        surface = HeadlessEditingSurface()
        calls: list[int] = []
        surface.on_change(lambda: calls.append(1))

        assert surface.undo() is False
        surface.type_text("x")
        assert surface.undo() is True
        assert surface.get_text() == ""
        assert len(calls) == 2
