"""Dataclasses describing open tabs and their persisted projection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:  # pragma: no cover
    from .editing_state import EditingState

__all__ = ["Selection", "Tab", "TabRecord", "UNTITLED_NAME"]

UNTITLED_NAME = "Untitled"


@dataclass(slots=True, frozen=True)
class Selection:
    """Main selection range expressed as character offsets."""

    anchor: int = 0
    head: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"anchor": self.anchor, "head": self.head}

    @classmethod
    def from_value(cls, value: Any) -> "Selection":
        """Coerce persisted payloads into a selection, defaulting to ``0, 0``."""

        if isinstance(value, Selection):
            return value
        if isinstance(value, Mapping):
            return cls(anchor=_coerce_offset(value.get("anchor")), head=_coerce_offset(value.get("head")))
        return cls()

    def clamp(self, length: int) -> "Selection":
        upper = max(0, length)
        return Selection(anchor=min(max(0, self.anchor), upper), head=min(max(0, self.head), upper))


@dataclass(slots=True)
class Tab:
    """One open document.

    While ``editing_state`` is present it is the source of truth for the text;
    ``content``, ``scroll_top`` and ``selection`` are only authoritative once
    the state has been released.
    """

    id: int
    file_path: str | None = None
    content: str = ""
    editing_state: EditingState | None = None
    is_dirty: bool = False
    scroll_top: float = 0
    selection: Selection = field(default_factory=Selection)
    last_saved_content: str = ""

    @property
    def display_name(self) -> str:
        if self.file_path:
            return PurePath(self.file_path).name or self.file_path
        return UNTITLED_NAME

    @property
    def has_live_state(self) -> bool:
        return self.editing_state is not None

    def current_text(self) -> str:
        """Return the authoritative text regardless of where it lives."""

        if self.editing_state is not None:
            return self.editing_state.serialize().content
        return self.content

    def release_editing_state(self) -> bool:
        """Copy the live text back into plain fields and drop the live state."""

        state = self.editing_state
        if state is None:
            return False
        snapshot = state.serialize()
        self.content = snapshot.content
        self.selection = snapshot.selection
        self.scroll_top = snapshot.scroll
        self.editing_state = None
        return True

    def mark_saved(self, content: str, *, file_path: str | None = None) -> None:
        if file_path is not None:
            self.file_path = file_path
        self.last_saved_content = content
        self.is_dirty = False

    def to_record(self) -> "TabRecord":
        return TabRecord(
            id=self.id,
            file_path=self.file_path,
            content=self.current_text(),
            is_dirty=self.is_dirty,
            scroll_top=self.scroll_top,
            selection=self.selection,
            last_saved_content=self.last_saved_content,
        )


@dataclass(slots=True, frozen=True)
class TabRecord:
    """Durable projection of a :class:`Tab` stored in session snapshots."""

    id: int
    file_path: str | None = None
    content: str = ""
    is_dirty: bool = False
    scroll_top: float = 0
    selection: Selection = field(default_factory=Selection)
    last_saved_content: str = ""

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filePath": self.file_path,
            "content": self.content,
            "isDirty": self.is_dirty,
            "scrollTop": self.scroll_top,
            "selectionMain": self.selection.as_dict(),
            "lastSavedContent": self.last_saved_content,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TabRecord":
        """Build a record from persisted data; raises ``ValueError`` without an id."""

        raw_id = payload.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValueError(f"Tab payload has no integer id: {raw_id!r}")
        content = payload.get("content")
        content = content if isinstance(content, str) else ""
        last_saved = payload.get("lastSavedContent")
        file_path = payload.get("filePath")
        scroll = payload.get("scrollTop")
        return cls(
            id=raw_id,
            file_path=file_path if isinstance(file_path, str) and file_path else None,
            content=content,
            is_dirty=bool(payload.get("isDirty", False)),
            scroll_top=scroll if isinstance(scroll, (int, float)) and not isinstance(scroll, bool) else 0,
            selection=Selection.from_value(payload.get("selectionMain")),
            last_saved_content=last_saved if isinstance(last_saved, str) else content,
        )

    def to_tab(self) -> Tab:
        return Tab(
            id=self.id,
            file_path=self.file_path,
            content=self.content,
            is_dirty=self.is_dirty,
            scroll_top=self.scroll_top,
            selection=self.selection,
            last_saved_content=self.last_saved_content,
        )


def _coerce_offset(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))
