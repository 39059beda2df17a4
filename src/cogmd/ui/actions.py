"""Declarative menu actions shared by the desktop shell and headless tests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

__all__ = ["MenuSpec", "WindowAction", "action_table", "build_menus"]


@dataclass(slots=True)
class WindowAction:
    """A named command exposed through a menu entry and optional shortcut."""

    name: str
    text: str
    shortcut: str | None = None
    status_tip: str | None = None
    callback: Callable[[], Any] | None = None

    def trigger(self) -> None:
        if self.callback is not None:
            self.callback()


@dataclass(slots=True)
class MenuSpec:
    name: str
    title: str
    actions: tuple[str, ...]


def build_menus() -> dict[str, MenuSpec]:
    return {
        "file": MenuSpec(
            name="file",
            title="&File",
            actions=("file_new", "file_open", "file_save", "file_save_as", "tab_close", "session_reset"),
        ),
        "view": MenuSpec(
            name="view",
            title="&View",
            actions=("view_single", "view_split", "view_preview", "view_diff", "preview_refresh"),
        ),
        "tabs": MenuSpec(name="tabs", title="&Tabs", actions=("tab_next", "tab_previous")),
    }


def action_table(callbacks: Mapping[str, Callable[[], Any]]) -> dict[str, WindowAction]:
    """Build every menu action, binding callbacks by action name."""

    specs = (
        ("file_new", "&New", "Ctrl+N", "Create a new document"),
        ("file_open", "&Open…", "Ctrl+O", "Open a Markdown file"),
        ("file_save", "&Save", "Ctrl+S", "Save the current document"),
        ("file_save_as", "Save &As…", "Ctrl+Shift+S", "Save the current document under a new name"),
        ("tab_close", "&Close Tab", "Ctrl+W", "Close the current tab"),
        ("session_reset", "&Reset Session", None, "Forget all open tabs"),
        ("view_single", "&Editor Only", "Ctrl+1", "Hide the right pane"),
        ("view_split", "&Split", "Ctrl+2", "Show the right pane"),
        ("view_preview", "&Preview", "Ctrl+Shift+P", "Toggle the preview pane"),
        ("view_diff", "&Diff", "Ctrl+Shift+D", "Toggle the diff pane"),
        ("preview_refresh", "&Refresh Preview", "Ctrl+Shift+R", "Render the preview now"),
        ("tab_next", "&Next Tab", "Ctrl+Tab", None),
        ("tab_previous", "&Previous Tab", "Ctrl+Shift+Tab", None),
    )
    return {
        name: WindowAction(name=name, text=text, shortcut=shortcut, status_tip=tip, callback=callbacks.get(name))
        for name, text, shortcut, tip in specs
    }
