"""Closed set of pane configurations and their persisted form."""

from __future__ import annotations

from enum import Enum

__all__ = [
    "DEFAULT_LAYOUT",
    "DEFAULT_RIGHT_PANE",
    "LAYOUTS",
    "RIGHT_PANES",
    "ViewMode",
    "migrate_legacy_view_mode",
    "normalize_view",
]

LAYOUTS: tuple[str, ...] = ("single", "split")
RIGHT_PANES: tuple[str, ...] = ("preview", "diff")
DEFAULT_LAYOUT = "split"
DEFAULT_RIGHT_PANE = "preview"

_LEGACY_VIEW_MODES: dict[str, tuple[str, str]] = {
    "editor": ("single", "preview"),
    "split": ("split", "preview"),
    "preview": ("split", "preview"),
    "diff": ("split", "diff"),
}


class ViewMode(Enum):
    """Which pane, if any, is visible next to the editor."""

    SINGLE = "single"
    SPLIT_PREVIEW = "split-preview"
    SPLIT_DIFF = "split-diff"

    @classmethod
    def from_settings(cls, layout: str, right_pane: str) -> "ViewMode":
        layout, right_pane = normalize_view(layout, right_pane)
        if layout == "single":
            return cls.SINGLE
        if right_pane == "diff":
            return cls.SPLIT_DIFF
        return cls.SPLIT_PREVIEW

    @property
    def shows_preview(self) -> bool:
        return self is ViewMode.SPLIT_PREVIEW

    @property
    def shows_diff(self) -> bool:
        return self is ViewMode.SPLIT_DIFF

    def layout(self) -> str:
        return "single" if self is ViewMode.SINGLE else "split"

    def right_pane(self, remembered: str = DEFAULT_RIGHT_PANE) -> str:
        """Return the right-pane name; ``SINGLE`` keeps the remembered choice."""

        if self is ViewMode.SPLIT_DIFF:
            return "diff"
        if self is ViewMode.SPLIT_PREVIEW:
            return "preview"
        return remembered if remembered in RIGHT_PANES else DEFAULT_RIGHT_PANE


def normalize_view(layout: str | None, right_pane: str | None) -> tuple[str, str]:
    """Coerce unknown values to the split/preview defaults."""

    resolved_layout = layout if layout in LAYOUTS else DEFAULT_LAYOUT
    resolved_pane = right_pane if right_pane in RIGHT_PANES else DEFAULT_RIGHT_PANE
    return resolved_layout, resolved_pane


def migrate_legacy_view_mode(value: str | None) -> tuple[str, str]:
    """Translate the old single ``view_mode`` value into ``(layout, right_pane)``."""

    return _LEGACY_VIEW_MODES.get(value or "", (DEFAULT_LAYOUT, DEFAULT_RIGHT_PANE))
