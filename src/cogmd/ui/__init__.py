"""UI-facing controllers; the Qt shell lives in :mod:`cogmd.ui.main_window`."""

from .events import EventBus
from .view_mode import ViewMode

__all__ = ["EventBus", "ViewMode"]
