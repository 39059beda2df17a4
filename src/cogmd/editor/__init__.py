"""Document models, editing states and the tab store."""

from .document_model import Selection, Tab, TabRecord
from .editing_state import BufferEditingState, EditingState, EditingSurface, HeadlessEditingSurface
from .eviction import MAX_CACHED_TAB_STATES, EvictionCache
from .workspace import TabStore

__all__ = [
    "BufferEditingState",
    "EditingState",
    "EditingSurface",
    "EvictionCache",
    "HeadlessEditingSurface",
    "MAX_CACHED_TAB_STATES",
    "Selection",
    "Tab",
    "TabRecord",
    "TabStore",
]
