"""Event bus infrastructure for decoupled session components.

The tab store publishes lifecycle events here; the eviction cache, render
scheduler and session autosave subscribe to them instead of being called
directly, so each can be constructed and tested on its own.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    TypeVar,
)
from weakref import WeakMethod, ref

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

    from .view_mode import ViewMode

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events published on the bus."""

    pass


# High-frequency event types that should not log each publish
_QUIET_EVENT_TYPES: set[type] = set()


# =============================================================================
# Tab lifecycle events
# =============================================================================


@dataclass(slots=True)
class TabCreated(Event):
    """Emitted when the tab store allocates a new tab.

    Attributes:
        tab_id: Identifier of the new tab.
        file_path: Path backing the tab, or None for an untitled document.
    """

    tab_id: int
    file_path: str | None = None


@dataclass(slots=True)
class TabActivated(Event):
    """Emitted after a tab became the active tab and its state was hydrated.

    Attributes:
        tab_id: Identifier of the newly active tab.
        previous_tab_id: Identifier of the previously active tab, if any.
    """

    tab_id: int
    previous_tab_id: int | None = None


@dataclass(slots=True)
class TabClosed(Event):
    """Emitted when a tab has been discarded.

    Attributes:
        tab_id: Identifier of the closed tab.
        was_active: Whether the closed tab was the active one.
    """

    tab_id: int
    was_active: bool = False


@dataclass(slots=True)
class TabEvicted(Event):
    """Emitted when a tab's live editing state was demoted to plain text."""

    tab_id: int


@dataclass(slots=True)
class DocumentModified(Event):
    """Emitted on every edit notification of the active document."""

    tab_id: int
    first_change: bool = False


_QUIET_EVENT_TYPES.add(DocumentModified)


@dataclass(slots=True)
class DocumentSaved(Event):
    """Emitted when a document has been written to disk.

    Attributes:
        tab_id: Identifier of the saved tab.
        path: Destination path of the save.
    """

    tab_id: int
    path: str


@dataclass(slots=True)
class SessionRestored(Event):
    """Emitted when tabs have been rebuilt from a persisted session."""

    tab_count: int
    active_tab_id: int | None


@dataclass(slots=True)
class ViewModeChanged(Event):
    """Emitted when the visible pane configuration changes."""

    mode: "ViewMode"


class EventBus(Generic[E]):
    """A typed publish-subscribe event bus.

    Handlers are stored as weak references where possible (bound methods),
    so subscribers must be kept alive by their owner.

    Example::

        bus = EventBus()

        def on_closed(event: TabClosed) -> None:
            print(f"Closed tab {event.tab_id}")

        bus.subscribe(TabClosed, on_closed)
        bus.publish(TabClosed(tab_id=3))

    This implementation is NOT thread-safe; all operations run on the event
    loop thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``."""

        handler_ref = _HandlerRef.create(handler)
        self._handlers[event_type].append(handler_ref)
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        """Invoke handlers synchronously in registration order.

        A handler that raises is logged and the remaining handlers still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        is_quiet = event_type in _QUIET_EVENT_TYPES

        if handlers is None:
            if not is_quiet:
                logger.debug("No handlers for event type %s", event_type.__name__)
            return

        if not is_quiet:
            logger.debug(
                "Publishing %s to %d handler(s)",
                event_type.__name__,
                len(handlers),
            )

        saw_dead = False

        # Iterate a copy; handlers may subscribe or unsubscribe while running.
        for handler_ref in list(handlers):
            handler = handler_ref.resolve()
            if handler is None:
                saw_dead = True
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        if saw_dead:
            handlers[:] = [entry for entry in handlers if entry.resolve() is not None]

    def clear(self) -> None:
        """Remove all registered handlers."""

        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handler count for ``event_type``, or across all types."""

        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for plain callables."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | ref | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                # Some callables can't be weakly referenced
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Any) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "TabCreated",
    "TabActivated",
    "TabClosed",
    "TabEvicted",
    "DocumentModified",
    "DocumentSaved",
    "SessionRestored",
    "ViewModeChanged",
]
