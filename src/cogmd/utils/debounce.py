"""Loop-driven debounce timer shared by rendering and autosave."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

__all__ = ["DebounceTimer"]

LOGGER = logging.getLogger(__name__)


class DebounceTimer:
    """Cancellable one-shot timer where each ``schedule`` replaces the pending fire.

    Callbacks returning an awaitable are run as a task on the same loop.
    The loop is resolved lazily so timers can be built before it starts.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Any],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "debounce",
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self._delay = delay
        self._callback = callback
        self._loop = loop
        self._name = name
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Future[Any] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def flush(self) -> bool:
        """Fire a pending callback now; returns ``False`` when nothing was pending."""

        if self._handle is None:
            return False
        self.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        LOGGER.debug("DebounceTimer %s fired", self._name)
        result = self._callback()
        if inspect.isawaitable(result):
            loop = self._loop or asyncio.get_running_loop()
            self._task = loop.create_task(result)  # type: ignore[arg-type]
            self._task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: "asyncio.Future[Any]") -> None:
        if self._task is task:
            self._task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("DebounceTimer %s callback failed", self._name, exc_info=exc)
