"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from cogmd.diff.hunks import DiffHunk
from cogmd.services.stores import StoreError
from cogmd.ui.render_scheduler import TabBarEntry


class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTask:
    """Deferred coroutine handed out by :meth:`FakeLoop.create_task`."""

    def __init__(self, coro: Any) -> None:
        self.coro = coro
        self.callbacks: list[Callable[[Any], None]] = []
        self.result: Any = None

    def add_done_callback(self, callback: Callable[[Any], None]) -> None:
        self.callbacks.append(callback)

    def cancelled(self) -> bool:
        return False

    def exception(self) -> BaseException | None:
        return None


class FakeLoop:
    """Manual clock standing in for an event loop's ``call_later``/``create_task``.

    Example::

        loop = FakeLoop()
        timer = DebounceTimer(0.08, callback, loop=loop)
        timer.schedule()
        loop.advance(0.08)  # fires callback
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeTimerHandle] = []
        self.tasks: list[Any] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    def create_task(self, coro: Any) -> FakeTask:
        task = FakeTask(coro)
        self.tasks.append(task)
        return task

    def pending(self) -> list[FakeTimerHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire due handles; returns the fire count."""

        self.now += seconds
        fired = 0
        while True:
            due = [h for h in self.handles if not h.cancelled and h.when <= self.now + 1e-9]
            if not due:
                return fired
            due.sort(key=lambda h: h.when)
            handle = due[0]
            self.handles.remove(handle)
            handle.callback(*handle.args)
            fired += 1

    async def run_tasks(self) -> list[Any]:
        """Await every coroutine handed to ``create_task`` so far."""

        results = []
        while self.tasks:
            task = self.tasks.pop(0)
            task.result = await task.coro
            for callback in task.callbacks:
                callback(task)
            results.append(task.result)
        return results

    def drop_tasks(self) -> None:
        for task in self.tasks:
            task.coro.close()
        self.tasks.clear()


@dataclass
class RecordingTarget:
    """Render target that keeps every call for assertions."""

    previews: list[str] = field(default_factory=list)
    diffs: list[list[DiffHunk]] = field(default_factory=list)
    tab_bars: list[tuple[list[TabBarEntry], int | None]] = field(default_factory=list)
    edited: list[bool] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)

    def render_preview(self, html: str) -> None:
        self.previews.append(html)

    def render_diff(self, hunks: Sequence[DiffHunk]) -> None:
        self.diffs.append(list(hunks))

    def render_tab_bar(self, entries: Sequence[TabBarEntry], active_id: int | None) -> None:
        self.tab_bars.append((list(entries), active_id))

    def set_document_edited(self, edited: bool) -> None:
        self.edited.append(edited)

    def set_title(self, title: str) -> None:
        self.titles.append(title)

    def reset(self) -> None:
        self.previews.clear()
        self.diffs.clear()
        self.tab_bars.clear()
        self.edited.clear()
        self.titles.clear()


class MemoryAsyncStore:
    """In-memory primary store; ``fail_reads``/``fail_writes`` simulate outages."""

    def __init__(self, *, fail_reads: bool = False, fail_writes: bool = False) -> None:
        self.data: dict[str, Any] = {}
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.put_calls = 0

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        if self.fail_reads:
            raise StoreError("primary unavailable")
        return self.data.get(key)

    async def put(self, key: str, value: Any) -> None:
        await asyncio.sleep(0)
        self.put_calls += 1
        if self.fail_writes:
            raise StoreError("quota exceeded")
        self.data[key] = value

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        self.data.pop(key, None)


class MemorySyncStore:
    """In-memory synchronous string store mirroring ``JsonKeyValueStore``."""

    def __init__(self, *, fail_writes: bool = False) -> None:
        self.data: dict[str, str] = {}
        self.fail_writes = fail_writes

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StoreError("disk full")
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)
