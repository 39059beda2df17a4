"""Unit tests for :mod:`cogmd.ui.events`."""

from __future__ import annotations

import gc
import logging

import pytest

from cogmd.ui.events import DocumentModified, EventBus, TabClosed, TabCreated


class _Listener:
    def __init__(self) -> None:
        self.events: list[TabClosed] = []

    def on_closed(self, event: TabClosed) -> None:
        self.events.append(event)


class TestEventBus:
    """Publish/subscribe semantics."""

    def test_handlers_run_in_registration_order(self) -> None:
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe(TabCreated, lambda event: calls.append("first"))
        bus.subscribe(TabCreated, lambda event: calls.append("second"))

        bus.publish(TabCreated(tab_id=1))

        assert calls == ["first", "second"]

    def test_dispatch_is_by_exact_type(self) -> None:
        bus = EventBus()
        seen: list[object] = []
        bus.subscribe(TabCreated, seen.append)

        bus.publish(TabClosed(tab_id=1))

        assert seen == []

    def test_unsubscribe_removes_handler(self) -> None:
        bus = EventBus()
        listener = _Listener()
        bus.subscribe(TabClosed, listener.on_closed)

        bus.unsubscribe(TabClosed, listener.on_closed)
        bus.publish(TabClosed(tab_id=1))

        assert listener.events == []
        assert bus.handler_count(TabClosed) == 0

    def test_bound_methods_are_weak(self) -> None:
        bus = EventBus()
        listener = _Listener()
        bus.subscribe(TabClosed, listener.on_closed)
        assert bus.handler_count(TabClosed) == 1

        del listener
        gc.collect()
        bus.publish(TabClosed(tab_id=3))

        assert bus.handler_count(TabClosed) == 0

    def test_failing_handler_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = EventBus()
        seen: list[int] = []

        def _boom(event: TabCreated) -> None:
            raise RuntimeError("boom")

        bus.subscribe(TabCreated, _boom)
        bus.subscribe(TabCreated, lambda event: seen.append(event.tab_id))

        with caplog.at_level(logging.ERROR, logger="cogmd.ui.events"):
            bus.publish(TabCreated(tab_id=5))

        assert seen == [5]
        assert "raised exception" in caplog.text

    def test_quiet_events_are_not_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = EventBus()

        with caplog.at_level(logging.DEBUG, logger="cogmd.ui.events"):
            bus.publish(DocumentModified(tab_id=1))

        assert "DocumentModified" not in caplog.text

    def test_clear_and_total_count(self) -> None:
        bus = EventBus()
        bus.subscribe(TabCreated, print)
        bus.subscribe(TabClosed, print)

        assert bus.handler_count() == 2
        bus.clear()
        assert bus.handler_count() == 0
