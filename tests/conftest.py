"""Shared pytest fixtures."""

from __future__ import annotations

import os

import pytest

from cogmd.editor.editing_state import HeadlessEditingSurface
from cogmd.editor.workspace import TabStore
from cogmd.ui.events import EventBus
from tests.helpers import FakeLoop, RecordingTarget

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def surface() -> HeadlessEditingSurface:
    return HeadlessEditingSurface()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store(surface: HeadlessEditingSurface, event_bus: EventBus) -> TabStore:
    return TabStore(surface, event_bus=event_bus)


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def target() -> RecordingTarget:
    return RecordingTarget()
