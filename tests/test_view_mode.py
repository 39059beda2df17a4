"""Unit tests for :mod:`cogmd.ui.view_mode`."""

from __future__ import annotations

import pytest

from cogmd.ui.view_mode import ViewMode, migrate_legacy_view_mode, normalize_view


class TestViewMode:
    @pytest.mark.parametrize(
        ("layout", "right_pane", "expected"),
        [
            ("single", "preview", ViewMode.SINGLE),
            ("single", "diff", ViewMode.SINGLE),
            ("split", "preview", ViewMode.SPLIT_PREVIEW),
            ("split", "diff", ViewMode.SPLIT_DIFF),
            ("bogus", "diff", ViewMode.SPLIT_DIFF),
            ("split", "bogus", ViewMode.SPLIT_PREVIEW),
        ],
    )
    def test_from_settings(self, layout: str, right_pane: str, expected: ViewMode) -> None:
        assert ViewMode.from_settings(layout, right_pane) is expected

    def test_single_remembers_right_pane(self) -> None:
        assert ViewMode.SINGLE.layout() == "single"
        assert ViewMode.SINGLE.right_pane("diff") == "diff"
        assert ViewMode.SPLIT_DIFF.right_pane("preview") == "diff"

    def test_pane_flags(self) -> None:
        assert ViewMode.SPLIT_PREVIEW.shows_preview
        assert not ViewMode.SPLIT_PREVIEW.shows_diff
        assert ViewMode.SPLIT_DIFF.shows_diff
        assert not ViewMode.SINGLE.shows_preview


@pytest.mark.parametrize(
    ("legacy", "expected"),
    [
        ("editor", ("single", "preview")),
        ("split", ("split", "preview")),
        ("preview", ("split", "preview")),
        ("diff", ("split", "diff")),
        ("unknown", ("split", "preview")),
        (None, ("split", "preview")),
    ],
)
def test_migrate_legacy_view_mode(legacy: str | None, expected: tuple[str, str]) -> None:
    assert migrate_legacy_view_mode(legacy) == expected


def test_normalize_view_defaults() -> None:
    assert normalize_view(None, None) == ("split", "preview")
    assert normalize_view("single", "diff") == ("single", "diff")
