"""Unit tests for :mod:`cogmd.diff.render`."""

from __future__ import annotations

from cogmd.diff.hunks import compute_unified_diff
from cogmd.diff.render import (
    NO_CHANGES_MESSAGE,
    format_unified,
    hunk_header,
    render_hunks_html,
    summarize_hunks,
)


class TestFormatUnified:
    def test_empty_hunks_render_empty_string(self) -> None:
        assert format_unified([]) == ""

    def test_renders_headers_and_prefixed_lines(self) -> None:
        hunks = compute_unified_diff("a\nb\nc", "a\nx\nc", context_lines=1)

        text = format_unified(hunks, filename="notes.md")

        assert text.splitlines() == [
            "--- a/notes.md",
            "+++ b/notes.md",
            "@@ -1,3 +1,3 @@",
            " a",
            "-b",
            "+x",
            " c",
        ]

    def test_default_filename(self) -> None:
        hunks = compute_unified_diff("a", "b", context_lines=0)

        assert format_unified(hunks, filename="  ").startswith("--- a/document.md\n+++ b/document.md")


class TestHtmlRendering:
    def test_no_changes_message(self) -> None:
        html = render_hunks_html([])

        assert NO_CHANGES_MESSAGE in html
        assert "diff-empty" in html

    def test_rows_are_classified_and_escaped(self) -> None:
        hunks = compute_unified_diff("<b>old</b>", "<b>new</b> & more", context_lines=0)

        html = render_hunks_html(hunks)

        assert html.startswith('<table class="diff"')
        assert 'class="diff-header"' in html
        assert 'class="diff-remove"' in html
        assert 'class="diff-add"' in html
        assert "&lt;b&gt;new&lt;/b&gt; &amp; more" in html
        assert "<b>new</b>" not in html


class TestSummary:
    def test_counts_and_description(self) -> None:
        hunks = compute_unified_diff("a\nb\nc", "a\nx\ny\nc", context_lines=1)

        summary = summarize_hunks(hunks)

        assert (summary.hunks, summary.added, summary.removed) == (1, 2, 1)
        assert summary.describe() == "1 hunk(s), +2 -1"
        assert hunk_header(hunks[0]) == "@@ -1,3 +1,4 @@"

    def test_empty_summary_describes_no_changes(self) -> None:
        assert summarize_hunks([]).describe() == NO_CHANGES_MESSAGE
